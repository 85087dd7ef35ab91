"""
Unit tests for vehicle lookup tables.

Tests make normalization, nameplate matching, classification and regional demand.
"""

import pytest

from vehicle_analytics.core.catalog import (
    REGIONAL_DEMAND,
    DepreciationClass,
    MakeCostCategory,
    VehicleCategory,
    classify_vehicle,
    depreciation_class,
    is_electric,
    is_pickup,
    location_mentions_state,
    make_cost_category,
    model_matches,
    normalize_make,
)


class TestMakeNormalization:
    """Test make normalization."""

    @pytest.mark.parametrize("raw", ["mercedes benz", "Mercedes-Benz", "MERCEDES", "  mercedes   benz "])
    def test_mercedes_aliases(self, raw):
        """Test that spellings of Mercedes-Benz share one key."""
        assert normalize_make(raw) == "MERCEDES-BENZ"

    def test_plain_make_upper_cased(self):
        """Test that a plain make is upper-cased."""
        assert normalize_make("toyota") == "TOYOTA"
        assert normalize_make("Chevy") == "CHEVROLET"


class TestModelMatching:
    """Test nameplate matching."""

    def test_single_word_requires_whole_token(self):
        """Test that RAM does not match inside another word."""
        assert not model_matches("Tramontana", ("RAM",))
        assert model_matches("Ram 1500", ("RAM",))

    def test_multi_word_matches_substring(self):
        """Test that multi-word nameplates match as substrings."""
        assert model_matches("Model 3 Long Range", ("MODEL 3",))
        assert not model_matches("Model X", ("MODEL 3",))


class TestDepreciationClass:
    """Test depreciation group lookup."""

    def test_off_road_nameplate_overrides_make(self):
        """Test that a Wrangler is off-road regardless of make."""
        assert depreciation_class("Jeep", "Wrangler") is DepreciationClass.OFF_ROAD
        assert depreciation_class("Toyota", "Tacoma") is DepreciationClass.OFF_ROAD

    @pytest.mark.parametrize("make,expected", [
        ("Porsche", DepreciationClass.EXOTIC),
        ("Toyota", DepreciationClass.HIGH_RETENTION),
        ("Tesla", DepreciationClass.ELECTRIC),
        ("BMW", DepreciationClass.LUXURY),
        ("Kia", DepreciationClass.STANDARD),
    ])
    def test_make_table(self, make, expected):
        """Test the make-to-class table with a neutral nameplate."""
        assert depreciation_class(make, "Sedan") is expected


class TestClassification:
    """Test vehicle category classification."""

    @pytest.mark.parametrize("make,model,expected", [
        ("Tesla", "Model 3", VehicleCategory.EV),
        ("Chevrolet", "Bolt EV", VehicleCategory.EV),
        ("BMW", "X5", VehicleCategory.LUXURY),
        ("Ford", "F-150", VehicleCategory.TRUCK),
        ("Toyota", "4Runner", VehicleCategory.SUV),
        ("Mazda", "MX-5 Miata", VehicleCategory.SPORTS),
        ("Honda", "Civic", VehicleCategory.SEDAN),
    ])
    def test_classify_vehicle(self, make, model, expected):
        """Test that the first matching category wins."""
        assert classify_vehicle(make, model) is expected

    def test_ram_make_is_pickup(self):
        """Test that the RAM make is a pickup whatever the model."""
        assert is_pickup("Ram", "1500")
        assert not is_pickup("Honda", "Accord")

    def test_electric_by_make(self):
        """Test that an EV make is electric for any model."""
        assert is_electric("Rivian", "R1S")

    def test_make_cost_category(self):
        """Test make cost groups with the standard fallback."""
        assert make_cost_category("Lexus") is MakeCostCategory.LUXURY
        assert make_cost_category("Honda") is MakeCostCategory.ECONOMY
        assert make_cost_category("GMC") is MakeCostCategory.TRUCK
        assert make_cost_category("Subaru") is MakeCostCategory.STANDARD


class TestLocationMatching:
    """Test state detection in free-text locations."""

    def test_full_state_name(self):
        """Test that a full state name is detected."""
        assert location_mentions_state("Austin, Texas", "Texas")

    def test_postal_code(self):
        """Test that a postal code closing a City, ST location is detected."""
        assert location_mentions_state("Los Angeles, CA", "California")
        assert location_mentions_state("Austin, TX 78701", "Texas")

    def test_mount_abbreviation_is_not_montana(self):
        """Test that a leading 'Mt.' in a city name does not count as MT."""
        assert not location_mentions_state("Mt. Pleasant, SC", "Montana")
        assert not location_mentions_state("Mt. Pleasant, South Carolina", "Montana")
        assert location_mentions_state("Bozeman, MT", "Montana")

    def test_postal_code_inside_word_ignored(self):
        """Test that letters inside a city name do not count."""
        assert not location_mentions_state("Chicago, IL", "California")

    def test_overlapping_state_names(self):
        """Test that West Virginia is not Virginia."""
        assert not location_mentions_state("Charleston, West Virginia", "Virginia")
        assert location_mentions_state("Richmond, Virginia", "Virginia")

    def test_missing_location(self):
        """Test that no location never matches."""
        assert not location_mentions_state(None, "Texas")
        assert not location_mentions_state("", "Texas")


class TestRegionalDemand:
    """Test regional demand premiums."""

    def test_truck_in_texas(self):
        """Test that trucks in Texas earn the regional premium."""
        truck_region = REGIONAL_DEMAND[0]
        assert truck_region.applies_to("Ford", "F-150", "Austin, TX")
        assert not truck_region.applies_to("Ford", "F-150", "Portland, OR")
        assert not truck_region.applies_to("Honda", "Civic", "Austin, TX")
        assert not truck_region.applies_to("Ford", "F-150", "Mt. Pleasant, SC")

    def test_ev_in_california(self):
        """Test that EVs in California earn the regional premium."""
        ev_region = REGIONAL_DEMAND[1]
        assert ev_region.applies_to("Tesla", "Model Y", "San Diego, California")
        assert not ev_region.applies_to("Tesla", "Model Y", "Chicago, IL")
