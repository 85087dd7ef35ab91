"""
CLI interface for the vehicle analytics engine.

Provides command-line access to every analysis. Owned-vehicle analyses read a
YAML snapshot file; deal, loan and projection analyses take their inputs as
options.
"""

import sys
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from vehicle_analytics.config.loader import DEFAULT_ENGINE_CONFIG, EngineConfig, load_engine_config
from vehicle_analytics.core.deal import DealAnalysisResult, analyze_deal
from vehicle_analytics.core.depreciation import apply_value_floor, project_values
from vehicle_analytics.core.exceptions import VehicleAnalyticsError
from vehicle_analytics.core.loan import amortization_schedule, summarize_loan
from vehicle_analytics.core.maintenance import MaintenanceInsights, generate_maintenance_insights
from vehicle_analytics.core.models import AccidentRecord, AccidentSeverity, ExtraPayment, LoanTerms
from vehicle_analytics.core.quality import QualityScoreResult, calculate_quality_score
from vehicle_analytics.core.sell_advisor import SellAnalysis, analyze_sell_timing
from vehicle_analytics.observability.logging import log_analysis, setup_logging
from vehicle_analytics.snapshots.loader import VehicleSnapshot, load_vehicle_snapshot

app = typer.Typer(help="Financial analytics for owned and prospective vehicles.")
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

DEMO_SNAPSHOT = Path(__file__).resolve().parent.parent / "demo" / "sample_vehicle.yaml"

# Errors reported as a single red line instead of a traceback
HANDLED_ERRORS = (VehicleAnalyticsError, ValueError, FileNotFoundError, yaml.YAMLError)


@dataclass(frozen=True)
class CLIState:
    """Options shared by every command."""
    config: EngineConfig
    as_of: date


def _fail(error: Exception) -> None:
    console.print(f"[red]Error:[/] {error}")
    sys.exit(EXIT_CODE_FAIL)


def _state(ctx: typer.Context) -> CLIState:
    if isinstance(ctx.obj, CLIState):
        return ctx.obj
    return CLIState(config=DEFAULT_ENGINE_CONFIG, as_of=date.today())


def _parse_date(value: str, option: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"{option} must be an ISO date (YYYY-MM-DD), got '{value}'")


def _parse_extra_payment(value: str) -> ExtraPayment:
    """Parse an extra payment given as YYYY-MM-DD:AMOUNT."""
    when, sep, amount = value.partition(":")
    if not sep:
        raise ValueError(f"--extra must look like YYYY-MM-DD:AMOUNT, got '{value}'")
    try:
        parsed_amount = float(amount)
    except ValueError:
        raise ValueError(f"--extra amount must be a number, got '{amount}'")
    return ExtraPayment(date=_parse_date(when, "--extra"), amount=parsed_amount)


def _parse_accident(severity: str, as_of: date) -> AccidentRecord:
    """Parse an accident severity; 'unknown' records an accident without details."""
    value = severity.strip().lower()
    if value == "unknown":
        return AccidentRecord(date=as_of, severity=None)
    try:
        return AccidentRecord(date=as_of, severity=AccidentSeverity(value))
    except ValueError:
        valid = [s.value for s in AccidentSeverity] + ["unknown"]
        raise ValueError(f"--accident must be one of: {valid}")


def _format_currency(amount: float) -> str:
    """Format currency with sign, symbol and thousands separators."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML file overriding engine constants"
    ),
    as_of: Optional[str] = typer.Option(
        None,
        "--as-of",
        help="Reference date for the analysis (YYYY-MM-DD, defaults to today)"
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ERROR)"
    ),
    log_format: str = typer.Option(
        "json",
        "--log-format",
        help="Log output format: json or text"
    ),
):
    """Vehicle analytics CLI."""
    try:
        setup_logging(log_level, log_format)
        engine_config = load_engine_config(config) if config else DEFAULT_ENGINE_CONFIG
        reference = _parse_date(as_of, "--as-of") if as_of else date.today()
    except HANDLED_ERRORS as e:
        _fail(e)

    ctx.obj = CLIState(config=engine_config, as_of=reference)
    if ctx.invoked_subcommand is None:
        console.print("Vehicle Analytics - Use --help to see available commands")


@app.command()
def deal(
    ctx: typer.Context,
    make: str = typer.Option(..., "--make", help="Vehicle make"),
    model: str = typer.Option(..., "--model", help="Vehicle model"),
    year: int = typer.Option(..., "--year", help="Model year"),
    mileage: int = typer.Option(..., "--mileage", help="Odometer reading"),
    price: float = typer.Option(..., "--price", help="Asking price"),
    msrp: Optional[float] = typer.Option(None, "--msrp", help="MSRP of the selected trim"),
    location: Optional[str] = typer.Option(None, "--location", help="Listing location, e.g. 'Austin, TX'"),
    accident: Optional[List[str]] = typer.Option(
        None,
        "--accident",
        help="Reported accident severity (minor, moderate, major, structural, unknown); repeatable"
    ),
):
    """Score a prospective purchase."""
    state = _state(ctx)
    try:
        accidents = [_parse_accident(a, state.as_of) for a in accident or []]
        result = analyze_deal(
            make=make,
            model=model,
            model_year=year,
            mileage=mileage,
            asking_price=price,
            trim_msrp=msrp,
            location=location,
            accident_history=accidents,
            as_of=state.as_of,
            config=state.config.deal,
        )
    except HANDLED_ERRORS as e:
        _fail(e)

    log_analysis("deal", f"{year} {make} {model}", score=result.overall_score, grade=result.grade.value)
    _display_deal(result)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def quality(
    ctx: typer.Context,
    snapshot: str = typer.Argument(..., help="Vehicle snapshot YAML file"),
):
    """Score an owned vehicle's ongoing health (300-850)."""
    state = _state(ctx)
    try:
        data = load_vehicle_snapshot(snapshot)
        result = calculate_quality_score(data.vehicle, data.cost_entries, as_of=state.as_of)
    except HANDLED_ERRORS as e:
        _fail(e)

    log_analysis("quality", data.vehicle.display_name, score=result.total_score, grade=result.grade.value)
    _display_quality(result)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def sell(
    ctx: typer.Context,
    snapshot: str = typer.Argument(..., help="Vehicle snapshot YAML file"),
    running_costs: Optional[float] = typer.Option(
        None,
        "--running-costs",
        help="Monthly running costs (defaults to the snapshot value)"
    ),
    loan_balance: Optional[float] = typer.Option(
        None,
        "--loan-balance",
        help="Outstanding loan balance (defaults to the snapshot loan's current balance)"
    ),
):
    """Advise whether to hold or sell an owned vehicle."""
    state = _state(ctx)
    try:
        data = load_vehicle_snapshot(snapshot)
        result = _run_sell(data, state, running_costs, loan_balance)
    except HANDLED_ERRORS as e:
        _fail(e)

    log_analysis("sell", data.vehicle.display_name, score=result.sell_score, verdict=result.verdict.value)
    _display_sell(result)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def maintenance(
    ctx: typer.Context,
    snapshot: str = typer.Argument(..., help="Vehicle snapshot YAML file"),
):
    """Forecast maintenance costs and upcoming services."""
    state = _state(ctx)
    try:
        data = load_vehicle_snapshot(snapshot)
        result = generate_maintenance_insights(
            data.vehicle, data.cost_entries, as_of=state.as_of, config=state.config.maintenance
        )
    except HANDLED_ERRORS as e:
        _fail(e)

    log_analysis(
        "maintenance", data.vehicle.display_name,
        yearly_average=round(result.yearly_average, 2), status=result.comparison.status.value,
    )
    _display_maintenance(result)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def loan(
    ctx: typer.Context,
    principal: float = typer.Option(..., "--principal", help="Financed amount"),
    rate: float = typer.Option(..., "--rate", help="Annual interest rate in percent"),
    term: int = typer.Option(..., "--term", help="Term in months"),
    start: Optional[str] = typer.Option(None, "--start", help="Loan start date (defaults to --as-of)"),
    down_payment: float = typer.Option(0.0, "--down-payment", help="Cash paid up front"),
    extra: Optional[List[str]] = typer.Option(
        None,
        "--extra",
        help="Extra principal payment as YYYY-MM-DD:AMOUNT; repeatable"
    ),
    schedule: bool = typer.Option(False, "--schedule", help="Print the full amortization schedule"),
):
    """Compute a loan's payment, cost and payoff."""
    state = _state(ctx)
    try:
        terms = LoanTerms(
            principal=principal,
            annual_rate_percent=rate,
            term_months=term,
            start_date=_parse_date(start, "--start") if start else state.as_of,
            down_payment=down_payment,
            extra_payments=tuple(_parse_extra_payment(e) for e in extra or []),
        )
        summary = summarize_loan(terms, as_of=state.as_of)
        entries = amortization_schedule(terms) if schedule else []
    except HANDLED_ERRORS as e:
        _fail(e)

    log_analysis(
        "loan", f"{principal:.2f} over {term} months",
        monthly_payment=round(summary.monthly_payment, 2), payoff_month=summary.payoff_month,
    )

    console.print("\n[bold]Loan Summary[/bold]")
    console.print("-" * 40)
    console.print(f"Monthly payment: {_format_currency(summary.monthly_payment)}")
    console.print(f"Payoff: month {summary.payoff_month} ({summary.payoff_date.isoformat()})")
    console.print(f"Total interest: {_format_currency(summary.total_interest)}")
    console.print(f"Total paid: {_format_currency(summary.total_paid)}")
    console.print(f"Total cost incl. down payment: {_format_currency(summary.total_cost)}")
    console.print(f"Current balance: {_format_currency(summary.current_balance)}")
    console.print(f"Months elapsed / remaining: {summary.months_elapsed} / {summary.months_remaining}")
    if summary.months_saved > 0:
        console.print(
            f"[green]Extra payments save {_format_currency(summary.interest_saved)} "
            f"and {summary.months_saved} months[/]"
        )

    if entries:
        table = Table(title="Amortization Schedule")
        for column in ("Month", "Date", "Payment", "Principal", "Interest", "Extra", "Balance"):
            table.add_column(column, justify="right")
        for entry in entries:
            table.add_row(
                str(entry.month),
                entry.date.isoformat(),
                _format_currency(entry.payment),
                _format_currency(entry.principal_portion),
                _format_currency(entry.interest_portion),
                _format_currency(entry.extra_payment),
                _format_currency(entry.remaining_balance),
            )
        console.print(table)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def project(
    ctx: typer.Context,
    make: str = typer.Option(..., "--make", help="Vehicle make"),
    model: str = typer.Option(..., "--model", help="Vehicle model"),
    value: float = typer.Option(..., "--value", help="Current value"),
    months: int = typer.Option(24, "--months", help="Projection horizon in months"),
    msrp: Optional[float] = typer.Option(None, "--msrp", help="Floor the projection at 5% of this MSRP"),
):
    """Project a vehicle's value forward month by month."""
    state = _state(ctx)
    try:
        projection = project_values(value, make, model, months, as_of=state.as_of)
        if msrp is not None:
            projection = apply_value_floor(projection, msrp)
    except HANDLED_ERRORS as e:
        _fail(e)

    log_analysis("project", f"{make} {model}", months=months, final_value=round(projection[-1].value, 2))

    table = Table(title=f"Value Projection: {make} {model}")
    table.add_column("Month", justify="right")
    table.add_column("Date")
    table.add_column("Value", justify="right")
    for point in projection:
        table.add_row(str(point.month_offset), point.date.isoformat(), _format_currency(point.value))
    console.print(table)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def demo(ctx: typer.Context):
    """Run every analysis against the bundled sample vehicle."""
    state = _state(ctx)
    try:
        data = load_vehicle_snapshot(str(DEMO_SNAPSHOT))
        vehicle = data.vehicle
        deal_result = analyze_deal(
            make=vehicle.make,
            model=vehicle.model,
            model_year=vehicle.model_year,
            mileage=vehicle.current_mileage,
            asking_price=vehicle.current_value,
            trim_msrp=vehicle.trim_msrp,
            location=vehicle.location,
            accident_history=vehicle.accident_history,
            as_of=state.as_of,
            config=state.config.deal,
        )
        quality_result = calculate_quality_score(vehicle, data.cost_entries, as_of=state.as_of)
        sell_result = _run_sell(data, state, None, None)
        maintenance_result = generate_maintenance_insights(
            vehicle, data.cost_entries, as_of=state.as_of, config=state.config.maintenance
        )
    except HANDLED_ERRORS as e:
        _fail(e)

    console.print(f"\n[bold]Demo vehicle:[/bold] {vehicle.display_name}")
    _display_deal(deal_result)
    _display_quality(quality_result)
    _display_sell(sell_result)
    _display_maintenance(maintenance_result)
    sys.exit(EXIT_CODE_PASS)


def _run_sell(
    data: VehicleSnapshot,
    state: CLIState,
    running_costs: Optional[float],
    loan_balance: Optional[float],
) -> SellAnalysis:
    if loan_balance is None and data.loan is not None:
        loan_balance = summarize_loan(data.loan, as_of=state.as_of).current_balance
    return analyze_sell_timing(
        data.vehicle,
        data.valuations,
        data.monthly_running_costs if running_costs is None else running_costs,
        loan_balance=loan_balance,
        as_of=state.as_of,
        config=state.config.sell_advisor,
    )


def _display_deal(result: DealAnalysisResult):
    console.print("\n[bold]Deal Analysis[/bold]")
    console.print("-" * 40)
    console.print(f"Overall score: {result.overall_score}/100 ({result.grade.value})")

    table = Table(show_header=True)
    table.add_column("Axis")
    table.add_column("Score", justify="right")
    table.add_row("Price", str(result.price_score))
    table.add_row("Mileage", str(result.mileage_score))
    table.add_row("Condition", str(result.condition_score))
    table.add_row("Market", str(result.market_score))
    console.print(table)

    console.print(f"Adjusted market value: {_format_currency(result.adjusted_market_value)}")
    for insight in result.insights:
        console.print(f"  • {insight}")
    console.print(f"\n[bold]Recommendation:[/bold] {result.recommendation}")


def _display_quality(result: QualityScoreResult):
    console.print("\n[bold]Quality Score[/bold]")
    console.print("-" * 40)
    console.print(f"Score: {result.total_score}/850 ({result.grade.value})")

    table = Table(show_header=True)
    table.add_column("Component")
    table.add_column("Score", justify="right")
    table.add_column("Max", justify="right")
    sub = result.sub_scores
    table.add_row("Maintenance", str(sub.maintenance), "250")
    table.add_row("Condition", str(sub.condition), "200")
    table.add_row("Mileage", str(sub.mileage), "150")
    table.add_row("Age", str(sub.age), "100")
    table.add_row("Cost efficiency", str(sub.cost_efficiency), "100")
    table.add_row("Market demand", str(sub.market_demand), "50")
    console.print(table)

    for insight in result.insights:
        console.print(f"  • {insight}")


def _display_sell(result: SellAnalysis):
    color = {"sellSoon": "green", "consider": "yellow", "holdOff": "cyan"}[result.verdict.value]
    console.print("\n[bold]Sell Timing[/bold]")
    console.print("-" * 40)
    console.print(f"Sell score: {result.sell_score}/100")
    console.print(f"Verdict: [{color}]{result.recommendation.title}[/] ({result.verdict.value})")
    console.print(result.recommendation.reason)
    console.print(f"Value trend: {result.trend.value}")
    console.print(f"Depreciation per month: {_format_currency(result.monthly_depreciation)}")
    console.print(f"Retained value: {result.retained_value_percent:.1f}%")
    console.print(f"Equity: {_format_currency(result.equity)}")
    if result.sweet_spot_months is not None:
        console.print(f"Sweet spot: {result.sweet_spot_months} months from now")
    else:
        console.print("Sweet spot: not within the projection horizon")


def _display_maintenance(result: MaintenanceInsights):
    comparison = result.comparison
    console.print("\n[bold]Maintenance Forecast[/bold]")
    console.print("-" * 40)
    console.print(f"Your yearly average: {_format_currency(result.yearly_average)}")
    console.print(
        f"Typical for this vehicle: {_format_currency(comparison.typical_yearly)} "
        f"({comparison.percent_difference:+.1f}%, {comparison.status.value})"
    )

    predictions = Table(title="Predicted Costs")
    predictions.add_column("Year", justify="right")
    predictions.add_column("Cost", justify="right")
    predictions.add_column("Mileage", justify="right")
    predictions.add_column("Confidence", justify="right")
    predictions.add_column("Major services")
    for prediction in result.five_year_predictions:
        predictions.add_row(
            str(prediction.year),
            _format_currency(prediction.predicted_cost),
            f"{prediction.estimated_mileage:,}",
            f"{prediction.confidence:.0%}",
            ", ".join(prediction.major_services) or "-",
        )
    console.print(predictions)

    upcoming = Table(title="Upcoming Maintenance")
    upcoming.add_column("Service")
    upcoming.add_column("Due at", justify="right")
    upcoming.add_column("Cost", justify="right")
    upcoming.add_column("Priority")
    for item in result.upcoming_maintenance:
        upcoming.add_row(
            item.service,
            f"{item.due_at_mileage:,}",
            _format_currency(item.estimated_cost),
            item.priority.value,
        )
    console.print(upcoming)

    analytics = result.analytics
    console.print(f"Total spent: {_format_currency(analytics.total_spent)}")
    console.print(f"Cost per month: {_format_currency(analytics.cost_per_month)}")
    console.print(f"Cost trend: {analytics.trend.value}")


if __name__ == "__main__":
    app()
