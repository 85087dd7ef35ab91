"""
Loan amortization.

Computes the fixed monthly payment for a vehicle loan and walks the schedule
month by month. Extra payments are lump-sum principal reductions applied in the
month they fall in; the regular payment stays the same, so the loan pays off
earlier.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, List, Optional

from .exceptions import InvalidLoanTerms
from .models import LoanTerms
from vehicle_analytics.utils.date_utils import add_months, months_between

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AmortizationEntry:
    """One month of an amortization schedule."""
    month: int
    date: date
    payment: float
    principal_portion: float
    interest_portion: float
    extra_payment: float
    remaining_balance: float


@dataclass(frozen=True)
class LoanSummary:
    """Aggregate figures for a loan as of a reference date."""
    monthly_payment: float
    payoff_month: int
    payoff_date: date
    total_interest: float
    total_paid: float
    total_cost: float
    months_elapsed: int
    months_remaining: int
    current_balance: float
    interest_paid_to_date: float
    principal_paid_to_date: float
    interest_saved: float
    months_saved: int


def monthly_payment(principal: float, annual_rate_percent: float, term_months: int) -> float:
    """Fixed monthly payment from the standard annuity formula.

    M = P * r * (1 + r)^n / ((1 + r)^n - 1), with r the monthly rate.
    A zero rate splits the principal evenly.

    Args:
        principal: Financed amount
        annual_rate_percent: Annual interest rate in percent (6 means 6%)
        term_months: Number of monthly payments

    Returns:
        Monthly payment

    Raises:
        InvalidLoanTerms: If principal or term is not positive, or rate is negative
    """
    if principal <= 0:
        raise InvalidLoanTerms("principal must be > 0")
    if term_months <= 0:
        raise InvalidLoanTerms("term_months must be > 0")
    if annual_rate_percent < 0:
        raise InvalidLoanTerms("annual_rate_percent cannot be negative")

    r = annual_rate_percent / 100.0 / 12.0
    if r == 0:
        return principal / term_months

    factor = (1 + r) ** term_months
    return principal * r * factor / (factor - 1)


def _extra_payments_by_month(loan: LoanTerms) -> Dict[int, float]:
    """Map schedule month (1-based) to the total extra paid in it."""
    by_month: Dict[int, float] = {}
    for extra in loan.extra_payments:
        month = max(months_between(loan.start_date, extra.date) + 1, 1)
        by_month[month] = by_month.get(month, 0.0) + extra.amount
    return by_month


def amortization_schedule(loan: LoanTerms) -> List[AmortizationEntry]:
    """Generate the month-by-month schedule for a loan.

    The schedule ends in the month the balance reaches zero, which is the
    final term month unless extra payments pay the loan off earlier. The last
    entry absorbs floating-point drift so the balance lands exactly on zero.

    Args:
        loan: Validated loan terms

    Returns:
        Ordered list of AmortizationEntry, at most term_months long
    """
    payment = monthly_payment(loan.principal, loan.annual_rate_percent, loan.term_months)
    r = loan.monthly_rate
    extras = _extra_payments_by_month(loan)

    entries = []
    balance = float(loan.principal)
    for month in range(1, loan.term_months + 1):
        interest = balance * r
        extra_applied = min(extras.get(month, 0.0), balance)
        after_extra = balance - extra_applied

        regular = payment - interest
        if month == loan.term_months or regular >= after_extra:
            regular = after_extra
            balance = 0.0
        else:
            balance = after_extra - regular

        entries.append(AmortizationEntry(
            month=month,
            date=add_months(loan.start_date, month),
            payment=interest + regular + extra_applied,
            principal_portion=regular + extra_applied,
            interest_portion=interest,
            extra_payment=extra_applied,
            remaining_balance=balance,
        ))

        if balance == 0.0:
            break

    logger.debug(
        "Amortized %.2f over %d months, paid off in month %d",
        loan.principal, loan.term_months, len(entries),
    )
    return entries


def summarize_loan(loan: LoanTerms, as_of: Optional[date] = None) -> LoanSummary:
    """Summarize a loan's cost and progress as of a reference date.

    Interest and months saved compare against the same loan without any
    extra payments.
    """
    as_of = as_of or date.today()
    schedule = amortization_schedule(loan)
    baseline = amortization_schedule(replace(loan, extra_payments=()))

    payoff_month = len(schedule)
    total_interest = sum(e.interest_portion for e in schedule)
    total_paid = sum(e.payment for e in schedule)
    baseline_interest = sum(e.interest_portion for e in baseline)

    elapsed = min(max(months_between(loan.start_date, as_of), 0), payoff_month)
    paid_entries = schedule[:elapsed]
    current_balance = paid_entries[-1].remaining_balance if paid_entries else float(loan.principal)

    return LoanSummary(
        monthly_payment=monthly_payment(loan.principal, loan.annual_rate_percent, loan.term_months),
        payoff_month=payoff_month,
        payoff_date=schedule[-1].date,
        total_interest=total_interest,
        total_paid=total_paid,
        total_cost=total_paid + loan.down_payment,
        months_elapsed=elapsed,
        months_remaining=payoff_month - elapsed,
        current_balance=current_balance,
        interest_paid_to_date=sum(e.interest_portion for e in paid_entries),
        principal_paid_to_date=loan.principal - current_balance,
        interest_saved=max(baseline_interest - total_interest, 0.0),
        months_saved=len(baseline) - payoff_month,
    )
