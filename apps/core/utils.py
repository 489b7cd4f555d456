"""
Core utility functions for the dealership financing engine.

Contains the period arithmetic and installment math shared by account
origination and payment application. All monetary calculations use
Python's Decimal for precision.
"""

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, getcontext
from typing import Optional

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

# Set high precision for intermediate financial calculations
getcontext().prec = 28

TWO_PLACES = Decimal('0.01')

PERIODS_PER_YEAR = {
    'WEEKLY': 52,
    'BIWEEKLY': 26,
    'MONTHLY': 12,
    'QUARTERLY': 4,
    'ANNUALLY': 1,
}

DEFAULT_PERIODS_PER_YEAR = 12

# Length of one period for each frequency
PERIOD_DELTAS = {
    'WEEKLY': relativedelta(days=7),
    'BIWEEKLY': relativedelta(days=14),
    'MONTHLY': relativedelta(months=1),
    'QUARTERLY': relativedelta(months=3),
    'ANNUALLY': relativedelta(years=1),
}


def to_decimal(value) -> Decimal:
    """Coerce int, float, str or Decimal to Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(amount) -> Decimal:
    """Quantize an amount to cents using half-up rounding."""
    return to_decimal(amount).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def periods_per_year(frequency: str) -> int:
    """
    Number of billing periods in a year for a payment frequency.

    Unrecognized frequencies fall back to monthly.
    """
    try:
        return PERIODS_PER_YEAR[frequency]
    except KeyError:
        logger.warning(
            "Unknown payment frequency %r, defaulting to %d periods per year",
            frequency,
            DEFAULT_PERIODS_PER_YEAR,
        )
        return DEFAULT_PERIODS_PER_YEAR


def advance_due_date(value: date, frequency: str, periods: int = 1) -> date:
    """
    Advance a date by a whole number of periods.

    WEEKLY and BIWEEKLY add exactly 7 and 14 days per period. MONTHLY,
    QUARTERLY and ANNUALLY use calendar months: when the target month is
    shorter than the source day the result is clamped to the last day of
    that month (2024-01-31 + 1 month -> 2024-02-29).

    The whole offset is applied from ``value`` in one step, so advancing
    2024-01-31 by two months gives 2024-03-31, not 2024-03-29.

    Args:
        value: The anchor date.
        frequency: One of the PaymentFrequency values.
        periods: How many periods to add (may be 0).

    Returns:
        The advanced date.

    Raises:
        ValueError: If the frequency is unknown.
    """
    try:
        delta = PERIOD_DELTAS[frequency]
    except KeyError:
        raise ValueError(f"Unsupported payment frequency: {frequency!r}.")

    return value + delta * periods


def calculate_payment_dates(
    start_date: date,
    number_of_installments: int,
    frequency: str,
) -> tuple[Optional[date], Optional[date]]:
    """
    Compute the first due date and the final due date of a plan.

    The start date is period 0. A single installment is due immediately
    on the start date. With more installments, the next due date is one
    period after the start and the last installment falls
    ``number_of_installments - 1`` periods after it.

    Returns:
        Tuple of (next_due_date, end_date); both None when there are
        no installments.
    """
    if number_of_installments <= 0:
        return None, None

    if number_of_installments == 1:
        return start_date, start_date

    next_due_date = advance_due_date(start_date, frequency)
    end_date = advance_due_date(
        start_date, frequency, periods=number_of_installments - 1,
    )
    return next_due_date, end_date


def calculate_installment(
    principal,
    annual_rate,
    installments: int,
    frequency: str,
) -> Decimal:
    """
    Calculate the periodic installment of an amortizing plan.

    PMT = P × r × (1+r)^n / ((1+r)^n - 1)

    Where:
        P = principal (amount financed after the down payment)
        r = per-period rate (annual_rate / periods per year)
        n = number of installments

    The result is not rounded; callers quantize when persisting.

    Args:
        principal: Amount financed. Accepts Decimal, float, int or str.
        annual_rate: Annual rate as a decimal fraction (0.30 for 30%).
        installments: Number of installments (must be >= 1).
        frequency: Payment frequency used to derive the per-period rate.

    Returns:
        Installment amount as Decimal. Zero when principal <= 0.

    Raises:
        ValueError: If the rate is negative or installments < 1.
    """
    principal = to_decimal(principal)
    annual_rate = to_decimal(annual_rate)

    if installments < 1:
        raise ValueError("Number of installments must be at least 1.")
    if annual_rate < 0:
        raise ValueError("Interest rate cannot be negative.")
    if principal <= 0:
        return Decimal('0')

    n = Decimal(installments)

    # Interest-free plans split the principal evenly
    if annual_rate == 0:
        return principal / n

    rate_per_period = annual_rate / Decimal(periods_per_year(frequency))
    if rate_per_period == 0:
        return principal / n

    power_term = (Decimal('1') + rate_per_period) ** installments
    denominator = power_term - Decimal('1')
    if denominator == 0:
        return principal / n

    return principal * rate_per_period * power_term / denominator


def build_amortization_schedule(
    principal,
    annual_rate,
    installments: int,
    frequency: str,
) -> list[dict]:
    """
    Build a French amortization schedule for an amount financed.

    Every row pays the same installment (PMT rounded to cents) except
    the last one, which absorbs the rounding residual so the closing
    balance lands exactly on zero.

    Returns:
        List of dicts with installment_number, opening_balance, interest,
        principal, installment_amount and closing_balance, all in cents.
    """
    balance = round_money(principal)
    annual_rate = to_decimal(annual_rate)

    if balance <= 0 or installments < 1:
        return []

    if annual_rate == 0:
        rate_per_period = Decimal('0')
    else:
        rate_per_period = annual_rate / Decimal(periods_per_year(frequency))

    fixed_installment = round_money(
        calculate_installment(balance, annual_rate, installments, frequency)
    )

    schedule = []
    for number in range(1, installments + 1):
        interest = round_money(balance * rate_per_period)

        if number == installments:
            principal_part = balance
        else:
            principal_part = min(fixed_installment - interest, balance)
            principal_part = max(principal_part, Decimal('0.00'))

        closing_balance = balance - principal_part
        schedule.append({
            'installment_number': number,
            'opening_balance': balance,
            'interest': interest,
            'principal': principal_part,
            'installment_amount': principal_part + interest,
            'closing_balance': closing_balance,
        })
        balance = closing_balance

    return schedule
