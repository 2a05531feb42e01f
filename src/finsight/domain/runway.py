"""Burn rate and runway projection."""

from decimal import Decimal
from typing import Sequence

from finsight.domain.entities import Bucket, BurnRate, RunwayStatus
from finsight.domain.stats import decimal_mean, percent_change, to_money

DAYS_PER_MONTH = Decimal("30")
WINDOW_MONTHS = 3

# (exclusive upper bound in months, status)
RUNWAY_BANDS: tuple[tuple[Decimal, RunwayStatus], ...] = (
    (Decimal("1"), RunwayStatus.CRITICAL),
    (Decimal("3"), RunwayStatus.WARNING),
    (Decimal("6"), RunwayStatus.GOOD),
)


def runway_status(months_remaining: Decimal) -> RunwayStatus:
    """Band a finite runway in months."""
    for upper, status in RUNWAY_BANDS:
        if months_remaining < upper:
            return status
    return RunwayStatus.EXCELLENT


def calculate_burn_rate(monthly_buckets: Sequence[Bucket], balance: Decimal) -> BurnRate:
    """Derive spending velocity and runway from trailing month buckets.

    Only the last three buckets are used; the current, partial month is
    expected to be the last one.

    Args:
        monthly_buckets: Month buckets in chronological order
        balance: Current balance (opening balance plus all-time net)

    Returns:
        BurnRate with an unbounded runway when the ledger is not burning cash
    """
    window = list(monthly_buckets[-WINDOW_MONTHS:])
    avg_expense = decimal_mean([bucket.expense_total for bucket in window])
    net_burn = decimal_mean([bucket.expense_total - bucket.income_total for bucket in window])

    daily_burn = avg_expense / DAYS_PER_MONTH
    current_expense = window[-1].expense_total if window else Decimal("0")
    trend = percent_change(current_expense, avg_expense)

    if net_burn <= 0:
        days_remaining = None
        months_remaining = None
        status = RunwayStatus.EXCELLENT
    elif balance <= 0:
        days_remaining = Decimal("0")
        months_remaining = Decimal("0")
        status = RunwayStatus.CRITICAL
    else:
        days = balance / (net_burn / DAYS_PER_MONTH)
        days_remaining = days.quantize(Decimal("0.1"))
        months_remaining = (days / DAYS_PER_MONTH).quantize(Decimal("0.01"))
        status = runway_status(days / DAYS_PER_MONTH)

    return BurnRate(
        daily_burn=to_money(daily_burn),
        weekly_burn=to_money(daily_burn * 7),
        monthly_burn=to_money(avg_expense),
        net_burn=to_money(net_burn),
        balance=to_money(balance),
        days_remaining=days_remaining,
        months_remaining=months_remaining,
        status=status,
        burn_rate_trend=trend,
        is_net_positive=net_burn <= 0,
    )
