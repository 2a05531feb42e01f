"""Weighted multi-horizon income and expense forecasting."""

import logging
from datetime import date
from decimal import Decimal
from typing import Mapping, Sequence

from dateutil.relativedelta import relativedelta

from finsight.domain.buckets import transactions_between
from finsight.domain.entities import (
    Bucket,
    CashFlowProjection,
    CashFlowTrend,
    Category,
    CategoryForecast,
    ConfidenceLevel,
    ForecastBundle,
    ProjectedMonth,
    SeriesForecast,
    Transaction,
    TransactionType,
)
from finsight.domain.stats import decimal_mean, linear_slope, mean, pstdev, to_money

logger = logging.getLogger(__name__)

# (trailing months, weight); weights sum to 1.
WINDOW_WEIGHTS: tuple[tuple[int, Decimal], ...] = (
    (3, Decimal("0.5")),
    (6, Decimal("0.3")),
    (12, Decimal("0.2")),
)

PROJECTION_HISTORY_MONTHS = 6
# Per month ahead, applied linearly.
INCOME_GROWTH = Decimal("0.02")
EXPENSE_INFLATION = Decimal("0.01")
# Average net above this share of average income counts as improving.
IMPROVING_SHARE = Decimal("0.1")


def series_confidence(values: Sequence[Decimal]) -> float:
    """Confidence in a trailing series.

    0 when the mean is 0 (no basis), 100 when there is no spread,
    otherwise 100 minus the coefficient of variation, floored at 0.
    """
    avg = mean(values)
    if not avg:
        return 0.0
    spread = pstdev(values)
    if not spread:
        return 100.0
    return max(0.0, 100.0 - float(spread) / float(avg) * 100)


def confidence_level(confidence: float) -> ConfidenceLevel:
    if confidence >= 80:
        return ConfidenceLevel.HIGH
    if confidence >= 60:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def forecast_series(values: Sequence[Decimal]) -> SeriesForecast:
    """Blend trailing 3/6/12-month averages of a monthly series.

    Args:
        values: Monthly totals in chronological order, current month last

    Returns:
        SeriesForecast with the blended value and its inputs
    """
    averages = {
        months: decimal_mean(list(values[-months:])) for months, _ in WINDOW_WEIGHTS
    }
    blended = sum(
        (averages[months] * weight for months, weight in WINDOW_WEIGHTS), Decimal("0")
    )
    return SeriesForecast(
        value=to_money(blended),
        avg_3_months=to_money(averages[3]),
        avg_6_months=to_money(averages[6]),
        avg_12_months=to_money(averages[12]),
        confidence=series_confidence(list(values[-3:])),
    )


def forecast_categories(
    transactions: Sequence[Transaction],
    categories: Mapping[str, Category],
    now: date,
    top_n: int,
) -> list[CategoryForecast]:
    """Rank expense categories by their trailing three-month mean spending.

    Transactions without a known category are left out.
    """
    window_start = now.replace(day=1) - relativedelta(months=2)
    totals: dict[str, Decimal] = {}
    for txn in transactions_between(transactions, window_start, now):
        if txn.type != TransactionType.EXPENSE or txn.category_id not in categories:
            continue
        totals[txn.category_id] = totals.get(txn.category_id, Decimal("0")) + txn.amount

    forecasts = [
        CategoryForecast(
            category_id=category_id,
            category_name=categories[category_id].name,
            amount=to_money(total / 3),
        )
        for category_id, total in totals.items()
    ]
    forecasts.sort(key=lambda item: (-item.amount, item.category_name))
    return forecasts[:top_n]


def build_forecast(
    monthly_buckets: Sequence[Bucket],
    transactions: Sequence[Transaction],
    categories: Mapping[str, Category],
    balance: Decimal,
    now: date,
    top_n: int = 5,
) -> ForecastBundle:
    """Forecast next-month income, expenses, savings and balance.

    Args:
        monthly_buckets: Twelve trailing month buckets, current month last
        transactions: Ledger transactions, used for the category ranking
        categories: Category lookup by id
        balance: Current balance
        now: Reference date
        top_n: Number of categories to return

    Returns:
        ForecastBundle
    """
    income = forecast_series([bucket.income_total for bucket in monthly_buckets])
    expense = forecast_series([bucket.expense_total for bucket in monthly_buckets])
    savings = income.value - expense.value
    confidence = (income.confidence + expense.confidence) / 2

    logger.debug(
        "Forecast income=%s expense=%s confidence=%.1f",
        income.value,
        expense.value,
        confidence,
    )
    return ForecastBundle(
        income=income,
        expense=expense,
        savings=savings,
        balance=to_money(balance + savings),
        confidence=confidence,
        confidence_level=confidence_level(confidence),
        categories=tuple(forecast_categories(transactions, categories, now, top_n)),
    )


def project_cash_flow(
    monthly_buckets: Sequence[Bucket], balance: Decimal, now: date, months: int
) -> CashFlowProjection:
    """Project monthly cash flow forward from ``balance``.

    Averages come from the trailing month buckets (at most six, and never
    more than the horizon). Each projected month grows income by 2% and
    expenses by 1% per month ahead, and adds the least-squares trend of the
    historical net cash flow scaled by the months ahead.

    Args:
        monthly_buckets: Trailing month buckets, current month last
        balance: Current balance
        now: Reference date
        months: Number of months to project

    Returns:
        CashFlowProjection
    """
    history_months = min(PROJECTION_HISTORY_MONTHS, months)
    history = list(monthly_buckets[-history_months:]) if history_months > 0 else []
    avg_income = decimal_mean([bucket.income_total for bucket in history])
    avg_expense = decimal_mean([bucket.expense_total for bucket in history])
    slope = Decimal(linear_slope([bucket.net for bucket in history]))

    projections = []
    running = balance
    first_month = now.replace(day=1)
    for offset in range(1, months + 1):
        income = to_money(avg_income * (1 + INCOME_GROWTH * offset))
        expense = to_money(avg_expense * (1 + EXPENSE_INFLATION * offset))
        net = income - expense + to_money(slope * offset)
        running = running + net
        projections.append(
            ProjectedMonth(
                month=first_month + relativedelta(months=offset),
                income=income,
                expense=expense,
                net=net,
                balance=to_money(running),
            )
        )

    avg_net = avg_income - avg_expense
    months_until_zero = None
    if avg_net < 0:
        months_until_zero = to_money(max(balance, Decimal("0")) / -avg_net)

    if avg_net > avg_income * IMPROVING_SHARE:
        trend = CashFlowTrend.IMPROVING
    elif avg_net < 0:
        trend = CashFlowTrend.DECLINING
    else:
        trend = CashFlowTrend.STABLE

    logger.debug(
        "Projected %d months from %d months of history: trend=%s slope=%s",
        months,
        len(history),
        trend.value,
        slope,
    )
    return CashFlowProjection(
        projections=tuple(projections),
        average_income=to_money(avg_income),
        average_expenses=to_money(avg_expense),
        average_net=to_money(avg_net),
        growth_trend=to_money(slope),
        projected_balance=to_money(running),
        months_until_zero=months_until_zero,
        trend=trend,
    )
