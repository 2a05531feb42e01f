"""Composite financial health score.

Six independently bounded factors are summed into a 0-100 score:

    savings rate          25
    budget adherence      20
    spending consistency  15
    emergency fund        15
    income stability      15
    expense ratio         10

The band constants are fixed; changing any of them changes scores that
users have already seen.
"""

import math
from decimal import Decimal
from typing import Optional, Sequence

from finsight.domain.entities import (
    Bucket,
    BudgetStatus,
    BurnRate,
    HealthGrade,
    HealthScoreBreakdown,
)
from finsight.domain.stats import clamp, coefficient_of_variation, mean

SAVINGS_MAX = 25
BUDGET_MAX = 20
CONSISTENCY_MAX = 15
EMERGENCY_MAX = 15
STABILITY_MAX = 15
EXPENSE_RATIO_MAX = 10

GRADE_BANDS: tuple[tuple[int, HealthGrade], ...] = (
    (85, HealthGrade.EXCELLENT),
    (70, HealthGrade.GOOD),
    (55, HealthGrade.FAIR),
    (40, HealthGrade.POOR),
)

RECOMMENDATIONS = {
    "savings": "Increase your savings rate: aim to set aside at least 20% of income.",
    "budget": "Review the categories that went over budget and adjust spending or limits.",
    "consistency": "Your weekly spending swings a lot; plan purchases to smooth it out.",
    "emergency": "Build an emergency fund that covers at least 3-6 months of expenses.",
    "stability": "Your income varies month to month; consider diversifying income sources.",
    "expense_ratio": "Expenses take up most of your income; look for recurring costs to cut.",
}


def savings_rate_score(savings_rate: float) -> int:
    if savings_rate >= 20:
        return 25
    if savings_rate >= 10:
        return 20
    if savings_rate >= 5:
        return 15
    if savings_rate > 0:
        return 10
    return 0


def budget_adherence_score(statuses: Sequence[BudgetStatus]) -> float:
    """Share of monthly budgets still within limit; full marks with no budgets."""
    if not statuses:
        return float(BUDGET_MAX)
    within = sum(1 for status in statuses if status.within_budget)
    return round(within / len(statuses) * BUDGET_MAX, 2)


def weekly_variation(weekly_buckets: Sequence[Bucket]) -> float:
    """Percent change in spending between the last two complete weeks.

    The final bucket is the current, partial week and is ignored.
    """
    if len(weekly_buckets) < 3:
        return 0.0
    previous = weekly_buckets[-3].expense_total
    latest = weekly_buckets[-2].expense_total
    if previous == 0:
        return 0.0 if latest == 0 else 100.0
    return abs(float((latest - previous) / previous * 100))


def consistency_score(variation: float) -> int:
    if variation < 5:
        return 15
    if variation < 10:
        return 12
    if variation < 20:
        return 8
    return 5


def emergency_fund_score(burn_rate: BurnRate) -> int:
    months = burn_rate.months_remaining
    if months is None or months >= 6:
        return 15
    if months >= 3:
        return 12
    if months >= 1:
        return 8
    return 5


def stability_from_cv(cv: float) -> float:
    """Map a coefficient of variation (percent) onto a 0-100 stability score."""
    if cv < 10:
        score = 100 - cv
    elif cv < 20:
        score = 89 - (cv - 10) * 1.9
    elif cv < 30:
        score = 69 - (cv - 20) * 1.9
    else:
        score = 49 - (cv - 30)
    return clamp(score, 0.0, 100.0)


def income_stability(monthly_incomes: Sequence[Decimal]) -> tuple[float, Optional[float]]:
    """Return (stability score, CV) of monthly income; (0, None) without income."""
    if not mean(monthly_incomes):
        return 0.0, None
    cv = coefficient_of_variation(monthly_incomes)
    return stability_from_cv(cv), cv


def expense_ratio(income: Decimal, expenses: Decimal) -> Optional[float]:
    """Expenses as a percent of income; None when there is spending but no income."""
    if expenses == 0:
        return 0.0
    if income == 0:
        return None
    return float(expenses / income * 100)


def expense_ratio_score(ratio: Optional[float]) -> int:
    if ratio is None:
        return 2
    if ratio <= 50:
        return 10
    if ratio <= 70:
        return 8
    if ratio <= 90:
        return 6
    if ratio < 100:
        return 4
    return 2


def grade_for(score: int) -> HealthGrade:
    for lower, grade in GRADE_BANDS:
        if score >= lower:
            return grade
    return HealthGrade.CRITICAL


def score_health(
    monthly_buckets: Sequence[Bucket],
    weekly_buckets: Sequence[Bucket],
    statuses: Sequence[BudgetStatus],
    burn_rate: BurnRate,
) -> HealthScoreBreakdown:
    """Score the ledger's financial health.

    Args:
        monthly_buckets: Twelve trailing month buckets, current month last
        weekly_buckets: Trailing week buckets, current week last
        statuses: Month-to-date standing of monthly budgets
        burn_rate: Runway figures

    Returns:
        HealthScoreBreakdown with sub-scores, composite, grade and advice
    """
    income = sum((bucket.income_total for bucket in monthly_buckets), Decimal("0"))
    expenses = sum((bucket.expense_total for bucket in monthly_buckets), Decimal("0"))
    savings_rate = float((income - expenses) / income * 100) if income > 0 else 0.0
    variation = weekly_variation(weekly_buckets)
    stability, cv = income_stability([bucket.income_total for bucket in monthly_buckets])
    ratio = expense_ratio(income, expenses)

    savings = savings_rate_score(savings_rate)
    budget = budget_adherence_score(statuses)
    consistency = consistency_score(variation)
    emergency = emergency_fund_score(burn_rate)
    stability_points = round(stability / 100 * STABILITY_MAX, 2)
    ratio_points = expense_ratio_score(ratio)

    total = savings + budget + consistency + emergency + stability_points + ratio_points
    score = int(clamp(math.floor(total + 0.5), 0, 100))

    recommendations = []
    for key, points, threshold in (
        ("savings", savings, 15),
        ("budget", budget, 15),
        ("consistency", consistency, 8),
        ("emergency", emergency, 12),
        ("stability", stability_points, 9),
        ("expense_ratio", ratio_points, 6),
    ):
        if points < threshold:
            recommendations.append(RECOMMENDATIONS[key])

    return HealthScoreBreakdown(
        savings_rate_score=float(savings),
        budget_adherence_score=budget,
        spending_consistency_score=float(consistency),
        emergency_fund_score=float(emergency),
        income_stability_score=stability_points,
        expense_ratio_score=float(ratio_points),
        score=score,
        grade=grade_for(score),
        savings_rate=savings_rate,
        expense_ratio=ratio,
        weekly_variation=variation,
        income_cv=cv,
        stability=stability,
        recommendations=tuple(recommendations),
    )
