"""What-if scenarios over a cash flow projection.

Each scenario takes the baseline projected months and returns a copy
adjusted for one hypothetical change, plus its total effect on the final
balance. Baseline months are never modified.
"""

import dataclasses
import math
from decimal import Decimal
from typing import Sequence

from finsight.domain.entities import ProjectedMonth, ScenarioComparison, WhatIfScenario
from finsight.domain.errors import DomainError, negative_value
from finsight.domain.stats import to_money


def _money(value: Decimal) -> str:
    return f"${value:,.2f}"


def _signed_money(value: Decimal) -> str:
    sign = "-" if value < 0 else "+"
    return f"{sign}${abs(value):,.2f}"


def _require_non_negative(field_name: str, value) -> None:
    if value < 0:
        raise DomainError(negative_value(field_name, value))


def _shift(month: ProjectedMonth, *, income=0, expense=0, cumulative=0) -> ProjectedMonth:
    """Return ``month`` with flows and balance moved by the given amounts."""
    return dataclasses.replace(
        month,
        income=to_money(month.income + income),
        expense=to_money(month.expense + expense),
        net=to_money(month.net + income - expense),
        balance=to_money(month.balance + cumulative),
    )


def salary_increase(
    projections: Sequence[ProjectedMonth], amount: Decimal, start_month: int = 0
) -> WhatIfScenario:
    """Raise monthly income by ``amount`` from the month at index ``start_month`` on."""
    _require_non_negative("start_month", start_month)
    adjusted = []
    for index, month in enumerate(projections):
        if index < start_month:
            adjusted.append(month)
            continue
        adjusted.append(
            _shift(month, income=amount, cumulative=amount * (index - start_month + 1))
        )

    total = to_money(amount * max(0, len(projections) - start_month))
    if total > 0:
        recommendation = (
            f"This would improve your financial position by {_money(total)} "
            "over the projection period."
        )
    else:
        recommendation = "Consider negotiating a raise or finding additional income."
    return WhatIfScenario(
        name="Salary Increase",
        description=f"Impact of a {_money(amount)} monthly income increase",
        projections=tuple(adjusted),
        total_impact=total,
        recommendation=recommendation,
    )


def loan_payoff(
    projections: Sequence[ProjectedMonth], payment: Decimal, remaining_months: int
) -> WhatIfScenario:
    """Drop a loan payment once ``remaining_months`` payments have been made."""
    _require_non_negative("payment", payment)
    _require_non_negative("remaining_months", remaining_months)
    adjusted = []
    for index, month in enumerate(projections):
        if index < remaining_months:
            adjusted.append(month)
            continue
        adjusted.append(
            _shift(month, expense=-payment, cumulative=payment * (index - remaining_months + 1))
        )

    if remaining_months < len(projections):
        payoff = projections[remaining_months].month.strftime("%b %Y")
    else:
        payoff = "the end of the projection period"
    total = to_money(payment * max(0, len(projections) - remaining_months))
    return WhatIfScenario(
        name="Loan Payoff",
        description=f"Impact of finishing loan payments by {payoff}",
        projections=tuple(adjusted),
        total_impact=total,
        recommendation=(
            f"After paying off the loan you free up {_money(payment)} per month, "
            f"improving your position by {_money(total)}."
        ),
    )


def expense_reduction(
    projections: Sequence[ProjectedMonth], amount: Decimal, category: str
) -> WhatIfScenario:
    """Cut monthly spending in ``category`` by ``amount`` for the whole horizon."""
    _require_non_negative("amount", amount)
    adjusted = [
        _shift(month, expense=-amount, cumulative=amount * (index + 1))
        for index, month in enumerate(projections)
    ]
    total = to_money(amount * len(projections))
    return WhatIfScenario(
        name="Expense Reduction",
        description=f"Impact of reducing {category} by {_money(amount)} per month",
        projections=tuple(adjusted),
        total_impact=total,
        recommendation=(
            f"Cutting {category} would save you {_money(total)} over the projection period."
        ),
    )


def new_expense(
    projections: Sequence[ProjectedMonth], amount: Decimal, name: str
) -> WhatIfScenario:
    """Add a new recurring monthly expense of ``amount``."""
    _require_non_negative("amount", amount)
    adjusted = [
        _shift(month, expense=amount, cumulative=-amount * (index + 1))
        for index, month in enumerate(projections)
    ]
    total = to_money(-amount * len(projections))
    if total < 0:
        recommendation = (
            f"This expense would reduce your savings by {_money(-total)}. "
            "Make sure it fits your budget."
        )
    else:
        recommendation = "Review whether this expense fits your financial goals."
    return WhatIfScenario(
        name="New Expense",
        description=f"Impact of adding {name} at {_money(amount)} per month",
        projections=tuple(adjusted),
        total_impact=total,
        recommendation=recommendation,
    )


def emergency_fund(
    projections: Sequence[ProjectedMonth], monthly_savings: Decimal, target: Decimal
) -> WhatIfScenario:
    """Set aside ``monthly_savings`` each month until ``target`` is reached.

    Money moved into the fund leaves the projected balance. The last
    contribution is capped so the fund never exceeds ``target``.
    """
    if monthly_savings <= 0:
        raise DomainError(f"monthly_savings must be positive, got {monthly_savings}")
    _require_non_negative("target", target)

    saved = Decimal("0")
    adjusted = []
    for month in projections:
        contribution = min(monthly_savings, target - saved)
        saved += contribution
        adjusted.append(_shift(month, expense=contribution, cumulative=-saved))

    months_to_target = math.ceil(target / monthly_savings)
    total = to_money(-saved)
    if months_to_target <= len(projections):
        recommendation = (
            f"You can reach your emergency fund goal in {months_to_target} months."
        )
    else:
        recommendation = (
            f"At this rate it takes {months_to_target} months to reach your goal. "
            "Consider larger monthly contributions."
        )
    return WhatIfScenario(
        name="Emergency Fund",
        description=(
            f"Building a {_money(target)} emergency fund at {_money(monthly_savings)} per month"
        ),
        projections=tuple(adjusted),
        total_impact=total,
        recommendation=recommendation,
    )


def compare_scenarios(scenarios: Sequence[WhatIfScenario]) -> ScenarioComparison:
    """Pick the scenarios with the highest and lowest total impact.

    Ties keep the earliest scenario.

    Raises:
        DomainError: If no scenarios are given
    """
    if not scenarios:
        raise DomainError("At least one scenario is required for a comparison")

    best = worst = scenarios[0]
    for scenario in scenarios[1:]:
        if scenario.total_impact > best.total_impact:
            best = scenario
        if scenario.total_impact < worst.total_impact:
            worst = scenario

    return ScenarioComparison(
        best_case=best,
        worst_case=worst,
        summary=(
            f"Best scenario: {best.name} ({_signed_money(best.total_impact)}). "
            f"Worst scenario: {worst.name} ({_signed_money(worst.total_impact)})."
        ),
    )
