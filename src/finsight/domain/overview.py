"""Ledger overview, budget standing and savings goal progress."""

import calendar
from datetime import date
from decimal import Decimal
from typing import Mapping, Optional, Sequence

from dateutil.relativedelta import relativedelta

from finsight.domain.buckets import transactions_between
from finsight.domain.entities import (
    Bucket,
    Budget,
    BudgetPeriod,
    BudgetStatus,
    Category,
    GoalProgress,
    LedgerOverview,
    MonthSummary,
    SavingsGoal,
    Transaction,
    TransactionType,
)
from finsight.domain.stats import decimal_mean, to_money


def build_overview(monthly_buckets: Sequence[Bucket]) -> LedgerOverview:
    """Summarize trailing month buckets, current month last."""
    months = tuple(
        MonthSummary(month=bucket.start, income=bucket.income_total, expenses=bucket.expense_total)
        for bucket in monthly_buckets
    )
    total_income = sum((m.income for m in months), Decimal("0"))
    total_expenses = sum((m.expenses for m in months), Decimal("0"))
    savings_rate = (
        float((total_income - total_expenses) / total_income * 100) if total_income > 0 else 0.0
    )
    current = months[-1] if months else None

    # max() keeps the earliest month on ties.
    return LedgerOverview(
        months=months,
        total_income=to_money(total_income),
        total_expenses=to_money(total_expenses),
        avg_monthly_income=to_money(decimal_mean([m.income for m in months])),
        avg_monthly_expenses=to_money(decimal_mean([m.expenses for m in months])),
        avg_monthly_savings=to_money(decimal_mean([m.savings for m in months])),
        current_month_income=current.income if current else Decimal("0"),
        current_month_expenses=current.expenses if current else Decimal("0"),
        highest_expense_month=max(months, key=lambda m: m.expenses) if months else None,
        highest_income_month=max(months, key=lambda m: m.income) if months else None,
        best_savings_month=max(months, key=lambda m: m.savings) if months else None,
        savings_rate=savings_rate,
    )


def month_bounds(now: date) -> tuple[date, date]:
    """Return the first and last day of the month containing ``now``."""
    last_day = calendar.monthrange(now.year, now.month)[1]
    return now.replace(day=1), now.replace(day=last_day)


def category_spending(
    transactions: Sequence[Transaction], start: date, end: date
) -> dict[Optional[str], Decimal]:
    """Sum expense amounts per category id within ``[start, end]``."""
    totals: dict[Optional[str], Decimal] = {}
    for txn in transactions_between(transactions, start, end):
        if txn.type == TransactionType.EXPENSE:
            totals[txn.category_id] = totals.get(txn.category_id, Decimal("0")) + txn.amount
    return totals


def budget_statuses(
    budgets: Sequence[Budget],
    categories: Mapping[str, Category],
    transactions: Sequence[Transaction],
    now: date,
) -> list[BudgetStatus]:
    """Month-to-date standing of each monthly budget.

    Projected spending extrapolates the month-to-date daily rate over the
    whole month.
    """
    month_start, month_end = month_bounds(now)
    spending = category_spending(transactions, month_start, now)
    days_passed = (now - month_start).days + 1
    total_days = (month_end - month_start).days + 1
    days_remaining = total_days - days_passed

    statuses = []
    for budget in budgets:
        if budget.period != BudgetPeriod.MONTHLY:
            continue
        spent = spending.get(budget.category_id, Decimal("0"))
        remaining = max(Decimal("0"), budget.amount - spent)
        percent_used = float(spent / budget.amount * 100) if budget.amount > 0 else 0.0
        daily_limit = remaining / days_remaining if days_remaining > 0 else Decimal("0")
        statuses.append(
            BudgetStatus(
                budget=budget,
                category=categories.get(budget.category_id),
                spent=to_money(spent),
                remaining=to_money(remaining),
                percent_used=percent_used,
                projected_spending=to_money(spent / days_passed * total_days),
                recommended_daily_limit=to_money(daily_limit),
                days_remaining=days_remaining,
            )
        )
    return statuses


def goal_progress(
    goals: Sequence[SavingsGoal], now: date, avg_monthly_savings: Decimal
) -> list[GoalProgress]:
    """Compute progress figures for each savings goal.

    A goal without a deadline is always on track. A goal whose deadline has
    passed is on track only if it is complete. Otherwise the goal is on track
    when the monthly saving it still needs does not exceed the ledger's
    average monthly savings.
    """
    results = []
    for goal in goals:
        remaining = max(Decimal("0"), goal.target_amount - goal.current_amount)
        is_complete = goal.current_amount >= goal.target_amount
        percent = (
            float(goal.current_amount / goal.target_amount * 100)
            if goal.target_amount > 0
            else 0.0
        )

        days_remaining = None
        months_remaining = None
        monthly_needed = None
        on_track = True
        if goal.deadline is not None:
            days_remaining = max(0, (goal.deadline - now).days)
            delta = relativedelta(goal.deadline, now)
            months_remaining = max(0, delta.years * 12 + delta.months)
            if is_complete:
                on_track = True
            elif goal.deadline < now:
                on_track = False
            else:
                monthly_needed = to_money(remaining / max(months_remaining, 1))
                on_track = monthly_needed <= avg_monthly_savings

        results.append(
            GoalProgress(
                goal=goal,
                percent_complete=percent,
                remaining_amount=to_money(remaining),
                days_remaining=days_remaining,
                months_remaining=months_remaining,
                monthly_savings_needed=monthly_needed,
                is_complete=is_complete,
                on_track=on_track,
            )
        )
    return results
