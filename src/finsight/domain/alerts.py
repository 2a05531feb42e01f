"""Rule-based alert generation.

Each rule is a pure function of an ``AlertContext`` that yields alerts. Rules
never see each other's output, so they can be reordered, added or removed
independently. The final list is ordered by severity; alerts of the same
severity keep rule evaluation order.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Iterable, Iterator, Mapping, Optional, Sequence

from finsight.domain.buckets import transactions_between
from finsight.domain.entities import (
    Alert,
    AlertSeverity,
    Bucket,
    BudgetStatus,
    BurnRate,
    Category,
    GoalProgress,
    LedgerOverview,
    RecurringPattern,
    RunwayStatus,
    Transaction,
    TransactionType,
)
from finsight.domain.overview import category_spending
from finsight.domain.stats import decimal_mean, percent_change, pstdev, to_money

logger = logging.getLogger(__name__)

BUDGET_WARNING_PERCENT = 90
SPIKE_CRITICAL_PERCENT = 30
SPIKE_WARNING_PERCENT = 20
CATEGORY_SPIKE_RATIO = Decimal("1.5")
INCOME_DECLINE_PERCENT = -10
LARGE_TRANSACTION_SHARE = Decimal("0.2")
MID_MONTH_DAY = 15
UNUSUAL_AMOUNT_DEVIATIONS = 2
MIN_AMOUNT_HISTORY = 2


def _money(value: Decimal) -> str:
    return f"${value:,.2f}"


@dataclass(frozen=True)
class AlertContext:
    """Shared derived data the alert rules read."""

    now: date
    balance: Decimal
    monthly_buckets: tuple[Bucket, ...]
    overview: LedgerOverview
    burn_rate: BurnRate
    budget_statuses: tuple[BudgetStatus, ...]
    goal_progress: tuple[GoalProgress, ...]
    due_soon: tuple[RecurringPattern, ...]
    categories: Mapping[str, Category]
    current_transactions: tuple[Transaction, ...]
    category_current: Mapping[Optional[str], Decimal]
    category_prior_avg: Mapping[Optional[str], Decimal]
    category_amounts: Mapping[str, tuple[Decimal, ...]]

    @property
    def current_month(self) -> Optional[Bucket]:
        return self.monthly_buckets[-1] if self.monthly_buckets else None

    def prior_average(self, field: str, offset: int = 1, months: int = 3) -> Decimal:
        """Average of a bucket field over ``months`` months ending ``offset`` before now."""
        end = len(self.monthly_buckets) - offset
        start = end - months
        if start < 0:
            return Decimal("0")
        return decimal_mean([getattr(b, field) for b in self.monthly_buckets[start:end]])


def build_alert_context(
    *,
    now: date,
    balance: Decimal,
    transactions: Sequence[Transaction],
    monthly_buckets: Sequence[Bucket],
    overview: LedgerOverview,
    burn_rate: BurnRate,
    budget_statuses: Sequence[BudgetStatus],
    goal_progress: Sequence[GoalProgress],
    due_soon: Sequence[RecurringPattern],
    categories: Mapping[str, Category],
) -> AlertContext:
    """Assemble the context, including per-category spending history."""
    month_start = now.replace(day=1)
    current = tuple(transactions_between(transactions, month_start, now))

    prior_avg: dict[Optional[str], Decimal] = {}
    if len(monthly_buckets) >= 4:
        prior_start = monthly_buckets[-4].start
        prior_end = monthly_buckets[-2].end
        for category_id, total in category_spending(transactions, prior_start, prior_end).items():
            prior_avg[category_id] = total / 3

    amounts: dict[str, list[Decimal]] = {}
    if monthly_buckets:
        history = transactions_between(
            transactions, monthly_buckets[0].start, month_start - timedelta(days=1)
        )
        for txn in history:
            if txn.type == TransactionType.EXPENSE and txn.category_id is not None:
                amounts.setdefault(txn.category_id, []).append(txn.amount)

    return AlertContext(
        now=now,
        balance=balance,
        monthly_buckets=tuple(monthly_buckets),
        overview=overview,
        burn_rate=burn_rate,
        budget_statuses=tuple(budget_statuses),
        goal_progress=tuple(goal_progress),
        due_soon=tuple(due_soon),
        categories=categories,
        current_transactions=current,
        category_current=category_spending(current, month_start, now),
        category_prior_avg=prior_avg,
        category_amounts={key: tuple(values) for key, values in amounts.items()},
    )


AlertRule = Callable[[AlertContext], Iterable[Alert]]


def budget_rule(ctx: AlertContext) -> Iterator[Alert]:
    """Budgets that are exceeded or nearly exhausted."""
    for status in ctx.budget_statuses:
        if status.category is None:
            continue
        budget = status.budget
        usage = (
            f"You've spent {_money(status.spent)} of {_money(budget.amount)} budget "
            f"({status.percent_used:.0f}% used)"
        )
        if status.is_exceeded:
            yield Alert(
                id=f"budget-over-{budget.key}",
                severity=AlertSeverity.CRITICAL,
                title=f"{status.category.name} Budget Exceeded",
                message=usage,
                value=to_money(status.spent - budget.amount),
                category=status.category,
            )
        elif status.percent_used >= BUDGET_WARNING_PERCENT:
            yield Alert(
                id=f"budget-warning-{budget.key}",
                severity=AlertSeverity.WARNING,
                title=f"{status.category.name} Budget Almost Exceeded",
                message=usage,
                value=to_money(budget.amount - status.spent),
                category=status.category,
            )


def spending_spike_rule(ctx: AlertContext) -> Iterator[Alert]:
    """This month's spending well above the prior three-month average."""
    current = ctx.current_month
    average = ctx.prior_average("expense_total")
    if current is None or average <= 0:
        return
    increase = percent_change(current.expense_total, average)
    difference = to_money(current.expense_total - average)
    if increase > SPIKE_CRITICAL_PERCENT:
        yield Alert(
            id="unusual-spike",
            severity=AlertSeverity.CRITICAL,
            title="Unusual Spending Spike Detected",
            message=(
                f"Spending is {increase:.0f}% higher than your average "
                f"({_money(to_money(average))})"
            ),
            value=difference,
        )
    elif increase > SPIKE_WARNING_PERCENT:
        yield Alert(
            id="spending-increase",
            severity=AlertSeverity.WARNING,
            title="Above Average Spending",
            message=f"Spending is {increase:.0f}% higher than usual this month",
            value=difference,
        )


def negative_balance_rule(ctx: AlertContext) -> Iterator[Alert]:
    """Month-to-date net flow extrapolated to month end drives the balance negative."""
    current = ctx.current_month
    if current is None:
        return
    days_in_month = calendar.monthrange(ctx.now.year, ctx.now.month)[1]
    days_passed = ctx.now.day
    daily_net = current.net / days_passed
    projected = to_money(ctx.balance + daily_net * (days_in_month - days_passed))
    if projected < 0:
        yield Alert(
            id="negative-balance-projected",
            severity=AlertSeverity.CRITICAL,
            title="Balance Projected to Go Negative",
            message=(
                f"At the current pace your balance will be {_money(projected)} "
                "by the end of the month"
            ),
            value=projected,
        )


def runway_rule(ctx: AlertContext) -> Iterator[Alert]:
    """Less than one month of runway left."""
    burn = ctx.burn_rate
    if burn.is_unbounded or burn.status != RunwayStatus.CRITICAL:
        return
    yield Alert(
        id="runway-critical",
        severity=AlertSeverity.CRITICAL,
        title="Less Than a Month of Runway",
        message=(
            f"Your balance covers about {burn.days_remaining} days "
            f"at a net burn of {_money(burn.net_burn)} per month"
        ),
        value=burn.months_remaining,
    )


def category_spike_rule(ctx: AlertContext) -> Iterator[Alert]:
    """Categories spending at least 50% more than their trailing average."""
    for category_id, category in ctx.categories.items():
        average = ctx.category_prior_avg.get(category_id, Decimal("0"))
        current = ctx.category_current.get(category_id, Decimal("0"))
        if average <= 0 or current < average * CATEGORY_SPIKE_RATIO:
            continue
        yield Alert(
            id=f"category-spike-{category_id}",
            severity=AlertSeverity.WARNING,
            title=f"High {category.name} Spending",
            message=(
                f"{category.name} spending is {_money(to_money(current))} this month, "
                f"{percent_change(current, average):.0f}% above your "
                f"{_money(to_money(average))} average"
            ),
            value=to_money(current - average),
            category=category,
        )


def unusual_transaction_rule(ctx: AlertContext) -> Iterator[Alert]:
    """Expenses more than two standard deviations above their category's usual amount."""
    for txn in ctx.current_transactions:
        if txn.type != TransactionType.EXPENSE or txn.category_id not in ctx.categories:
            continue
        history = ctx.category_amounts.get(txn.category_id, ())
        if len(history) < MIN_AMOUNT_HISTORY:
            continue
        spread = pstdev(history)
        if not spread:
            continue
        average = decimal_mean(list(history))
        deviations = (txn.amount - average) / spread
        if deviations <= UNUSUAL_AMOUNT_DEVIATIONS:
            continue
        category = ctx.categories[txn.category_id]
        label = txn.description or category.name
        yield Alert(
            id=f"unusual-transaction-{txn.id}",
            severity=AlertSeverity.WARNING,
            title=f"Unusual {category.name} Expense",
            message=(
                f"{label} for {_money(txn.amount)} is {deviations:.1f} standard deviations "
                f"above your usual {_money(to_money(average))}"
            ),
            value=to_money(txn.amount - average),
            category=category,
        )


def no_income_rule(ctx: AlertContext) -> Iterator[Alert]:
    """No income recorded past the middle of the month."""
    current = ctx.current_month
    if current is None or ctx.now.day <= MID_MONTH_DAY or current.income_total > 0:
        return
    yield Alert(
        id="no-income",
        severity=AlertSeverity.CRITICAL,
        title="No Income Recorded This Month",
        message=f"It's {ctx.now.strftime('%B %d')} and no income has been recorded yet",
        actionable=False,
    )


def income_decline_rule(ctx: AlertContext) -> Iterator[Alert]:
    """Income over the last three complete months fell against the three before."""
    recent = ctx.prior_average("income_total", offset=1)
    earlier = ctx.prior_average("income_total", offset=4)
    if earlier <= 0:
        return
    change = percent_change(recent, earlier)
    if change < INCOME_DECLINE_PERCENT:
        yield Alert(
            id="income-declining",
            severity=AlertSeverity.WARNING,
            title="Income Is Declining",
            message=(
                f"Average monthly income dropped {abs(change):.0f}% to "
                f"{_money(to_money(recent))}"
            ),
            value=to_money(recent - earlier),
        )


def large_transaction_rule(ctx: AlertContext) -> Iterator[Alert]:
    """The largest expense this month exceeds a fifth of average monthly income."""
    threshold = ctx.overview.avg_monthly_income * LARGE_TRANSACTION_SHARE
    if threshold <= 0:
        return
    largest = None
    for txn in ctx.current_transactions:
        if txn.type != TransactionType.EXPENSE or txn.amount <= threshold:
            continue
        if largest is None or txn.amount > largest.amount:
            largest = txn
    if largest is None:
        return
    category = ctx.categories.get(largest.category_id) if largest.category_id else None
    label = largest.description or (category.name if category else "A transaction")
    yield Alert(
        id=f"large-transaction-{largest.id}",
        severity=AlertSeverity.INFO,
        title="Large Transaction",
        message=(
            f"{label} for {_money(largest.amount)} is more than 20% of your "
            "average monthly income"
        ),
        value=largest.amount,
        category=category,
    )


def savings_rule(ctx: AlertContext) -> Iterator[Alert]:
    """Positive savings this month, above the monthly average."""
    savings = ctx.overview.current_month_savings
    if savings <= 0 or savings <= ctx.overview.avg_monthly_savings:
        return
    yield Alert(
        id="savings-above-average",
        severity=AlertSeverity.SUCCESS,
        title="Great Savings Month",
        message=(
            f"You've saved {_money(savings)} this month, above your "
            f"{_money(ctx.overview.avg_monthly_savings)} average"
        ),
        value=savings,
        actionable=False,
    )


def category_no_spend_rule(ctx: AlertContext) -> Iterator[Alert]:
    """Categories with usual spending but none this month, past mid-month."""
    if ctx.now.day <= MID_MONTH_DAY:
        return
    for category_id, category in ctx.categories.items():
        average = ctx.category_prior_avg.get(category_id, Decimal("0"))
        if average <= 0 or ctx.category_current.get(category_id, Decimal("0")) > 0:
            continue
        yield Alert(
            id=f"category-no-spend-{category_id}",
            severity=AlertSeverity.SUCCESS,
            title=f"No {category.name} Spending",
            message=(
                f"You haven't spent anything on {category.name} this month "
                f"(usually {_money(to_money(average))})"
            ),
            value=to_money(average),
            category=category,
            actionable=False,
        )


def recurring_due_rule(ctx: AlertContext) -> Iterator[Alert]:
    """Recurring payments expected within the due-soon window."""
    for pattern in ctx.due_soon:
        if pattern.transaction_type != TransactionType.EXPENSE:
            continue
        days = (pattern.next_expected_date - ctx.now).days
        when = "today" if days == 0 else f"in {days} day{'s' if days != 1 else ''}"
        yield Alert(
            id=f"recurring-due-{pattern.category_id}-{pattern.next_expected_date.isoformat()}",
            severity=AlertSeverity.INFO,
            title=f"{pattern.description} Due Soon",
            message=(
                f"{pattern.frequency.value.capitalize()} payment of about "
                f"{_money(pattern.avg_amount)} expected {when}"
            ),
            value=pattern.avg_amount,
            category=ctx.categories.get(pattern.category_id) if pattern.category_id else None,
        )


def goal_rule(ctx: AlertContext) -> Iterator[Alert]:
    """Savings goals that are behind schedule or reached."""
    for index, progress in enumerate(ctx.goal_progress):
        goal = progress.goal
        key = goal.id if goal.id is not None else str(index)
        name = goal.name or "Savings goal"
        if progress.is_complete:
            yield Alert(
                id=f"goal-complete-{key}",
                severity=AlertSeverity.SUCCESS,
                title=f"{name} Reached",
                message=f"You've saved {_money(goal.current_amount)} of {_money(goal.target_amount)}",
                value=goal.current_amount,
                actionable=False,
            )
        elif not progress.on_track:
            needed = progress.monthly_savings_needed
            detail = (
                f"you need {_money(needed)} per month to make the deadline"
                if needed is not None
                else "the deadline has passed"
            )
            yield Alert(
                id=f"goal-behind-{key}",
                severity=AlertSeverity.WARNING,
                title=f"{name} Behind Schedule",
                message=f"{progress.percent_complete:.0f}% complete; {detail}",
                value=progress.remaining_amount,
            )


DEFAULT_RULES: tuple[AlertRule, ...] = (
    budget_rule,
    spending_spike_rule,
    negative_balance_rule,
    runway_rule,
    category_spike_rule,
    unusual_transaction_rule,
    no_income_rule,
    income_decline_rule,
    large_transaction_rule,
    savings_rule,
    category_no_spend_rule,
    recurring_due_rule,
    goal_rule,
)


def sort_alerts(alerts: Iterable[Alert]) -> list[Alert]:
    """Order by severity priority, keeping input order within a severity."""
    return sorted(alerts, key=lambda alert: alert.severity.priority)


def generate_alerts(
    ctx: AlertContext, rules: Sequence[AlertRule] = DEFAULT_RULES
) -> list[Alert]:
    """Evaluate every rule and return the prioritized alert feed."""
    alerts: list[Alert] = []
    for rule in rules:
        alerts.extend(rule(ctx))
    logger.debug("Generated %d alerts from %d rules", len(alerts), len(rules))
    return sort_alerts(alerts)
