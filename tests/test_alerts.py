"""Tests for rule-based alert generation."""

from datetime import date
from decimal import Decimal

import pytest
from dateutil.relativedelta import relativedelta

from finsight.domain.alerts import (
    DEFAULT_RULES,
    build_alert_context,
    generate_alerts,
    sort_alerts,
)
from finsight.domain.analytics import analyze
from finsight.domain.buckets import trailing_months
from finsight.domain.entities import (
    Alert,
    AlertSeverity,
    Budget,
    Category,
    LedgerSnapshot,
    SavingsGoal,
    Transaction,
    TransactionType,
)
from finsight.domain.overview import build_overview
from finsight.domain.runway import calculate_burn_rate


CATEGORIES = (
    Category(id="food", name="Groceries", type=TransactionType.EXPENSE),
    Category(id="dining", name="Dining", type=TransactionType.EXPENSE),
    Category(id="rent", name="Rent", type=TransactionType.EXPENSE),
    Category(id="salary", name="Salary", type=TransactionType.INCOME),
)


class LedgerBuilder:
    """Accumulate transactions for an alert scenario."""

    def __init__(self):
        self.transactions = []

    def add(
        self,
        category_id,
        amount,
        day,
        txn_type=TransactionType.EXPENSE,
        description=None,
        txn_id=None,
    ):
        self.transactions.append(
            Transaction(
                id=txn_id or str(len(self.transactions) + 1),
                category_id=category_id,
                amount=Decimal(amount),
                date=day,
                type=txn_type,
                description=description,
            )
        )
        return self

    def income(self, amount, day):
        return self.add("salary", amount, day, TransactionType.INCOME)

    def monthly_income(self, amount, first, months):
        for offset in range(months):
            self.income(amount, first + relativedelta(months=offset))
        return self

    def snapshot(self, budgets=(), goals=(), opening_balance="0"):
        return LedgerSnapshot(
            transactions=tuple(self.transactions),
            categories=CATEGORIES,
            budgets=tuple(budgets),
            goals=tuple(goals),
            opening_balance=Decimal(opening_balance),
        )


def _alerts(snapshot, now):
    return {alert.id: alert for alert in analyze(snapshot, now).alerts}


@pytest.fixture
def empty_context():
    now = date(2024, 3, 10)
    monthly = trailing_months([], now, 12)
    return build_alert_context(
        now=now,
        balance=Decimal("0"),
        transactions=[],
        monthly_buckets=monthly,
        overview=build_overview(monthly),
        burn_rate=calculate_burn_rate(monthly, Decimal("0")),
        budget_statuses=[],
        goal_progress=[],
        due_soon=[],
        categories={},
    )


def test_empty_ledger_before_mid_month_has_no_alerts(empty_context):
    assert generate_alerts(empty_context) == []


def test_prior_average_needs_enough_history(empty_context):
    assert empty_context.prior_average("expense_total", offset=10, months=3) == Decimal("0")
    assert empty_context.current_month.label == "2024-03"


def test_budget_exceeded_and_almost_exceeded():
    ledger = LedgerBuilder()
    ledger.add("food", "120", date(2024, 3, 2))
    ledger.add("dining", "95", date(2024, 3, 3))
    budgets = [
        Budget(category_id="food", amount=Decimal("100"), id="b1"),
        Budget(category_id="dining", amount=Decimal("100"), id="b2"),
        Budget(category_id="rent", amount=Decimal("100"), id="b3"),
    ]

    alerts = _alerts(ledger.snapshot(budgets=budgets, opening_balance="5000"), date(2024, 3, 10))

    assert alerts["budget-over-b1"].severity == AlertSeverity.CRITICAL
    assert alerts["budget-over-b1"].value == Decimal("20.00")
    assert alerts["budget-over-b1"].category.name == "Groceries"
    assert alerts["budget-warning-b2"].severity == AlertSeverity.WARNING
    assert alerts["budget-warning-b2"].value == Decimal("5.00")
    assert not any(alert_id.endswith("-b3") for alert_id in alerts)


def test_budget_spent_to_the_limit_is_exceeded_everywhere():
    ledger = LedgerBuilder().add("food", "100", date(2024, 3, 2))
    budgets = [Budget(category_id="food", amount=Decimal("100"), id="b1")]

    result = analyze(ledger.snapshot(budgets=budgets, opening_balance="5000"), date(2024, 3, 10))

    (status,) = result.budget_statuses
    assert status.percent_used == pytest.approx(100.0)
    assert status.is_exceeded
    assert not status.within_budget
    assert result.health.budget_adherence_score == 0.0
    alert_ids = {alert.id for alert in result.alerts}
    assert "budget-over-b1" in alert_ids
    assert "budget-warning-b1" not in alert_ids


def _grocery_history():
    ledger = LedgerBuilder()
    ledger.add("food", "40", date(2023, 12, 10))
    ledger.add("food", "60", date(2024, 1, 10))
    ledger.add("food", "50", date(2024, 2, 5))
    ledger.add("food", "50", date(2024, 2, 20))
    return ledger


def test_unusual_transaction_amount():
    ledger = _grocery_history()
    ledger.add("food", "80", date(2024, 3, 3), description="Party supplies", txn_id="t-big")
    ledger.add("food", "60", date(2024, 3, 4), txn_id="t-usual")

    alerts = _alerts(ledger.snapshot(opening_balance="1000"), date(2024, 3, 10))

    # Mean 50, population deviation about 7.07
    alert = alerts["unusual-transaction-t-big"]
    assert alert.severity == AlertSeverity.WARNING
    assert alert.value == Decimal("30.00")
    assert alert.category.id == "food"
    assert "Party supplies" in alert.message
    assert "4.2 standard deviations" in alert.message
    assert "unusual-transaction-t-usual" not in alerts


def test_unusual_transaction_needs_spread_in_history():
    ledger = LedgerBuilder()
    for day in (date(2024, 1, 10), date(2024, 2, 10)):
        ledger.add("food", "50", day)
    ledger.add("food", "500", date(2024, 3, 3), txn_id="t-flat")
    ledger.add("dining", "30", date(2024, 2, 1))
    ledger.add("dining", "90", date(2024, 3, 3), txn_id="t-thin")

    alerts = _alerts(ledger.snapshot(opening_balance="1000"), date(2024, 3, 10))

    assert "unusual-transaction-t-flat" not in alerts
    assert "unusual-transaction-t-thin" not in alerts


def test_budget_alert_key_falls_back_to_category_id():
    ledger = LedgerBuilder().add("food", "150", date(2024, 3, 2))
    budgets = [Budget(category_id="food", amount=Decimal("100"))]

    alerts = _alerts(ledger.snapshot(budgets=budgets, opening_balance="5000"), date(2024, 3, 10))

    assert "budget-over-food" in alerts


def test_budget_for_unknown_category_is_skipped():
    ledger = LedgerBuilder().add("ghost", "150", date(2024, 3, 2))
    budgets = [Budget(category_id="ghost", amount=Decimal("100"))]

    alerts = _alerts(ledger.snapshot(budgets=budgets, opening_balance="5000"), date(2024, 3, 10))

    assert "budget-over-ghost" not in alerts


def _spending_history(current_amount):
    ledger = LedgerBuilder().monthly_income("5000", date(2023, 4, 1), 12)
    for day in (date(2023, 12, 10), date(2024, 1, 10), date(2024, 2, 10)):
        ledger.add("food", "1000", day)
    ledger.add("food", current_amount, date(2024, 3, 10))
    return ledger.snapshot()


def test_unusual_spending_spike():
    alerts = _alerts(_spending_history("1400"), date(2024, 3, 20))

    assert alerts["unusual-spike"].severity == AlertSeverity.CRITICAL
    assert alerts["unusual-spike"].value == Decimal("400.00")
    assert "spending-increase" not in alerts
    assert "category-spike-food" not in alerts


def test_above_average_spending():
    alerts = _alerts(_spending_history("1250"), date(2024, 3, 20))

    assert alerts["spending-increase"].severity == AlertSeverity.WARNING
    assert "unusual-spike" not in alerts


def test_category_spike():
    alerts = _alerts(_spending_history("1600"), date(2024, 3, 20))

    spike = alerts["category-spike-food"]
    assert spike.severity == AlertSeverity.WARNING
    assert spike.value == Decimal("600.00")
    assert spike.category.id == "food"


def test_no_income_after_mid_month():
    ledger = LedgerBuilder().add("food", "50", date(2024, 3, 2))
    snapshot = ledger.snapshot(opening_balance="1000")

    alert = _alerts(snapshot, date(2024, 3, 20))["no-income"]

    assert alert.severity == AlertSeverity.CRITICAL
    assert not alert.actionable
    assert "no-income" not in _alerts(snapshot, date(2024, 3, 10))


def test_no_income_alert_clears_once_income_arrives():
    ledger = LedgerBuilder().add("food", "50", date(2024, 3, 2)).income("3000", date(2024, 3, 1))

    assert "no-income" not in _alerts(ledger.snapshot(), date(2024, 3, 20))


def test_income_declining():
    ledger = LedgerBuilder()
    ledger.monthly_income("3000", date(2023, 9, 1), 3)
    ledger.monthly_income("2000", date(2023, 12, 1), 4)

    alert = _alerts(ledger.snapshot(), date(2024, 3, 5))["income-declining"]

    assert alert.severity == AlertSeverity.WARNING
    assert alert.value == Decimal("-1000.00")


def test_large_transaction():
    ledger = LedgerBuilder().monthly_income("3000", date(2023, 4, 1), 12)
    ledger.add("food", "100", date(2024, 3, 3), txn_id="t-small")
    ledger.add("food", "700", date(2024, 3, 4), description="New laptop", txn_id="t-big")
    ledger.add("food", "650", date(2024, 3, 5), txn_id="t-mid")

    alerts = _alerts(ledger.snapshot(), date(2024, 3, 20))

    alert = alerts["large-transaction-t-big"]
    assert alert.severity == AlertSeverity.INFO
    assert alert.value == Decimal("700")
    assert "New laptop" in alert.message
    assert "large-transaction-t-mid" not in alerts


def test_savings_above_average():
    ledger = LedgerBuilder().monthly_income("3000", date(2023, 4, 1), 12)
    for offset in range(11):
        ledger.add("food", "2500", date(2023, 4, 5) + relativedelta(months=offset))
    ledger.add("food", "500", date(2024, 3, 5))

    alert = _alerts(ledger.snapshot(), date(2024, 3, 20))["savings-above-average"]

    assert alert.severity == AlertSeverity.SUCCESS
    assert alert.value == Decimal("2500")


def test_category_without_spending_this_month():
    ledger = LedgerBuilder().monthly_income("4000", date(2023, 4, 1), 12)
    for day in (date(2023, 12, 10), date(2024, 1, 10), date(2024, 2, 10)):
        ledger.add("food", "1000", day)

    alert = _alerts(ledger.snapshot(), date(2024, 3, 20))["category-no-spend-food"]

    assert alert.severity == AlertSeverity.SUCCESS
    assert alert.value == Decimal("1000.00")
    assert "category-no-spend-food" not in _alerts(ledger.snapshot(), date(2024, 3, 10))


def test_recurring_payment_due_soon():
    ledger = LedgerBuilder()
    for day in (date(2024, 1, 5), date(2024, 2, 5), date(2024, 3, 5)):
        ledger.add("rent", "1500", day)
    for day in (date(2024, 1, 3), date(2024, 2, 3), date(2024, 3, 3)):
        ledger.income("3000", day)

    alerts = _alerts(ledger.snapshot(), date(2024, 4, 1))

    alert = alerts["recurring-due-rent-2024-04-05"]
    assert alert.severity == AlertSeverity.INFO
    assert alert.value == Decimal("1500.00")
    assert "in 4 days" in alert.message
    assert not any(alert_id.startswith("recurring-due-salary") for alert_id in alerts)


def test_goal_alerts():
    goals = [
        SavingsGoal(
            target_amount=Decimal("500"),
            current_amount=Decimal("100"),
            deadline=date(2024, 1, 1),
            id="g1",
            name="Laptop",
        ),
        SavingsGoal(target_amount=Decimal("500"), current_amount=Decimal("500"), id="g2"),
        SavingsGoal(target_amount=Decimal("500"), current_amount=Decimal("0")),
        SavingsGoal(
            target_amount=Decimal("500"),
            current_amount=Decimal("0"),
            deadline=date(2024, 2, 1),
        ),
    ]

    alerts = _alerts(LedgerBuilder().snapshot(goals=goals), date(2024, 3, 10))

    assert alerts["goal-behind-g1"].severity == AlertSeverity.WARNING
    assert alerts["goal-behind-g1"].title == "Laptop Behind Schedule"
    assert alerts["goal-complete-g2"].severity == AlertSeverity.SUCCESS
    assert "goal-behind-2" not in alerts
    assert "goal-behind-3" in alerts


def test_negative_balance_and_runway():
    ledger = LedgerBuilder().add("food", "200", date(2024, 3, 5))

    alerts = _alerts(ledger.snapshot(opening_balance="100"), date(2024, 3, 10))

    assert alerts["negative-balance-projected"].severity == AlertSeverity.CRITICAL
    assert alerts["negative-balance-projected"].value == Decimal("-520.00")
    assert alerts["runway-critical"].severity == AlertSeverity.CRITICAL


def test_alerts_are_ordered_by_severity():
    ledger = LedgerBuilder().monthly_income("3000", date(2023, 4, 1), 11)
    for day in (date(2023, 12, 10), date(2024, 1, 10), date(2024, 2, 10)):
        ledger.add("food", "1000", day)
        ledger.add("dining", "100", day)
    ledger.add("dining", "900", date(2024, 3, 2), description="Banquet")
    goals = [SavingsGoal(target_amount=Decimal("50"), current_amount=Decimal("50"), id="g")]

    alerts = analyze(ledger.snapshot(goals=goals), date(2024, 3, 20)).alerts

    severities = {alert.severity for alert in alerts}
    assert severities == set(AlertSeverity)
    priorities = [alert.severity.priority for alert in alerts]
    assert priorities == sorted(priorities)


def test_sort_alerts_is_stable_within_severity():
    alerts = [
        Alert(id="s", severity=AlertSeverity.SUCCESS, title="s", message=""),
        Alert(id="w1", severity=AlertSeverity.WARNING, title="w1", message=""),
        Alert(id="i", severity=AlertSeverity.INFO, title="i", message=""),
        Alert(id="w2", severity=AlertSeverity.WARNING, title="w2", message=""),
        Alert(id="c", severity=AlertSeverity.CRITICAL, title="c", message=""),
    ]

    assert [alert.id for alert in sort_alerts(alerts)] == ["c", "w1", "w2", "i", "s"]


def test_generate_alerts_runs_custom_rules_in_order(empty_context):
    def first(ctx):
        yield Alert(id="first", severity=AlertSeverity.INFO, title="First", message="")

    def second(ctx):
        yield Alert(id="second", severity=AlertSeverity.INFO, title="Second", message="")
        yield Alert(id="urgent", severity=AlertSeverity.CRITICAL, title="Urgent", message="")

    alerts = generate_alerts(empty_context, rules=[first, second])

    assert [alert.id for alert in alerts] == ["urgent", "first", "second"]


def test_default_rules_are_all_callable():
    assert len(DEFAULT_RULES) == 13
    assert all(callable(rule) for rule in DEFAULT_RULES)
