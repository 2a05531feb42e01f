"""Analytics pipeline: one pure pass from ledger snapshot to insight bundle."""

import dataclasses
import logging
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from finsight.domain.alerts import build_alert_context, generate_alerts
from finsight.domain.buckets import sum_by_type, trailing_months, trailing_weeks, transactions_between
from finsight.domain.entities import AnalysisSettings, AnalyticsResult, LedgerSnapshot
from finsight.domain.forecast import build_forecast, project_cash_flow
from finsight.domain.health import score_health
from finsight.domain.overview import budget_statuses, build_overview, goal_progress
from finsight.domain.recurrence import detect_recurring, upcoming_patterns
from finsight.domain.runway import calculate_burn_rate
from finsight.domain.stats import to_money

if TYPE_CHECKING:
    # Imported for annotations only; the database layer imports domain entities.
    from finsight.database.base import LedgerSource

logger = logging.getLogger(__name__)

HISTORY_MONTHS = 12
HISTORY_WEEKS = 8


def analyze(
    snapshot: LedgerSnapshot,
    now: date,
    settings: Optional[AnalysisSettings] = None,
) -> AnalyticsResult:
    """Run every analysis component over a snapshot.

    Transactions dated after ``now`` are ignored. The function reads no
    clock and no global state, so equal inputs give equal results.

    Args:
        snapshot: Validated ledger data
        now: Reference date of the analysis
        settings: Analysis knobs; defaults apply when None

    Returns:
        AnalyticsResult bundle
    """
    settings = settings or AnalysisSettings()
    categories = snapshot.category_index()
    history = transactions_between(snapshot.transactions, None, now)

    unknown = {
        txn.category_id
        for txn in history
        if txn.category_id is not None and txn.category_id not in categories
    }
    if unknown:
        logger.warning(
            "%d category ids are not in the category set; they count toward totals only",
            len(unknown),
        )

    income, expense, _ = sum_by_type(history)
    balance = snapshot.opening_balance + income - expense

    monthly = trailing_months(history, now, HISTORY_MONTHS)
    weekly = trailing_weeks(history, now, HISTORY_WEEKS)
    overview = build_overview(monthly)
    statuses = budget_statuses(snapshot.budgets, categories, history, now)
    goals = goal_progress(snapshot.goals, now, overview.avg_monthly_savings)

    patterns = detect_recurring(history, categories)
    upcoming = upcoming_patterns(patterns, now, settings.upcoming_horizon_days)
    due_soon = upcoming_patterns(patterns, now, settings.due_soon_days)

    burn_rate = calculate_burn_rate(monthly, balance)
    forecast = build_forecast(
        monthly, history, categories, balance, now, settings.top_categories
    )
    projection = project_cash_flow(monthly, balance, now, settings.projection_months)
    health = score_health(monthly, weekly, statuses, burn_rate)

    context = build_alert_context(
        now=now,
        balance=balance,
        transactions=history,
        monthly_buckets=monthly,
        overview=overview,
        burn_rate=burn_rate,
        budget_statuses=statuses,
        goal_progress=goals,
        due_soon=due_soon,
        categories=categories,
    )
    alerts = generate_alerts(context)

    logger.debug(
        "Analyzed %d transactions as of %s: score=%d patterns=%d alerts=%d",
        len(history),
        now.isoformat(),
        health.score,
        len(patterns),
        len(alerts),
    )
    return AnalyticsResult(
        now=now,
        current_balance=to_money(balance),
        monthly_buckets=tuple(monthly),
        weekly_buckets=tuple(weekly),
        overview=overview,
        budget_statuses=tuple(statuses),
        goal_progress=tuple(goals),
        recurring_patterns=tuple(patterns),
        upcoming_patterns=tuple(upcoming),
        burn_rate=burn_rate,
        forecast=forecast,
        cash_flow_projection=projection,
        health=health,
        alerts=tuple(alerts),
    )


class InsightService:
    """Service that loads a user's ledger and analyzes it."""

    def __init__(self, db: "LedgerSource"):
        """Initialize insight service.

        Args:
            db: Ledger source instance
        """
        self.db = db

    def load_snapshot(self, user_id: str, now: date) -> LedgerSnapshot:
        """Load the user's ledger up to and including ``now``."""
        return self.db.load_snapshot(user_id, end_date=now)

    def analyze_user(
        self,
        user_id: str,
        now: date,
        settings: Optional[AnalysisSettings] = None,
    ) -> AnalyticsResult:
        """Analyze a user's ledger as of ``now``.

        Args:
            user_id: Ledger owner
            now: Reference date
            settings: Analysis knobs

        Returns:
            AnalyticsResult bundle
        """
        snapshot = self.load_snapshot(user_id, now)
        logger.debug(
            "Loaded snapshot for user %s: %d transactions, %d categories",
            user_id,
            len(snapshot.transactions),
            len(snapshot.categories),
        )
        return analyze(snapshot, now, settings)


def to_primitive(value: Any) -> Any:
    """Convert result entities to JSON-safe primitives.

    Decimals become strings so no precision is lost. Dataclass properties
    (e.g. ``Bucket.net``) are included alongside fields.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        data = {
            f.name: to_primitive(getattr(value, f.name)) for f in dataclasses.fields(value)
        }
        for name, attr in vars(type(value)).items():
            if isinstance(attr, property):
                data[name] = to_primitive(getattr(value, name))
        return data
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): to_primitive(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_primitive(item) for item in value]
    return value


def result_to_dict(result: AnalyticsResult) -> dict[str, Any]:
    """Convert an analysis result into a JSON-serializable dict."""
    return to_primitive(result)
