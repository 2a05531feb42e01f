"""Domain model entities for finsight.

Input entities mirror the records handed over by the external ledger store.
Derived entities are produced by one analysis pass and never persisted.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional


class TransactionType(str, Enum):
    """Direction of money for a transaction or category."""

    INCOME = "income"
    EXPENSE = "expense"


class BudgetPeriod(str, Enum):
    """Budget period; only monthly budgets are scored."""

    MONTHLY = "monthly"
    YEARLY = "yearly"


class BucketUnit(str, Enum):
    """Calendar unit used to partition transactions."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class Frequency(str, Enum):
    """Classified period of a recurring pattern."""

    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


class AlertSeverity(str, Enum):
    """Alert severity, declared in priority order."""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"

    @property
    def priority(self) -> int:
        """Sort key; lower sorts first."""
        return _SEVERITY_PRIORITY[self]


_SEVERITY_PRIORITY = {
    AlertSeverity.CRITICAL: 0,
    AlertSeverity.WARNING: 1,
    AlertSeverity.INFO: 2,
    AlertSeverity.SUCCESS: 3,
}


class RunwayStatus(str, Enum):
    """Qualitative runway band."""

    CRITICAL = "critical"
    WARNING = "warning"
    GOOD = "good"
    EXCELLENT = "excellent"


class ConfidenceLevel(str, Enum):
    """Forecast confidence band."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class CashFlowTrend(str, Enum):
    """Direction of average monthly cash flow."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class HealthGrade(str, Enum):
    """Letter-style grade for the composite health score."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    CRITICAL = "Critical"


@dataclass(frozen=True)
class Category:
    """Category domain entity. Display metadata is carried but unused."""

    id: str
    name: str
    type: TransactionType
    color: Optional[str] = None
    icon: Optional[str] = None


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity. Amounts are always non-negative."""

    id: str
    category_id: Optional[str]
    amount: Decimal
    date: date
    type: TransactionType
    description: Optional[str] = None


@dataclass(frozen=True)
class Budget:
    """Category budget domain entity."""

    category_id: str
    amount: Decimal
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    id: Optional[str] = None

    @property
    def key(self) -> str:
        """Identifier used in alert keys."""
        return self.id if self.id is not None else self.category_id


@dataclass(frozen=True)
class SavingsGoal:
    """Savings goal domain entity."""

    target_amount: Decimal
    current_amount: Decimal
    deadline: Optional[date] = None
    id: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class AnalysisSettings:
    """Tunable knobs of an analysis pass."""

    upcoming_horizon_days: int = 30
    due_soon_days: int = 7
    top_categories: int = 5
    projection_months: int = 6


@dataclass(frozen=True)
class LedgerSnapshot:
    """Everything the pipeline reads for one user."""

    transactions: tuple[Transaction, ...] = ()
    categories: tuple[Category, ...] = ()
    budgets: tuple[Budget, ...] = ()
    goals: tuple[SavingsGoal, ...] = ()
    opening_balance: Decimal = Decimal("0")

    def category_index(self) -> dict[str, Category]:
        """Map category id to category."""
        return {category.id: category for category in self.categories}


@dataclass(frozen=True)
class Bucket:
    """Income/expense totals for one calendar-aligned window."""

    start: date
    end: date
    label: str
    income_total: Decimal = Decimal("0")
    expense_total: Decimal = Decimal("0")
    transaction_count: int = 0

    @property
    def net(self) -> Decimal:
        return self.income_total - self.expense_total

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class RecurringPattern:
    """A detected repeating obligation or income."""

    category_id: Optional[str]
    category_name: Optional[str]
    description: str
    transaction_type: TransactionType
    avg_amount: Decimal
    frequency: Frequency
    confidence: float
    mean_interval_days: float
    next_expected_date: date
    transactions: tuple[Transaction, ...]
    day_of_month: Optional[int] = None
    day_of_week: Optional[int] = None


@dataclass(frozen=True)
class BurnRate:
    """Spending velocity and runway projection."""

    daily_burn: Decimal
    weekly_burn: Decimal
    monthly_burn: Decimal
    net_burn: Decimal
    balance: Decimal
    days_remaining: Optional[Decimal]
    months_remaining: Optional[Decimal]
    status: RunwayStatus
    burn_rate_trend: float
    is_net_positive: bool

    @property
    def is_unbounded(self) -> bool:
        return self.months_remaining is None


@dataclass(frozen=True)
class SeriesForecast:
    """Blended next-period projection for one series."""

    value: Decimal
    avg_3_months: Decimal
    avg_6_months: Decimal
    avg_12_months: Decimal
    confidence: float


@dataclass(frozen=True)
class CategoryForecast:
    """Projected next-month spending for a category."""

    category_id: str
    category_name: str
    amount: Decimal


@dataclass(frozen=True)
class ForecastBundle:
    """Income, expense, savings and balance forecast."""

    income: SeriesForecast
    expense: SeriesForecast
    savings: Decimal
    balance: Decimal
    confidence: float
    confidence_level: ConfidenceLevel
    categories: tuple[CategoryForecast, ...] = ()


@dataclass(frozen=True)
class ProjectedMonth:
    """One month of a forward cash-flow projection."""

    month: date
    income: Decimal
    expense: Decimal
    net: Decimal
    balance: Decimal


@dataclass(frozen=True)
class CashFlowProjection:
    """Month-by-month cash flow projection with its historical basis."""

    projections: tuple[ProjectedMonth, ...]
    average_income: Decimal
    average_expenses: Decimal
    average_net: Decimal
    growth_trend: Decimal
    projected_balance: Decimal
    months_until_zero: Optional[Decimal]
    trend: CashFlowTrend


@dataclass(frozen=True)
class WhatIfScenario:
    """A projection adjusted for one hypothetical change."""

    name: str
    description: str
    projections: tuple[ProjectedMonth, ...]
    total_impact: Decimal
    recommendation: str

    @property
    def final_balance(self) -> Optional[Decimal]:
        return self.projections[-1].balance if self.projections else None


@dataclass(frozen=True)
class ScenarioComparison:
    """Best and worst of a set of scenarios by total impact."""

    best_case: WhatIfScenario
    worst_case: WhatIfScenario
    summary: str


@dataclass(frozen=True)
class HealthScoreBreakdown:
    """Six bounded sub-scores and their composite."""

    savings_rate_score: float
    budget_adherence_score: float
    spending_consistency_score: float
    emergency_fund_score: float
    income_stability_score: float
    expense_ratio_score: float
    score: int
    grade: HealthGrade
    savings_rate: float = 0.0
    expense_ratio: Optional[float] = None
    weekly_variation: float = 0.0
    income_cv: Optional[float] = None
    stability: float = 0.0
    recommendations: tuple[str, ...] = ()


@dataclass(frozen=True)
class MonthSummary:
    """Income, expense and savings for one month."""

    month: date
    income: Decimal
    expenses: Decimal

    @property
    def savings(self) -> Decimal:
        return self.income - self.expenses


@dataclass(frozen=True)
class LedgerOverview:
    """Twelve-month dashboard figures."""

    months: tuple[MonthSummary, ...]
    total_income: Decimal
    total_expenses: Decimal
    avg_monthly_income: Decimal
    avg_monthly_expenses: Decimal
    avg_monthly_savings: Decimal
    current_month_income: Decimal
    current_month_expenses: Decimal
    highest_expense_month: Optional[MonthSummary]
    highest_income_month: Optional[MonthSummary]
    best_savings_month: Optional[MonthSummary]
    savings_rate: float

    @property
    def total_savings(self) -> Decimal:
        return self.total_income - self.total_expenses

    @property
    def current_month_savings(self) -> Decimal:
        return self.current_month_income - self.current_month_expenses


@dataclass(frozen=True)
class BudgetStatus:
    """Month-to-date standing of a monthly budget."""

    budget: Budget
    category: Optional[Category]
    spent: Decimal
    remaining: Decimal
    percent_used: float
    projected_spending: Decimal
    recommended_daily_limit: Decimal
    days_remaining: int

    @property
    def is_exceeded(self) -> bool:
        """Spending has reached the full budget amount."""
        return self.percent_used >= 100

    @property
    def within_budget(self) -> bool:
        return not self.is_exceeded


@dataclass(frozen=True)
class GoalProgress:
    """Computed progress of a savings goal."""

    goal: SavingsGoal
    percent_complete: float
    remaining_amount: Decimal
    days_remaining: Optional[int]
    months_remaining: Optional[int]
    monthly_savings_needed: Optional[Decimal]
    is_complete: bool
    on_track: bool


@dataclass(frozen=True)
class Alert:
    """An actionable insight emitted by the alert rules."""

    id: str
    severity: AlertSeverity
    title: str
    message: str
    value: Optional[Decimal] = None
    category: Optional[Category] = None
    actionable: bool = True


@dataclass(frozen=True)
class AnalyticsResult:
    """Output bundle of one analysis pass."""

    now: date
    current_balance: Decimal
    monthly_buckets: tuple[Bucket, ...]
    weekly_buckets: tuple[Bucket, ...]
    overview: LedgerOverview
    budget_statuses: tuple[BudgetStatus, ...]
    goal_progress: tuple[GoalProgress, ...]
    recurring_patterns: tuple[RecurringPattern, ...]
    upcoming_patterns: tuple[RecurringPattern, ...]
    burn_rate: BurnRate
    forecast: ForecastBundle
    cash_flow_projection: CashFlowProjection
    health: HealthScoreBreakdown
    alerts: tuple[Alert, ...] = field(default_factory=tuple)
