"""Domain models - immutable dataclasses for transactions, budgets and engine outputs"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple

from spendcast.domain.exceptions import InvalidInputError
from spendcast.utils.date_utils import as_naive_utc, days_in_month
from spendcast.utils.merchant_utils import normalize_merchant_key


class Category(str, Enum):
    """Closed set of spending categories"""

    GROCERIES = "groceries"
    RESTAURANTS = "restaurants"
    TRANSPORT = "transport"
    UTILITIES = "utilities"
    ENTERTAINMENT = "entertainment"
    SHOPPING = "shopping"
    HEALTH = "health"
    EDUCATION = "education"
    SUBSCRIPTIONS = "subscriptions"
    OTHER = "other"


class Severity(str, Enum):
    """Anomaly severity, declared from least to most severe"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)


class Baseline(str, Enum):
    """Population an anomaly was compared against"""

    MERCHANT = "merchant"
    CATEGORY = "category"
    NONE = "none"  # history too sparse for a baseline


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class WeatherCondition(str, Enum):
    """Financial weather, declared from lowest to highest risk"""

    SUNNY = "sunny"
    PARTLY_CLOUDY = "partly_cloudy"
    CLOUDY = "cloudy"
    RAINY = "rainy"
    STORMY = "stormy"

    @property
    def rank(self) -> int:
        return list(WeatherCondition).index(self)


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ExpenseKind(str, Enum):
    SUBSCRIPTION = "subscription"
    BILL = "bill"
    PREDICTED = "predicted"


class InsightKind(str, Enum):
    ANOMALY = "anomaly"
    PREDICTION = "prediction"
    WEATHER = "weather"


def coerce_category(value) -> Category:
    try:
        return Category(value)
    except ValueError:
        raise InvalidInputError(f"Unknown category: {value!r}") from None


def _require_amount(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{name} must be an integer amount in minor units, got {value!r}")
    if value < 0:
        raise InvalidInputError(f"{name} must be non-negative, got {value}")


@dataclass(frozen=True)
class Transaction:
    """A recorded spend, amount in minor currency units"""

    id: str
    timestamp: datetime  # when the spend happened, not when it was recorded
    amount: int
    category_id: Category
    merchant_key: str

    def __post_init__(self) -> None:
        if not self.id:
            raise InvalidInputError("Transaction id is required")
        if not isinstance(self.timestamp, datetime):
            raise InvalidInputError(f"Transaction timestamp must be a datetime, got {self.timestamp!r}")
        object.__setattr__(self, "timestamp", as_naive_utc(self.timestamp))
        _require_amount("Transaction amount", self.amount)
        object.__setattr__(self, "category_id", coerce_category(self.category_id))

        merchant_key = normalize_merchant_key(self.merchant_key or "")
        if not merchant_key:
            raise InvalidInputError(f"Transaction {self.id} has no merchant")
        object.__setattr__(self, "merchant_key", merchant_key)


@dataclass(frozen=True)
class CategoryBudget:
    """Monthly spending limit for one category; the period may start mid-month"""

    category_id: Category
    monthly_limit: Optional[int]  # None means unbounded
    period_start: date
    period_end: date

    def __post_init__(self) -> None:
        object.__setattr__(self, "category_id", coerce_category(self.category_id))
        if self.monthly_limit is not None:
            _require_amount("Budget limit", self.monthly_limit)
        if self.period_start > self.period_end:
            raise InvalidInputError(
                f"Budget period starts {self.period_start} after it ends {self.period_end}"
            )

    @classmethod
    def for_month(
        cls,
        category_id: Category,
        monthly_limit: Optional[int],
        year: int,
        month: int,
        start_day: int = 1,
    ) -> "CategoryBudget":
        """Budget covering a calendar month, optionally starting on `start_day` (partial month)"""
        last_day = days_in_month(year, month)
        if not 1 <= start_day <= last_day:
            raise InvalidInputError(f"start_day {start_day} outside {year}-{month:02d}")
        return cls(
            category_id=category_id,
            monthly_limit=monthly_limit,
            period_start=date(year, month, start_day),
            period_end=date(year, month, last_day),
        )

    @property
    def has_limit(self) -> bool:
        """A zero or absent limit is treated as "no budget configured" """
        return self.monthly_limit is not None and self.monthly_limit > 0

    def contains(self, day: date) -> bool:
        return self.period_start <= day <= self.period_end


@dataclass(frozen=True)
class HistoryEntry:
    """One past amount inside a MerchantHistoryWindow"""

    timestamp: datetime
    amount: int
    merchant_key: str
    category_id: Category


@dataclass(frozen=True)
class MerchantHistoryWindow:
    """Bounded, time-ordered view over past transactions of one category"""

    merchant_key: str
    category_id: Category
    entries: Tuple[HistoryEntry, ...] = ()
    period_spent: int = 0  # category spend inside the active budget period

    def merchant_amounts(self) -> Tuple[int, ...]:
        return tuple(e.amount for e in self.entries if e.merchant_key == self.merchant_key)

    def category_amounts(self) -> Tuple[int, ...]:
        return tuple(e.amount for e in self.entries if e.category_id == self.category_id)


@dataclass(frozen=True)
class Comparison:
    current: int
    average: float
    multiplier: Optional[float]  # None when the average is zero


@dataclass(frozen=True)
class AnomalyResult:
    """Outcome of checking one proposed transaction against its history"""

    severity: Severity
    reason: str
    comparison: Optional[Comparison]
    baseline: Baseline
    budget_escalated: bool
    z_score: Optional[float]
    transaction_id: str
    amount: int
    category_id: Category
    flags: Tuple[str, ...] = ()  # informational, never change severity


@dataclass(frozen=True)
class BudgetPrediction:
    """Projected end-of-period spend for one category"""

    category_id: Category
    current_spent: int
    limit: int
    predicted_total: int
    days_until_overspend: Optional[int]  # None: no overspend expected this period
    confidence: float
    trend: Trend
    daily_average: float
    days_remaining: int

    @property
    def predicted_overage(self) -> int:
        return max(self.predicted_total - self.limit, 0)


@dataclass(frozen=True)
class MonthlyProjection:
    """Whole-month spending pace across all categories"""

    current_spent: int
    limit: Optional[int]
    daily_average: float
    predicted_total: int
    days_elapsed: int
    days_remaining: int
    recommended_daily_budget: float
    excess_amount: int
    confidence: float
    predicted_range: Tuple[int, int]
    pace_slope: Optional[float]  # change in daily spend per day, None when too few days


@dataclass(frozen=True)
class UpcomingExpense:
    """Known fixed cost from the bill/subscription schedule"""

    name: str
    amount: int
    kind: ExpenseKind = ExpenseKind.BILL
    due_date: Optional[date] = None

    def __post_init__(self) -> None:
        _require_amount("Upcoming expense amount", self.amount)
        object.__setattr__(self, "kind", ExpenseKind(self.kind))


@dataclass(frozen=True)
class WeatherForecast:
    """Daily spending risk classification"""

    condition: WeatherCondition
    expected_spending: int
    safe_to_spend: int
    risk_level: RiskLevel
    advice: str
    title: str
    upcoming_expenses: Tuple[UpcomingExpense, ...] = ()


@dataclass(frozen=True)
class RankedInsight:
    """Single presentable item produced by the insight ranker"""

    kind: InsightKind
    priority: int  # lower is more urgent
    impact: int  # minor units at stake
    title: str
    message: str
    category_id: Optional[Category] = None
    transaction_id: Optional[str] = None


@dataclass(frozen=True)
class DashboardPayload:
    """Everything the presentation layer needs for one render"""

    predictions: Tuple[BudgetPrediction, ...]
    projection: MonthlyProjection
    weather: WeatherForecast
    anomalies: Tuple[AnomalyResult, ...] = ()
    insights: Tuple[RankedInsight, ...] = ()
