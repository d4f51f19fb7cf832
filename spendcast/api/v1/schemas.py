"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from spendcast.domain.models import (
    Baseline,
    Category,
    CategoryBudget,
    ExpenseKind,
    InsightKind,
    RiskLevel,
    Severity,
    Transaction,
    Trend,
    UpcomingExpense,
    WeatherCondition,
)


class DomainSchema(BaseModel):
    """Response model readable straight from a domain dataclass"""

    model_config = ConfigDict(from_attributes=True)


class TransactionSchema(BaseModel):
    """Single spend, amount in minor currency units"""

    id: str = Field(..., min_length=1, description="Transaction identifier")
    timestamp: datetime
    amount: int = Field(..., ge=0, description="Amount in minor units")
    category_id: Category
    merchant: str = Field(..., min_length=1, description="Merchant name, normalized server-side")

    def to_domain(self) -> Transaction:
        return Transaction(
            id=self.id,
            timestamp=self.timestamp,
            amount=self.amount,
            category_id=self.category_id,
            merchant_key=self.merchant,
        )


class BudgetSchema(BaseModel):
    """Category budget for one (possibly partial) month"""

    category_id: Category
    monthly_limit: Optional[int] = Field(None, ge=0, description="Limit in minor units, omit for unbounded")
    period_start: date
    period_end: date

    def to_domain(self) -> CategoryBudget:
        return CategoryBudget(
            category_id=self.category_id,
            monthly_limit=self.monthly_limit,
            period_start=self.period_start,
            period_end=self.period_end,
        )


class UpcomingExpenseSchema(DomainSchema):
    name: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0)
    kind: ExpenseKind = ExpenseKind.BILL
    due_date: Optional[date] = None

    def to_domain(self) -> UpcomingExpense:
        return UpcomingExpense(name=self.name, amount=self.amount, kind=self.kind, due_date=self.due_date)


class AnomalyRequest(BaseModel):
    """Request body for POST /v1/anomaly"""

    candidate: TransactionSchema
    history: List[TransactionSchema] = Field(default_factory=list)
    budgets: List[BudgetSchema] = Field(default_factory=list)


class ComparisonSchema(DomainSchema):
    current: int
    average: float
    multiplier: Optional[float] = None


class AnomalyResponse(DomainSchema):
    """Response for POST /v1/anomaly"""

    transaction_id: str
    category_id: Category
    amount: int
    severity: Severity
    reason: str
    baseline: Baseline
    budget_escalated: bool
    z_score: Optional[float] = None
    comparison: Optional[ComparisonSchema] = None
    flags: List[str] = Field(default_factory=list)


class ForecastRequest(BaseModel):
    """Request body for POST /v1/forecast"""

    transactions: List[TransactionSchema] = Field(default_factory=list)
    budgets: List[BudgetSchema] = Field(default_factory=list)
    as_of: date


class PredictionSchema(DomainSchema):
    category_id: Category
    current_spent: int
    limit: int
    predicted_total: int
    days_until_overspend: Optional[int] = None
    confidence: float
    trend: Trend
    daily_average: float
    days_remaining: int


class ProjectionSchema(DomainSchema):
    current_spent: int
    limit: Optional[int] = None
    daily_average: float
    predicted_total: int
    days_elapsed: int
    days_remaining: int
    recommended_daily_budget: float
    excess_amount: int
    confidence: float
    predicted_range: Tuple[int, int]
    pace_slope: Optional[float] = None


class ForecastResponse(DomainSchema):
    """Response for POST /v1/forecast"""

    predictions: List[PredictionSchema]
    projection: ProjectionSchema


class WeatherRequest(BaseModel):
    """Request body for POST /v1/weather"""

    transactions: List[TransactionSchema] = Field(default_factory=list)
    budgets: List[BudgetSchema] = Field(default_factory=list)
    upcoming_expenses: List[UpcomingExpenseSchema] = Field(default_factory=list)
    as_of: date


class ClassifyRequest(BaseModel):
    """Request body for POST /v1/weather/classify"""

    expected_spending: int = Field(..., ge=0)
    safe_to_spend: int = Field(..., ge=0)
    upcoming_expenses: List[UpcomingExpenseSchema] = Field(default_factory=list)
    day_of_week: int = Field(..., ge=0, le=6, description="Monday == 0")


class WeatherResponse(DomainSchema):
    condition: WeatherCondition
    title: str
    expected_spending: int
    safe_to_spend: int
    risk_level: RiskLevel
    advice: str
    upcoming_expenses: List[UpcomingExpenseSchema]


class InsightsRequest(BaseModel):
    """Request body for POST /v1/insights"""

    transactions: List[TransactionSchema] = Field(default_factory=list)
    budgets: List[BudgetSchema] = Field(default_factory=list)
    upcoming_expenses: List[UpcomingExpenseSchema] = Field(default_factory=list)
    candidates: List[TransactionSchema] = Field(default_factory=list)
    as_of: date
    max_items: Optional[int] = Field(None, ge=0)


class InsightSchema(DomainSchema):
    kind: InsightKind
    priority: int
    impact: int
    title: str
    message: str
    category_id: Optional[Category] = None
    transaction_id: Optional[str] = None


class InsightsResponse(DomainSchema):
    """Response for POST /v1/insights"""

    insights: List[InsightSchema]
    anomalies: List[AnomalyResponse]
    predictions: List[PredictionSchema]
    projection: ProjectionSchema
    weather: WeatherResponse
