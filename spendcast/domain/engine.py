"""Spending engine - runs the detectors, forecasters and ranker over one user's data"""

from datetime import date
from typing import Iterable, Optional, Sequence

from spendcast.domain.anomaly import AnomalyDetector, AnomalyThresholds
from spendcast.domain.forecasting import BudgetForecaster, ForecastTuning
from spendcast.domain.history import (
    DEFAULT_LOOKBACK_DAYS,
    DEFAULT_MAX_VISITS,
    HistoryCache,
    build_history_window,
)
from spendcast.domain.insights import InsightPolicy, InsightRanker
from spendcast.domain.models import (
    AnomalyResult,
    CategoryBudget,
    DashboardPayload,
    Transaction,
    UpcomingExpense,
)
from spendcast.domain.weather import WeatherClassifier, WeatherThresholds
from spendcast.utils.date_utils import as_date


def active_budget_for(
    budgets: Iterable[CategoryBudget],
    candidate: Transaction,
) -> Optional[CategoryBudget]:
    """The candidate category's budget whose period covers the candidate's day"""
    day = as_date(candidate.timestamp)
    for budget in budgets:
        if budget.category_id == candidate.category_id and budget.contains(day):
            return budget
    return None


class SpendingEngine:
    """Stateless bundle of the five components; safe to share between callers"""

    def __init__(
        self,
        detector: Optional[AnomalyDetector] = None,
        forecaster: Optional[BudgetForecaster] = None,
        classifier: Optional[WeatherClassifier] = None,
        ranker: Optional[InsightRanker] = None,
        max_visits: int = DEFAULT_MAX_VISITS,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    ):
        self.detector = detector or AnomalyDetector()
        self.forecaster = forecaster or BudgetForecaster()
        self.classifier = classifier or WeatherClassifier()
        self.ranker = ranker or InsightRanker()
        self.max_visits = max_visits
        self.lookback_days = lookback_days

    @classmethod
    def from_settings(cls, settings) -> "SpendingEngine":
        """Wire every tunable from the application Settings"""
        return cls(
            detector=AnomalyDetector(
                AnomalyThresholds(
                    medium_z=settings.anomaly_medium_z,
                    high_z=settings.anomaly_high_z,
                    zero_variance_sentinel=settings.anomaly_zero_variance_sentinel,
                    min_merchant_points=settings.anomaly_min_merchant_points,
                    budget_share=settings.anomaly_budget_share,
                    duplicate_window_hours=settings.anomaly_duplicate_window_hours,
                    frequent_visit_count=settings.anomaly_frequent_visit_count,
                    frequent_visit_days=settings.anomaly_frequent_visit_days,
                    unusual_hour_start=settings.anomaly_unusual_hour_start,
                    unusual_hour_end=settings.anomaly_unusual_hour_end,
                    new_merchant_multiple=settings.anomaly_new_merchant_multiple,
                    dormant_category_days=settings.anomaly_dormant_category_days,
                )
            ),
            forecaster=BudgetForecaster(
                ForecastTuning(
                    trend_band=settings.forecast_trend_band,
                    confidence_floor=settings.forecast_confidence_floor,
                )
            ),
            classifier=WeatherClassifier(
                WeatherThresholds(
                    stormy_ratio=settings.weather_stormy_ratio,
                    stormy_with_bills_ratio=settings.weather_stormy_with_bills_ratio,
                    rainy_ratio=settings.weather_rainy_ratio,
                    rainy_fixed_cost_count=settings.weather_rainy_fixed_cost_count,
                    cloudy_ratio=settings.weather_cloudy_ratio,
                    weekend_cloudy_ratio=settings.weather_weekend_cloudy_ratio,
                    partly_cloudy_ratio=settings.weather_partly_cloudy_ratio,
                    risk_high_ratio=settings.weather_risk_high_ratio,
                    risk_medium_ratio=settings.weather_risk_medium_ratio,
                    max_upcoming=settings.weather_max_upcoming,
                    half_life_days=settings.weather_half_life_days,
                    lookback_days=settings.weather_lookback_days,
                    seasonality_min_days=settings.weather_seasonality_min_days,
                )
            ),
            ranker=InsightRanker(
                InsightPolicy(
                    horizon_days=settings.insight_horizon_days,
                    urgent_days=settings.insight_urgent_days,
                    max_items=settings.insight_max_items,
                )
            ),
            max_visits=settings.history_max_visits,
            lookback_days=settings.history_lookback_days,
        )

    def evaluate_candidate(
        self,
        candidate: Transaction,
        transactions: Iterable[Transaction],
        budgets: Iterable[CategoryBudget] = (),
        cache: Optional[HistoryCache] = None,
    ) -> AnomalyResult:
        """
        Check a proposed transaction before it is committed.

        `transactions` is the committed log; the candidate is excluded from
        its own history even if the caller already appended it.
        """
        budget = active_budget_for(budgets, candidate)
        if cache is not None:
            window = cache.window_for(candidate, budget)
        else:
            window = build_history_window(
                transactions,
                candidate,
                budget=budget,
                max_visits=self.max_visits,
                lookback_days=self.lookback_days,
            )
        return self.detector.evaluate(candidate, window, budget)

    def build_dashboard(
        self,
        transactions: Iterable[Transaction],
        budgets: Sequence[CategoryBudget],
        upcoming_fixed_costs: Sequence[UpcomingExpense],
        as_of: date,
        candidates: Sequence[Transaction] = (),
        max_items: Optional[int] = None,
    ) -> DashboardPayload:
        """Predictions, weather, candidate anomalies and the ranked insight list for one day"""
        transactions = tuple(transactions)
        budgets = tuple(budgets)

        cache = HistoryCache(transactions, max_visits=self.max_visits, lookback_days=self.lookback_days)
        anomalies = tuple(
            self.evaluate_candidate(candidate, transactions, budgets, cache=cache)
            for candidate in candidates
        )

        predictions = tuple(self.forecaster.predict_all(transactions, budgets, as_of))
        projection = self.forecaster.project_month(transactions, budgets, as_of)
        weather = self.classifier.forecast_today(transactions, projection, upcoming_fixed_costs, as_of)
        insights = tuple(self.ranker.rank(anomalies, predictions, weather, max_items))

        return DashboardPayload(
            predictions=predictions,
            projection=projection,
            weather=weather,
            anomalies=anomalies,
            insights=insights,
        )
