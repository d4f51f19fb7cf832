"""Budget forecasting - end-of-period spend projection and days-to-overspend"""

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

from spendcast.domain.exceptions import InsufficientDataError, InvalidInputError
from spendcast.domain.models import (
    BudgetPrediction,
    Category,
    CategoryBudget,
    MonthlyProjection,
    Transaction,
    Trend,
    coerce_category,
)
from spendcast.domain.statistics import (
    CONFIDENCE_FLOOR,
    confidence_from_progress,
    confidence_interval,
    linear_regression,
    volatility,
)
from spendcast.utils.date_utils import as_date, generate_date_range, month_bounds

logger = logging.getLogger(__name__)

# Dead-band around the limit so noise near it does not flip the trend
TREND_BAND = 0.1


@dataclass(frozen=True)
class ForecastTuning:
    trend_band: float = TREND_BAND
    confidence_floor: float = CONFIDENCE_FLOOR
    interval_level: float = 0.95


def daily_totals(transactions: Iterable[Transaction], start: date, end: date) -> List[int]:
    """Spend per calendar day from start to end inclusive, zero-filled"""
    totals: Dict[date, int] = {day: 0 for day in generate_date_range(start, end)}
    for t in transactions:
        day = as_date(t.timestamp)
        if day in totals:
            totals[day] += t.amount
    return list(totals.values())


class BudgetForecaster:
    """Projects category and whole-month spend from the pace so far"""

    def __init__(self, tuning: Optional[ForecastTuning] = None):
        self.tuning = tuning or ForecastTuning()

    def predict(
        self,
        category_id: Category,
        month_to_date_transactions: Iterable[Transaction],
        budget: CategoryBudget,
        as_of: date,
    ) -> Optional[BudgetPrediction]:
        """
        Project `category_id` spend to the end of the budget period.

        Returns None when the budget has no limit (absent or zero): there is
        nothing to overspend. Days are counted inside the budget period, so a
        budget opened mid-month is projected over its own length.

        Example (30-day month, limit 100000):
            80000 spent by day 10 -> 8000/day, 20 days left
            predicted 80000 + 8000 * 20 = 240000, trend up,
            overspend in floor(20000 / 8000) = 2 days
        """
        category_id = coerce_category(category_id)
        if budget.category_id != category_id:
            raise InvalidInputError(
                f"Budget for {budget.category_id.value} cannot forecast {category_id.value}"
            )
        if not budget.has_limit:
            return None

        day = as_date(as_of)
        if not budget.contains(day):
            raise InvalidInputError(
                f"{day} is outside the budget period {budget.period_start}..{budget.period_end}"
            )

        days_elapsed = (day - budget.period_start).days + 1
        days_in_period = (budget.period_end - budget.period_start).days + 1
        days_remaining = days_in_period - days_elapsed  # 0 on the last day

        current_spent = sum(
            t.amount
            for t in month_to_date_transactions
            if t.category_id == category_id and budget.period_start <= as_date(t.timestamp) <= day
        )
        daily_average = current_spent / days_elapsed if days_elapsed > 0 else 0.0
        predicted_total = round(current_spent + daily_average * days_remaining)
        limit = budget.monthly_limit

        return BudgetPrediction(
            category_id=budget.category_id,
            current_spent=current_spent,
            limit=limit,
            predicted_total=predicted_total,
            days_until_overspend=self.days_until_overspend(current_spent, limit, daily_average, days_remaining),
            confidence=confidence_from_progress(days_elapsed / days_in_period, self.tuning.confidence_floor),
            trend=self.trend(predicted_total, limit),
            daily_average=daily_average,
            days_remaining=days_remaining,
        )

    @staticmethod
    def days_until_overspend(
        current_spent: int,
        limit: int,
        daily_average: float,
        days_remaining: int,
    ) -> Optional[int]:
        """
        Whole days of headroom at the current pace.

        None covers both "no pace to extrapolate" and "not within this period";
        callers render the two identically.
        """
        if current_spent >= limit:
            return 0
        if daily_average <= 0:
            return None
        days = math.floor((limit - current_spent) / daily_average)
        if days > days_remaining:
            return None
        return days

    def trend(self, predicted_total: float, limit: int) -> Trend:
        band = self.tuning.trend_band
        if predicted_total > limit * (1 + band):
            return Trend.UP
        if predicted_total < limit * (1 - band):
            return Trend.DOWN
        return Trend.STABLE

    def predict_all(
        self,
        transactions: Iterable[Transaction],
        budgets: Iterable[CategoryBudget],
        as_of: date,
    ) -> List[BudgetPrediction]:
        """One prediction per active, limited budget, in budget order"""
        day = as_date(as_of)
        transactions = list(transactions)

        active = [b for b in budgets if b.contains(day)]
        seen = set()
        for budget in active:
            if budget.category_id in seen:
                raise InvalidInputError(f"More than one active budget for {budget.category_id.value}")
            seen.add(budget.category_id)

        predictions = []
        for budget in active:
            prediction = self.predict(budget.category_id, transactions, budget, day)
            if prediction is not None:
                predictions.append(prediction)
        return predictions

    def project_month(
        self,
        transactions: Iterable[Transaction],
        budgets: Iterable[CategoryBudget],
        as_of: date,
    ) -> MonthlyProjection:
        """
        Whole-month pace across every category.

        The recommended daily budget spreads what is left of the combined
        limit over the remaining days including today; without any limit it
        falls back to the current daily average.
        """
        day = as_date(as_of)
        month_start, month_end = month_bounds(day)
        days_in_month = month_end.day
        days_elapsed = day.day
        days_remaining = days_in_month - days_elapsed

        month_txns = [t for t in transactions if month_start <= as_date(t.timestamp) <= day]
        current_spent = sum(t.amount for t in month_txns)

        limits = [b.monthly_limit for b in budgets if b.contains(day) and b.has_limit]
        limit = sum(limits) if limits else None

        daily_average = current_spent / days_elapsed
        projected_rest = daily_average * days_remaining
        predicted_total = round(current_spent + projected_rest)

        if limit is not None:
            recommended = (limit - current_spent) / (days_remaining + 1)
            excess = max(predicted_total - limit, 0)
        else:
            recommended = daily_average
            excess = 0

        totals = daily_totals(month_txns, month_start, day)
        low, high = confidence_interval(projected_rest, volatility(totals), self.tuning.interval_level)

        try:
            pace_slope = linear_regression(list(enumerate(totals))).slope
        except InsufficientDataError:
            logger.debug("Pace slope unavailable on day %s", day)
            pace_slope = None

        return MonthlyProjection(
            current_spent=current_spent,
            limit=limit,
            daily_average=daily_average,
            predicted_total=predicted_total,
            days_elapsed=days_elapsed,
            days_remaining=days_remaining,
            recommended_daily_budget=recommended,
            excess_amount=excess,
            confidence=confidence_from_progress(days_elapsed / days_in_month, self.tuning.confidence_floor),
            predicted_range=(round(current_spent + low), round(current_spent + high)),
            pace_slope=pace_slope,
        )
