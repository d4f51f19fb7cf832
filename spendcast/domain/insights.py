"""Insight ranking - merges anomalies, predictions and weather into a short ordered list"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from spendcast.domain.models import (
    AnomalyResult,
    BudgetPrediction,
    Category,
    InsightKind,
    RankedInsight,
    Severity,
    WeatherCondition,
    WeatherForecast,
)
from spendcast.utils.money_utils import format_minor_units

HORIZON_DAYS = 10
URGENT_DAYS = 3
MAX_ITEMS = 5

# Priority tiers, most urgent first
HIGH_ANOMALY = 0
URGENT_PREDICTION = 1
MEDIUM_ANOMALY = 2
PREDICTION = 3
WEATHER = 4


@dataclass(frozen=True)
class InsightPolicy:
    horizon_days: int = HORIZON_DAYS
    urgent_days: int = URGENT_DAYS
    max_items: int = MAX_ITEMS


def category_label(category: Category) -> str:
    return category.value.replace("_", " ").capitalize()


def overspend_message(prediction: BudgetPrediction) -> str:
    label = category_label(prediction.category_id).lower()
    if prediction.days_until_overspend == 0:
        return f"The {label} budget is already used up ({format_minor_units(prediction.current_spent)} spent)"
    return (
        f"At this pace the {label} budget runs out in {prediction.days_until_overspend} days, "
        f"ending near {format_minor_units(prediction.predicted_total)}"
    )


class InsightRanker:
    """Never fails; returns an empty list when nothing is worth showing"""

    def __init__(self, policy: Optional[InsightPolicy] = None):
        self.policy = policy or InsightPolicy()

    def rank(
        self,
        anomalies: Iterable[AnomalyResult],
        predictions: Iterable[BudgetPrediction],
        weather: Optional[WeatherForecast],
        max_items: Optional[int] = None,
    ) -> List[RankedInsight]:
        """
        Order flagged items by tier, then by money at stake.

        Tiers: high anomalies, predictions overspending within `urgent_days`,
        medium anomalies, other predictions inside the `horizon_days`
        look-ahead, and the weather advisory last. Low anomalies, predictions
        outside the horizon and a sunny forecast are left out. Equal keys keep
        their input order.
        """
        limit = self.policy.max_items if max_items is None else max_items
        if limit <= 0:
            return []

        items: List[RankedInsight] = []

        for anomaly in anomalies:
            if anomaly.severity == Severity.HIGH:
                tier = HIGH_ANOMALY
            elif anomaly.severity == Severity.MEDIUM:
                tier = MEDIUM_ANOMALY
            else:
                continue
            items.append(
                RankedInsight(
                    kind=InsightKind.ANOMALY,
                    priority=tier,
                    impact=anomaly.amount,
                    title=f"Unusual {category_label(anomaly.category_id).lower()} purchase",
                    message=anomaly.reason,
                    category_id=anomaly.category_id,
                    transaction_id=anomaly.transaction_id,
                )
            )

        for prediction in predictions:
            days = prediction.days_until_overspend
            if days is None or days > self.policy.horizon_days:
                continue
            items.append(
                RankedInsight(
                    kind=InsightKind.PREDICTION,
                    priority=URGENT_PREDICTION if days <= self.policy.urgent_days else PREDICTION,
                    impact=prediction.predicted_overage,
                    title=f"{category_label(prediction.category_id)} budget",
                    message=overspend_message(prediction),
                    category_id=prediction.category_id,
                )
            )

        if weather is not None and weather.condition != WeatherCondition.SUNNY:
            items.append(
                RankedInsight(
                    kind=InsightKind.WEATHER,
                    priority=WEATHER,
                    impact=weather.expected_spending,
                    title=weather.title,
                    message=weather.advice,
                )
            )

        # sorted() is stable: ties keep input order
        ranked = sorted(items, key=lambda item: (item.priority, -item.impact))
        return ranked[:limit]
