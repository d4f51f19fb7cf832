"""Financial weather - daily spending risk as a discrete condition with advice"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from spendcast.domain.exceptions import InvalidInputError
from spendcast.domain.forecasting import daily_totals
from spendcast.domain.models import (
    MonthlyProjection,
    RiskLevel,
    Transaction,
    UpcomingExpense,
    WeatherCondition,
    WeatherForecast,
)
from spendcast.domain.statistics import day_of_week_multipliers, weighted_moving_average
from spendcast.utils.date_utils import as_date, generate_date_range, is_friday, is_weekend
from spendcast.utils.money_utils import format_minor_units

STORMY_RATIO = 1.5
STORMY_WITH_BILLS_RATIO = 1.2
RAINY_RATIO = 1.2
RAINY_FIXED_COST_COUNT = 2
CLOUDY_RATIO = 0.9
WEEKEND_CLOUDY_RATIO = 0.7
PARTLY_CLOUDY_RATIO = 0.5
RISK_HIGH_RATIO = 1.2
RISK_MEDIUM_RATIO = 0.8
MAX_UPCOMING = 3
HALF_LIFE_DAYS = 7.0
LOOKBACK_DAYS = 30
SEASONALITY_MIN_DAYS = 28

# Spend relative to an average day, Monday == 0; weekends and Fridays run hot
DEFAULT_DAY_MULTIPLIERS: Tuple[float, ...] = (0.9, 0.85, 0.9, 0.95, 1.4, 1.5, 1.3)


@dataclass(frozen=True)
class WeatherThresholds:
    stormy_ratio: float = STORMY_RATIO
    stormy_with_bills_ratio: float = STORMY_WITH_BILLS_RATIO
    rainy_ratio: float = RAINY_RATIO
    rainy_fixed_cost_count: int = RAINY_FIXED_COST_COUNT
    cloudy_ratio: float = CLOUDY_RATIO
    weekend_cloudy_ratio: float = WEEKEND_CLOUDY_RATIO
    partly_cloudy_ratio: float = PARTLY_CLOUDY_RATIO
    risk_high_ratio: float = RISK_HIGH_RATIO
    risk_medium_ratio: float = RISK_MEDIUM_RATIO
    max_upcoming: int = MAX_UPCOMING
    half_life_days: float = HALF_LIFE_DAYS
    lookback_days: int = LOOKBACK_DAYS
    seasonality_min_days: int = SEASONALITY_MIN_DAYS
    day_multipliers: Tuple[float, ...] = DEFAULT_DAY_MULTIPLIERS


@dataclass(frozen=True)
class DayOutlook:
    """Facts the condition and risk rules read"""

    ratio: float
    safe_to_spend: int
    upcoming_count: int
    upcoming_total: int
    weekend: bool


ConditionRule = Tuple[Callable[[DayOutlook], bool], WeatherCondition]
RiskRule = Tuple[Callable[[DayOutlook], bool], RiskLevel]


def condition_rules(t: WeatherThresholds) -> List[ConditionRule]:
    """Ordered from most to least severe; first match wins, SUNNY when none match"""
    return [
        (
            lambda o: o.ratio > t.stormy_ratio or (o.upcoming_count > 0 and o.ratio > t.stormy_with_bills_ratio),
            WeatherCondition.STORMY,
        ),
        (
            lambda o: o.ratio > t.rainy_ratio or o.upcoming_count >= t.rainy_fixed_cost_count,
            WeatherCondition.RAINY,
        ),
        (
            lambda o: o.ratio > t.cloudy_ratio or (o.weekend and o.ratio > t.weekend_cloudy_ratio),
            WeatherCondition.CLOUDY,
        ),
        (
            lambda o: o.ratio > t.partly_cloudy_ratio or o.upcoming_count > 0,
            WeatherCondition.PARTLY_CLOUDY,
        ),
    ]


def risk_rules(t: WeatherThresholds) -> List[RiskRule]:
    """Alerting level; overlaps with the condition rules but is deliberately separate"""
    return [
        (lambda o: o.ratio > t.risk_high_ratio or o.upcoming_total > o.safe_to_spend, RiskLevel.HIGH),
        (lambda o: o.ratio > t.risk_medium_ratio or o.upcoming_count > 0, RiskLevel.MEDIUM),
    ]


TITLES: Dict[WeatherCondition, str] = {
    WeatherCondition.SUNNY: "Sunny",
    WeatherCondition.PARTLY_CLOUDY: "Partly cloudy",
    WeatherCondition.CLOUDY: "Cloudy",
    WeatherCondition.RAINY: "Rainy",
    WeatherCondition.STORMY: "Stormy",
}

# Keyed by (condition, weekend, friday); Friday is not a weekend day
ADVICE: Dict[Tuple[WeatherCondition, bool, bool], str] = {
    (WeatherCondition.SUNNY, False, False): "A great day for saving. Maybe move a little towards a goal?",
    (WeatherCondition.SUNNY, False, True): "Calm Friday. Put something aside before the weekend starts.",
    (WeatherCondition.SUNNY, True, False): "A quiet weekend ahead. Enjoy it without opening the wallet.",
    (WeatherCondition.PARTLY_CLOUDY, False, False): "Stick to the plan and the day will be fine.",
    (WeatherCondition.PARTLY_CLOUDY, False, True): "It's Friday. Plan the weekend wisely!",
    (WeatherCondition.PARTLY_CLOUDY, True, False): "Some spending is expected. Decide what it is for up front.",
    (WeatherCondition.CLOUDY, False, False): "Avoid spontaneous purchases today.",
    (WeatherCondition.CLOUDY, False, True): "Friday treats add up. Pick one, skip the rest.",
    (WeatherCondition.CLOUDY, True, False): "Weekend temptations. Set a limit before you head out.",
    (WeatherCondition.RAINY, False, False): "Safe limit for today: {safe_to_spend}. Stick to it!",
    (WeatherCondition.RAINY, False, True): "Safe limit for today: {safe_to_spend}. Keep Friday plans within it.",
    (WeatherCondition.RAINY, True, False): "Safe limit for today: {safe_to_spend}. Free weekend plans are your friend.",
    (WeatherCondition.STORMY, False, False): "A day to stay in. Every coin counts!",
    (WeatherCondition.STORMY, False, True): "Skip the Friday night out. Every coin counts!",
    (WeatherCondition.STORMY, True, False): "Heavy weekend for the wallet. Stay in and postpone what you can.",
}


def first_match(rules, outlook: DayOutlook, default):
    for predicate, result in rules:
        if predicate(outlook):
            return result
    return default


class WeatherClassifier:
    """Turns expected vs safe daily spend and known fixed costs into a forecast"""

    def __init__(self, thresholds: Optional[WeatherThresholds] = None):
        self.thresholds = thresholds or WeatherThresholds()
        self.conditions = condition_rules(self.thresholds)
        self.risks = risk_rules(self.thresholds)

    def classify(
        self,
        expected_spending_today: int,
        safe_to_spend_today: int,
        upcoming_fixed_costs: Sequence[UpcomingExpense],
        day_of_week: int,
    ) -> WeatherForecast:
        """
        Classify one day.

        ratio = expected / max(safe, 1); an exhausted safe-to-spend turns any
        positive expectation into a large ratio instead of a division error.
        `day_of_week` follows date.weekday() (Monday == 0).
        """
        if expected_spending_today < 0 or safe_to_spend_today < 0:
            raise InvalidInputError("Expected and safe-to-spend amounts must be non-negative")
        if day_of_week not in range(7):
            raise InvalidInputError(f"day_of_week must be 0..6, got {day_of_week}")

        upcoming = list(upcoming_fixed_costs)
        weekend = is_weekend(day_of_week)
        outlook = DayOutlook(
            ratio=expected_spending_today / max(safe_to_spend_today, 1),
            safe_to_spend=safe_to_spend_today,
            upcoming_count=len(upcoming),
            upcoming_total=sum(u.amount for u in upcoming),
            weekend=weekend,
        )

        condition = first_match(self.conditions, outlook, WeatherCondition.SUNNY)
        risk_level = first_match(self.risks, outlook, RiskLevel.LOW)
        advice = ADVICE[(condition, weekend, is_friday(day_of_week))].format(
            safe_to_spend=format_minor_units(safe_to_spend_today)
        )

        return WeatherForecast(
            condition=condition,
            expected_spending=expected_spending_today,
            safe_to_spend=safe_to_spend_today,
            risk_level=risk_level,
            advice=advice,
            title=TITLES[condition],
            upcoming_expenses=tuple(upcoming[: self.thresholds.max_upcoming]),
        )

    def day_multipliers(self, transactions: Sequence[Transaction], day: date) -> Tuple[float, ...]:
        """Per-weekday multipliers, Monday first: learned once history is long enough, else the configured table"""
        if not transactions:
            return self.thresholds.day_multipliers
        first_day = min(as_date(t.timestamp) for t in transactions)
        if (day - first_day).days + 1 < self.thresholds.seasonality_min_days:
            return self.thresholds.day_multipliers

        span = generate_date_range(first_day, day)
        totals = daily_totals(transactions, first_day, day)
        learned = day_of_week_multipliers(list(zip(span, totals)))
        return tuple(learned[weekday] for weekday in range(7))

    def expected_spending(self, transactions: Iterable[Transaction], as_of: date) -> int:
        """Recency-weighted daily spend over the lookback, scaled for the weekday"""
        day = as_date(as_of)
        history = [t for t in transactions if as_date(t.timestamp) <= day]
        start = day - timedelta(days=self.thresholds.lookback_days - 1)

        points = [
            (datetime.combine(d, time()), total)
            for d, total in zip(generate_date_range(start, day), daily_totals(history, start, day))
        ]
        average = weighted_moving_average(
            points, self.thresholds.half_life_days, as_of=datetime.combine(day, time())
        )
        multiplier = self.day_multipliers(history, day)[day.weekday()]
        return round(average * multiplier)

    def forecast_today(
        self,
        transactions: Iterable[Transaction],
        projection: MonthlyProjection,
        upcoming_fixed_costs: Sequence[UpcomingExpense],
        as_of: date,
    ) -> WeatherForecast:
        """Build today's forecast from history and the whole-month projection"""
        day = as_date(as_of)
        expected = self.expected_spending(list(transactions), day)
        safe = max(0, round(projection.recommended_daily_budget))
        return self.classify(expected, safe, upcoming_fixed_costs, day.weekday())
