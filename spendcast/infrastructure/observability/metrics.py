"""Prometheus metrics for anomaly severities, forecast trends and weather conditions"""

from typing import Iterable

from prometheus_client import Counter, Histogram

from spendcast.domain.models import AnomalyResult, BudgetPrediction, RankedInsight, WeatherForecast

# Anomaly metrics
anomaly_counter = Counter(
    "spendcast_anomaly_total",
    "Candidate transactions evaluated",
    ["severity", "baseline"],  # low | medium | high, merchant | category | none
)

# Forecast metrics
prediction_counter = Counter(
    "spendcast_prediction_total",
    "Category budget predictions made",
    ["trend"],  # up | down | stable
)

overspend_horizon_counter = Counter(
    "spendcast_overspend_horizon",
    "Predictions by days until overspend",
    ["bucket"],  # over, 1-3d, 4-10d, later, none
)

# Weather metrics
weather_counter = Counter(
    "spendcast_weather_total",
    "Daily weather forecasts issued",
    ["condition", "risk_level"],
)

insight_count_histogram = Histogram(
    "spendcast_insights_returned",
    "Ranked insights returned per dashboard",
    buckets=[0, 1, 2, 3, 5, 8, 13],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_anomaly(result: AnomalyResult) -> None:
    anomaly_counter.labels(severity=result.severity.value, baseline=result.baseline.value).inc()


def record_predictions(predictions: Iterable[BudgetPrediction]) -> None:
    """Record trend and overspend-horizon distribution"""
    for prediction in predictions:
        prediction_counter.labels(trend=prediction.trend.value).inc()

        days = prediction.days_until_overspend
        if days is None:
            bucket = "none"
        elif days == 0:
            bucket = "over"
        elif days <= 3:
            bucket = "1-3d"
        elif days <= 10:
            bucket = "4-10d"
        else:
            bucket = "later"

        overspend_horizon_counter.labels(bucket=bucket).inc()


def record_weather(forecast: WeatherForecast) -> None:
    weather_counter.labels(condition=forecast.condition.value, risk_level=forecast.risk_level.value).inc()


def record_insights(insights: Iterable[RankedInsight]) -> None:
    insight_count_histogram.observe(len(list(insights)))
