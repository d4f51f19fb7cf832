"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from spendcast.config import settings
from spendcast.domain.models import AnomalyResult, DashboardPayload


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_anomaly(request_id: str, result: AnomalyResult, duration_ms: float) -> None:
    """Log the outcome of a pre-commit anomaly check"""
    logging.info(
        "Anomaly evaluated",
        extra={
            "request_id": request_id,
            "step": "anomaly_evaluated",
            "transaction_id": result.transaction_id,
            "category": result.category_id.value,
            "severity": result.severity.value,
            "baseline": result.baseline.value,
            "budget_escalated": result.budget_escalated,
            "flags": list(result.flags),
            "duration_ms": duration_ms,
        },
    )


def log_forecast(request_id: str, prediction_count: int, at_risk_count: int, duration_ms: float) -> None:
    """Log a budget forecast run; at-risk means an overspend day was predicted"""
    logging.info(
        "Forecast completed",
        extra={
            "request_id": request_id,
            "step": "forecast_complete",
            "prediction_count": prediction_count,
            "at_risk_count": at_risk_count,
            "duration_ms": duration_ms,
        },
    )


def log_dashboard(request_id: str, payload: DashboardPayload, duration_ms: float) -> None:
    """Log a full dashboard build"""
    logging.info(
        "Dashboard built",
        extra={
            "request_id": request_id,
            "step": "dashboard_complete",
            "condition": payload.weather.condition.value,
            "risk_level": payload.weather.risk_level.value,
            "anomaly_count": len(payload.anomalies),
            "insight_count": len(payload.insights),
            "duration_ms": duration_ms,
        },
    )
