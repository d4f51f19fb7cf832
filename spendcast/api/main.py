"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from spendcast.api.middleware import MetricsMiddleware, RequestIDMiddleware
from spendcast.api.v1 import anomaly, forecast, insights, weather
from spendcast.config import settings
from spendcast.infrastructure.observability.logging import setup_logging

VERSION = "0.1.0"

V1_ROUTERS = (
    (anomaly.router, "anomalies"),
    (forecast.router, "forecasts"),
    (weather.router, "weather"),
    (insights.router, "insights"),
)

setup_logging(settings.log_level)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Spendcast",
        description="Spending anomalies, budget forecasts and daily financial weather",
        version=VERSION,
    )

    # Last added is outermost
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name, "version": VERSION}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    for router, tag in V1_ROUTERS:
        app.include_router(router, prefix="/v1", tags=[tag])

    return app


app = create_app()
