"""POST /v1/insights - full dashboard payload with ranked insights"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from spendcast.api.v1.schemas import (
    AnomalyResponse,
    InsightSchema,
    InsightsRequest,
    InsightsResponse,
    PredictionSchema,
    ProjectionSchema,
    WeatherResponse,
)
from spendcast.api.dependencies import get_engine, get_request_id
from spendcast.domain.engine import SpendingEngine
from spendcast.domain.exceptions import InvalidInputError
from spendcast.infrastructure.observability.metrics import (
    record_anomaly,
    record_insights,
    record_predictions,
    record_weather,
)
from spendcast.infrastructure.observability.logging import log_dashboard

router = APIRouter()


@router.post("/insights", response_model=InsightsResponse)
def build_insights(
    request_body: InsightsRequest,
    request: Request,
    engine: SpendingEngine = Depends(get_engine),
):
    """
    Build everything a dashboard render needs.

    Flow:
    1. Evaluate each candidate against the committed history
    2. Predict every limited category budget and project the month
    3. Forecast today's weather from the projection
    4. Rank anomalies, predictions and weather into at most `max_items` insights
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        payload = engine.build_dashboard(
            transactions=[t.to_domain() for t in request_body.transactions],
            budgets=[b.to_domain() for b in request_body.budgets],
            upcoming_fixed_costs=[u.to_domain() for u in request_body.upcoming_expenses],
            as_of=request_body.as_of,
            candidates=[c.to_domain() for c in request_body.candidates],
            max_items=request_body.max_items,
        )

        duration_ms = (time.time() - start_time) * 1000
        for anomaly in payload.anomalies:
            record_anomaly(anomaly)
        record_predictions(payload.predictions)
        record_weather(payload.weather)
        record_insights(payload.insights)
        log_dashboard(request_id, payload, duration_ms)

        return InsightsResponse(
            insights=[InsightSchema.model_validate(i) for i in payload.insights],
            anomalies=[AnomalyResponse.model_validate(a) for a in payload.anomalies],
            predictions=[PredictionSchema.model_validate(p) for p in payload.predictions],
            projection=ProjectionSchema.model_validate(payload.projection),
            weather=WeatherResponse.model_validate(payload.weather),
        )

    except InvalidInputError as e:
        logging.warning(f"Invalid input: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
