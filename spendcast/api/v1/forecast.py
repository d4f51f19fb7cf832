"""POST /v1/forecast - category overspend predictions and whole-month projection"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from spendcast.api.v1.schemas import ForecastRequest, ForecastResponse, PredictionSchema, ProjectionSchema
from spendcast.api.dependencies import get_engine, get_request_id
from spendcast.domain.engine import SpendingEngine
from spendcast.domain.exceptions import InvalidInputError
from spendcast.infrastructure.observability.metrics import record_predictions
from spendcast.infrastructure.observability.logging import log_forecast

router = APIRouter()


@router.post("/forecast", response_model=ForecastResponse)
def create_forecast(
    request_body: ForecastRequest,
    request: Request,
    engine: SpendingEngine = Depends(get_engine),
):
    """
    Project spend to the end of the budget period.

    Budgets without a limit produce no prediction; the projection always
    covers the whole calendar month of `as_of`.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        transactions = [t.to_domain() for t in request_body.transactions]
        budgets = [b.to_domain() for b in request_body.budgets]

        predictions = engine.forecaster.predict_all(transactions, budgets, request_body.as_of)
        projection = engine.forecaster.project_month(transactions, budgets, request_body.as_of)

        duration_ms = (time.time() - start_time) * 1000
        at_risk = sum(1 for p in predictions if p.days_until_overspend is not None)
        record_predictions(predictions)
        log_forecast(request_id, len(predictions), at_risk, duration_ms)

        return ForecastResponse(
            predictions=[PredictionSchema.model_validate(p) for p in predictions],
            projection=ProjectionSchema.model_validate(projection),
        )

    except InvalidInputError as e:
        logging.warning(f"Invalid input: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
