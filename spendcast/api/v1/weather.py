"""POST /v1/weather - daily financial weather forecast"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from spendcast.api.v1.schemas import ClassifyRequest, WeatherRequest, WeatherResponse
from spendcast.api.dependencies import get_engine, get_request_id
from spendcast.domain.engine import SpendingEngine
from spendcast.domain.exceptions import InvalidInputError
from spendcast.infrastructure.observability.metrics import record_weather

router = APIRouter()


@router.post("/weather", response_model=WeatherResponse)
def forecast_weather(
    request_body: WeatherRequest,
    request: Request,
    engine: SpendingEngine = Depends(get_engine),
):
    """Forecast today's spending weather from history, budgets and the fixed-cost schedule"""
    request_id = get_request_id(request)

    try:
        transactions = [t.to_domain() for t in request_body.transactions]
        budgets = [b.to_domain() for b in request_body.budgets]
        upcoming = [u.to_domain() for u in request_body.upcoming_expenses]

        projection = engine.forecaster.project_month(transactions, budgets, request_body.as_of)
        forecast = engine.classifier.forecast_today(transactions, projection, upcoming, request_body.as_of)

        record_weather(forecast)
        return WeatherResponse.model_validate(forecast)

    except InvalidInputError as e:
        logging.warning(f"Invalid input: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/weather/classify", response_model=WeatherResponse)
def classify_weather(
    request_body: ClassifyRequest,
    request: Request,
    engine: SpendingEngine = Depends(get_engine),
):
    """Classify precomputed expected and safe-to-spend amounts"""
    request_id = get_request_id(request)

    try:
        forecast = engine.classifier.classify(
            request_body.expected_spending,
            request_body.safe_to_spend,
            [u.to_domain() for u in request_body.upcoming_expenses],
            request_body.day_of_week,
        )

        record_weather(forecast)
        return WeatherResponse.model_validate(forecast)

    except InvalidInputError as e:
        logging.warning(f"Invalid input: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))
