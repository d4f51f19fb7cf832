"""POST /v1/anomaly - pre-commit anomaly check for a proposed transaction"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from spendcast.api.v1.schemas import AnomalyRequest, AnomalyResponse
from spendcast.api.dependencies import get_engine, get_request_id
from spendcast.domain.engine import SpendingEngine
from spendcast.domain.exceptions import InvalidInputError
from spendcast.infrastructure.observability.metrics import record_anomaly
from spendcast.infrastructure.observability.logging import log_anomaly

router = APIRouter()


@router.post("/anomaly", response_model=AnomalyResponse)
def evaluate_anomaly(
    request_body: AnomalyRequest,
    request: Request,
    engine: SpendingEngine = Depends(get_engine),
):
    """
    Evaluate a transaction before it is committed.

    Flow:
    1. Convert candidate, committed history and budgets to domain objects
    2. Build the merchant/category window (candidate excluded)
    3. Score severity against history and remaining budget
    4. Return severity, reason and comparison for the confirmation prompt
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        candidate = request_body.candidate.to_domain()
        history = [t.to_domain() for t in request_body.history]
        budgets = [b.to_domain() for b in request_body.budgets]

        result = engine.evaluate_candidate(candidate, history, budgets)

        duration_ms = (time.time() - start_time) * 1000
        record_anomaly(result)
        log_anomaly(request_id, result, duration_ms)

        return AnomalyResponse.model_validate(result)

    except InvalidInputError as e:
        logging.warning(f"Invalid input: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
