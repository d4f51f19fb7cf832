"""Dependency injection for FastAPI endpoints"""

from functools import lru_cache

from fastapi import Request

from spendcast.config import settings
from spendcast.domain.engine import SpendingEngine


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


@lru_cache(maxsize=1)
def get_engine() -> SpendingEngine:
    """Provide the spending engine configured from settings; it is stateless, so one instance serves all requests"""
    return SpendingEngine.from_settings(settings)
