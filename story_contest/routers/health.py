"""
Health Check Router - Story Contest Platform
story_contest/routers/health.py

Returns health status of the database and the Redis cache.
"""

from datetime import datetime, timezone
from typing import Dict

import redis
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from story_contest.config import settings
from story_contest.services.cache import get_cache
from story_contest.services.database import get_engine

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    dependencies: Dict[str, str]


def check_database() -> str:
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return "healthy"
    except SQLAlchemyError as e:
        return f"unhealthy: {e.__class__.__name__}"


def check_redis() -> str:
    cache = get_cache()
    if cache is None:
        return "unavailable"
    try:
        cache.client.ping()
        return "healthy"
    except redis.RedisError as e:
        return f"unhealthy: {e.__class__.__name__}"


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health_check():
    """
    Database failure makes the service unhealthy (503). Redis is optional:
    an unavailable cache reports degraded but still returns 200.
    """
    dependencies = {"database": check_database(), "redis": check_redis()}

    if dependencies["database"] != "healthy":
        overall = "unhealthy"
    elif dependencies["redis"] != "healthy":
        overall = "degraded"
    else:
        overall = "healthy"

    body = HealthResponse(
        status=overall,
        timestamp=datetime.now(timezone.utc),
        version=settings.APP_VERSION,
        dependencies=dependencies,
    )
    code = status.HTTP_503_SERVICE_UNAVAILABLE if overall == "unhealthy" else status.HTTP_200_OK
    return JSONResponse(status_code=code, content=body.model_dump(mode="json"))
