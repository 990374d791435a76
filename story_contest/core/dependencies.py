"""
Dependencies - Story Contest Platform
story_contest/core/dependencies.py

FastAPI dependency injection for the service facade and the cron guard.
"""

import secrets
from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException, status

from story_contest.config import settings
from story_contest.services.competition_service import CompetitionService


@lru_cache()
def get_competition_service() -> CompetitionService:
    """Get cached CompetitionService instance."""
    return CompetitionService()


def verify_cron_token(authorization: Optional[str] = Header(default=None)) -> None:
    """
    Require `Authorization: Bearer <CRON_SECRET_TOKEN>` when a token is configured.
    """
    if settings.CRON_SECRET_TOKEN is None:
        return
    expected = f"Bearer {settings.CRON_SECRET_TOKEN.get_secret_value()}"
    if authorization is None or not secrets.compare_digest(authorization, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error_code": "UNAUTHORIZED", "message": "Invalid or missing cron token"},
        )
