"""
Cron Router - Story Contest Platform
story_contest/routers/cron.py

Scheduler hook: ensures this month's competition exists, advances every
competition whose boundary has passed and drops stale quota counters.
"""

from datetime import datetime, timezone
from typing import Dict, List

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from story_contest.config import settings
from story_contest.core.dependencies import get_competition_service, verify_cron_token
from story_contest.services.competition_service import CompetitionService

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix=f"{settings.API_V1_PREFIX}/cron",
    tags=["Cron"],
    dependencies=[Depends(verify_cron_token)],
)


class PhaseRunResponse(BaseModel):
    processed: int
    results: List[Dict[str, str]]
    quota_counters_removed: int
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@router.post("/competition-phase", response_model=PhaseRunResponse, summary="Advance due competitions")
async def run_competition_phase(
    service: CompetitionService = Depends(get_competition_service),
) -> PhaseRunResponse:
    results = service.advance_due_competitions()
    removed = service.roll_over_quotas()
    logger.info("cron_phase_run", processed=len(results), quota_counters_removed=removed)
    return PhaseRunResponse(processed=len(results), results=results, quota_counters_removed=removed)
