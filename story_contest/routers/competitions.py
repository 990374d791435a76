"""
Competitions Router - Story Contest Platform
story_contest/routers/competitions.py

Competition lifecycle endpoints: current competition, eligibility, entries,
phase advance and finalize.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from story_contest.config import settings
from story_contest.core.dependencies import get_competition_service, verify_cron_token
from story_contest.core.exceptions import ValidationException
from story_contest.models.competition import (
    Competition,
    CompetitionStats,
    Entry,
    FinalizeResult,
    Period,
    QuotaDecision,
)
from story_contest.models.submission import EntryCreate, Submission
from story_contest.routers.errors import CONFLICT, INVALID, NOT_FOUND, SERVER_ERROR, TOO_MANY
from story_contest.services.competition_service import CompetitionService

router = APIRouter(prefix=settings.API_V1_PREFIX, tags=["Competitions"])


@router.get(
    "/competitions/current",
    response_model=Competition,
    responses={**INVALID, **SERVER_ERROR},
    summary="Current competition",
    description="Returns the competition of the given period (default: this month), creating it if needed.",
)
async def get_current_competition(
    period: Optional[str] = Query(default=None, pattern=r"^\d{4}-\d{2}$", description="YYYY-MM"),
    service: CompetitionService = Depends(get_competition_service),
) -> Competition:
    try:
        parsed = Period.parse(period) if period else None
    except ValueError as e:
        raise ValidationException(str(e), {"field": "period"})
    return service.get_or_create_current_competition(parsed)


@router.get(
    "/competitions/{competition_id}",
    response_model=Competition,
    responses={**NOT_FOUND},
    summary="Get competition",
)
async def get_competition(
    competition_id: str,
    service: CompetitionService = Depends(get_competition_service),
) -> Competition:
    return service.get_competition(competition_id)


@router.get(
    "/competitions/{competition_id}/stats",
    response_model=CompetitionStats,
    responses={**NOT_FOUND},
    summary="Entry statistics",
)
async def get_competition_stats(
    competition_id: str,
    service: CompetitionService = Depends(get_competition_service),
) -> CompetitionStats:
    return service.get_competition_stats(competition_id)


@router.get(
    "/competitions/{competition_id}/eligibility",
    response_model=QuotaDecision,
    summary="Can this user submit?",
    description="Advisory quota and phase check. Never reserves an entry slot.",
)
async def check_eligibility(
    competition_id: str,
    user_id: str = Query(..., min_length=1),
    service: CompetitionService = Depends(get_competition_service),
) -> QuotaDecision:
    return service.can_submit(user_id, competition_id)


@router.post(
    "/competitions/{competition_id}/entries",
    response_model=Entry,
    status_code=status.HTTP_201_CREATED,
    responses={**NOT_FOUND, **CONFLICT, **TOO_MANY, **INVALID},
    summary="Submit an entry",
)
async def submit_entry(
    competition_id: str,
    body: EntryCreate,
    service: CompetitionService = Depends(get_competition_service),
) -> Entry:
    return service.submit_entry(competition_id, body.user_id, body.submission_id)


@router.get(
    "/competitions/{competition_id}/entries",
    response_model=List[Entry],
    summary="List a user's entries",
)
async def list_entries(
    competition_id: str,
    user_id: str = Query(..., min_length=1),
    service: CompetitionService = Depends(get_competition_service),
) -> List[Entry]:
    return service.list_user_entries(user_id, competition_id)


@router.post(
    "/competitions/{competition_id}/advance",
    response_model=Competition,
    responses={**NOT_FOUND, **SERVER_ERROR},
    dependencies=[Depends(verify_cron_token)],
    summary="Advance one phase if due",
)
async def advance_competition(
    competition_id: str,
    service: CompetitionService = Depends(get_competition_service),
) -> Competition:
    return service.advance_phase(competition_id)


@router.post(
    "/competitions/{competition_id}/finalize",
    response_model=FinalizeResult,
    responses={**NOT_FOUND, **CONFLICT},
    dependencies=[Depends(verify_cron_token)],
    summary="Rank entries and select winners",
)
async def finalize_competition(
    competition_id: str,
    service: CompetitionService = Depends(get_competition_service),
) -> FinalizeResult:
    return service.finalize_results(competition_id)


@router.get(
    "/users/{user_id}/eligible-submissions",
    response_model=List[Submission],
    responses={**NOT_FOUND},
    summary="Stories a user can still enter",
)
async def eligible_submissions(
    user_id: str,
    competition_id: Optional[str] = Query(default=None),
    service: CompetitionService = Depends(get_competition_service),
) -> List[Submission]:
    return service.get_eligible_submissions(user_id, competition_id)
