"""
Assessment Router - Story Contest Platform
story_contest/routers/assessments.py

Stateless story assessment, integrity classification and re-assessment of
stored submissions.
"""

from fastapi import APIRouter, Depends

from story_contest.config import settings
from story_contest.core.dependencies import get_competition_service
from story_contest.models.assessment import (
    AssessmentRequest,
    AssessmentResult,
    IntegrityAnalysis,
    IntegrityClassifyRequest,
)
from story_contest.routers.errors import INVALID, NOT_FOUND
from story_contest.services.competition_service import CompetitionService

router = APIRouter(prefix=settings.API_V1_PREFIX, tags=["Assessments"])


@router.post(
    "/assessments",
    response_model=AssessmentResult,
    responses={**INVALID},
    summary="Assess a story",
    description="Scores the text across every category and classifies its integrity. Nothing is stored.",
)
async def assess_story(
    body: AssessmentRequest,
    service: CompetitionService = Depends(get_competition_service),
) -> AssessmentResult:
    return service.compute_assessment(body.text, body.context, detailed=body.detailed)


@router.post(
    "/integrity/classify",
    response_model=IntegrityAnalysis,
    responses={**INVALID},
    summary="Classify integrity signals",
)
async def classify_integrity(
    body: IntegrityClassifyRequest,
    service: CompetitionService = Depends(get_competition_service),
) -> IntegrityAnalysis:
    return service.classify_integrity(
        body.plagiarism_score,
        body.ai_likelihood,
        plagiarism_risk=body.plagiarism_risk,
        ai_likelihood_score=body.ai_likelihood_score,
    )


@router.post(
    "/submissions/{submission_id}/reassess",
    response_model=AssessmentResult,
    responses={**NOT_FOUND},
    summary="Re-assess a stored story",
)
async def reassess_submission(
    submission_id: str,
    detailed: bool = False,
    service: CompetitionService = Depends(get_competition_service),
) -> AssessmentResult:
    return service.reassess_submission(submission_id, detailed=detailed)
