"""
Models Package - Story Contest Platform
story_contest/models/__init__.py

Pydantic models shared by the lifecycle manager, the scoring engine and the API.
"""

from story_contest.models.assessment import (
    AssessmentContext,
    AssessmentResult,
    IntegrityAnalysis,
)
from story_contest.models.competition import (
    Competition,
    CompetitionSchedule,
    Entry,
    FinalizeResult,
    Period,
    QuotaDecision,
    Winner,
)
from story_contest.models.submission import Submission

__all__ = [
    "AssessmentContext",
    "AssessmentResult",
    "IntegrityAnalysis",
    "Competition",
    "CompetitionSchedule",
    "Entry",
    "FinalizeResult",
    "Period",
    "QuotaDecision",
    "Winner",
    "Submission",
]
