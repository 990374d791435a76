"""
Repositories Package - Story Contest Platform
story_contest/repositories/__init__.py

Data access layer for SQL database operations.
"""

from story_contest.repositories.base import BaseRepository
from story_contest.repositories.assessment_repository import AssessmentRepository
from story_contest.repositories.competition_repository import CompetitionRepository
from story_contest.repositories.entry_repository import EntryRepository
from story_contest.repositories.quota_repository import QuotaRepository
from story_contest.repositories.submission_repository import SubmissionRepository

__all__ = [
    "BaseRepository",
    "AssessmentRepository",
    "CompetitionRepository",
    "EntryRepository",
    "QuotaRepository",
    "SubmissionRepository",
]
