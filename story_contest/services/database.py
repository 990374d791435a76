"""
Database Engine - Story Contest Platform
story_contest/services/database.py

SQLAlchemy engine factory and schema bootstrap. Repositories issue raw SQL
through `text()`; there is no ORM mapping.
"""

from functools import lru_cache
from typing import Optional

import structlog
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from story_contest.config import settings

logger = structlog.get_logger(__name__)


SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS competitions (
        id TEXT PRIMARY KEY,
        period_key TEXT NOT NULL,
        year INTEGER NOT NULL,
        month INTEGER NOT NULL,
        phase TEXT NOT NULL,
        submission_start TEXT NOT NULL,
        judging_start TEXT NOT NULL,
        results_date TEXT NOT NULL,
        archive_after TEXT NOT NULL,
        judging_criteria TEXT NOT NULL,
        is_active INTEGER NOT NULL DEFAULT 1,
        judging_completed INTEGER NOT NULL DEFAULT 0,
        transitioning_to TEXT,
        transition_started_at TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    # At most one non-archived competition per period
    """
    CREATE UNIQUE INDEX IF NOT EXISTS ux_competitions_active_period
        ON competitions (period_key) WHERE is_active = 1
    """,
    """
    CREATE TABLE IF NOT EXISTS competition_winners (
        competition_id TEXT NOT NULL REFERENCES competitions (id),
        position INTEGER NOT NULL,
        entry_id TEXT NOT NULL,
        submission_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        author_name TEXT,
        title TEXT,
        score REAL NOT NULL,
        PRIMARY KEY (competition_id, position)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS entries (
        id TEXT PRIMARY KEY,
        competition_id TEXT NOT NULL REFERENCES competitions (id),
        user_id TEXT NOT NULL,
        submission_id TEXT NOT NULL,
        submitted_at TEXT NOT NULL,
        phase_at_submission TEXT NOT NULL,
        score REAL,
        rank INTEGER,
        excluded INTEGER NOT NULL DEFAULT 0,
        needs_manual_assessment INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE UNIQUE INDEX IF NOT EXISTS ux_entries_competition_submission
        ON entries (competition_id, submission_id)
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_entries_user
        ON entries (user_id, competition_id)
    """,
    """
    CREATE TABLE IF NOT EXISTS quota_counters (
        user_id TEXT NOT NULL,
        period_key TEXT NOT NULL,
        count INTEGER NOT NULL DEFAULT 0,
        updated_at TEXT NOT NULL,
        PRIMARY KEY (user_id, period_key)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS submissions (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        author_name TEXT,
        title TEXT NOT NULL DEFAULT '',
        content TEXT NOT NULL DEFAULT '',
        age_bracket TEXT NOT NULL DEFAULT '9-12',
        is_published INTEGER NOT NULL DEFAULT 0,
        status TEXT NOT NULL DEFAULT 'pending',
        needs_review INTEGER NOT NULL DEFAULT 0,
        review_status TEXT NOT NULL DEFAULT 'none',
        needs_manual_assessment INTEGER NOT NULL DEFAULT 0,
        last_assessed_at TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS assessments (
        submission_id TEXT PRIMARY KEY,
        overall_score REAL NOT NULL,
        category_scores TEXT NOT NULL,
        risk_tier TEXT NOT NULL,
        disposition TEXT NOT NULL,
        needs_manual_assessment INTEGER NOT NULL DEFAULT 0,
        result_json TEXT NOT NULL,
        assessed_at TEXT NOT NULL
    )
    """,
]


def build_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """Create an engine; SQLite connections are shared across worker threads."""
    url = url or settings.DATABASE_URL
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}
    return create_engine(
        url,
        future=True,
        pool_pre_ping=True,
        echo=settings.DATABASE_ECHO if echo is None else echo,
        connect_args=connect_args,
    )


@lru_cache
def get_engine() -> Engine:
    return build_engine()


def init_db(engine: Optional[Engine] = None) -> None:
    """Create tables and indexes if they do not exist."""
    engine = engine or get_engine()
    with engine.begin() as conn:
        for statement in SCHEMA_STATEMENTS:
            conn.execute(text(statement))
    logger.info("database_initialized", url=engine.url.render_as_string(hide_password=True))
