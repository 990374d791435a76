# tests/conftest.py

"""
Pytest Fixtures - Shared test configuration for the lifecycle manager,
the assessment engine and the API.

Every test gets its own SQLite file under tmp_path, a controllable clock
and a notifier that records events instead of sending them. Redis is
disabled so the cache helpers degrade to no-ops.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Tuple
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from story_contest.core.dependencies import get_competition_service
from story_contest.main import app
from story_contest.models.competition import Period
from story_contest.models.submission import Submission
from story_contest.routers import health as health_module
from story_contest.services import cache as cache_module
from story_contest.services.competition_service import CompetitionService
from story_contest.services.database import build_engine, init_db
from story_contest.services.notifications import Notifier


SAMPLE_STORY = (
    "Maya found a tiny silver key under the old oak tree behind her school. "
    "She wondered what it could open, so she asked her brave friend Leo to help.\n\n"
    "Together they searched the dusty attic because Maya remembered a locked wooden box. "
    "The key fit perfectly! Inside they discovered a faded map that showed a hidden garden.\n\n"
    "They followed the map through the whispering forest and across a cold, sparkling stream. "
    "Finally they found the garden, full of glowing flowers that smelled like honey. "
    "Maya learned that curiosity and friendship can lead to wonderful adventures."
)


# =============================================================================
# CLOCK & NOTIFIER
# =============================================================================

class FixedClock:
    """Callable clock that only moves when a test moves it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingNotifier(Notifier):
    def __init__(self):
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def send(self, event: str, payload: Dict[str, Any]) -> None:
        self.events.append((event, payload))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]


# =============================================================================
# INFRASTRUCTURE FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def no_redis(monkeypatch):
    """Run every test without Redis."""
    monkeypatch.setattr(cache_module, "get_cache", lambda: None)
    monkeypatch.setattr(health_module, "get_cache", lambda: None)


@pytest.fixture
def engine(tmp_path):
    db_engine = build_engine(f"sqlite:///{tmp_path / 'contest.db'}", echo=False)
    init_db(db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def period():
    return Period(year=2026, month=3)


@pytest.fixture
def clock():
    """Mid-submission instant of the March 2026 competition."""
    return FixedClock(datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(engine, notifier, clock):
    return CompetitionService(engine=engine, notifier=notifier, clock=clock)


@pytest.fixture
def competition(service, period):
    return service.get_or_create_current_competition(period)


# =============================================================================
# DATA HELPERS
# =============================================================================

@pytest.fixture
def make_submission(service):
    """Factory creating stored submissions; published by default."""

    def _make(user_id: str = "user-1", content: str = SAMPLE_STORY, **overrides) -> Submission:
        data = {
            "id": str(uuid4()),
            "user_id": user_id,
            "author_name": f"Author {user_id}",
            "title": "The Silver Key",
            "content": content,
            "is_published": True,
        }
        data.update(overrides)
        return service.submissions.create(Submission(**data))

    return _make


# =============================================================================
# FASTAPI TEST CLIENT FIXTURE
# =============================================================================

@pytest.fixture
def client(service):
    """TestClient wired to the per-test service. Startup hooks are not run."""
    app.dependency_overrides[get_competition_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sample_story():
    return SAMPLE_STORY
