"""
Scheduler Script Tests - Story Contest Platform
tests/test_advance_phase_script.py

Tests for the story-contest-advance command line entry point.
"""
import json
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from story_contest.core.exceptions import NotFoundException
from story_contest.models.competition import Period
from story_contest.scripts import advance_phase


@pytest.fixture
def fake_service():
    service = MagicMock()
    with patch.object(advance_phase, "CompetitionService", return_value=service), \
            patch.object(advance_phase, "init_db"), \
            patch.object(advance_phase, "configure_logging"):
        yield service


class TestParseInstant:

    def test_zulu_suffix(self):
        assert advance_phase.parse_instant("2026-03-26T00:00:00Z") == datetime(2026, 3, 26, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert advance_phase.parse_instant("2026-03-26T06:30:00").tzinfo == timezone.utc


class TestMain:

    def test_advances_due_competitions(self, fake_service, capsys):
        fake_service.advance_due_competitions.return_value = [
            {"competition_id": "c-1", "period": "2026-03", "from_phase": "submission",
             "to_phase": "judging", "status": "advanced"},
        ]

        assert advance_phase.main(["--now", "2026-03-26T00:00:00Z"]) == 0

        fake_service.advance_due_competitions.assert_called_once_with(
            now=datetime(2026, 3, 26, tzinfo=timezone.utc)
        )
        fake_service.roll_over_quotas.assert_called_once_with(Period(year=2026, month=3))
        assert json.loads(capsys.readouterr().out)[0]["status"] == "advanced"

    def test_failed_item_exit_code(self, fake_service):
        fake_service.advance_due_competitions.return_value = [
            {"competition_id": "c-1", "period": "2026-03", "from_phase": "judging",
             "to_phase": "judging", "status": "failed"},
        ]
        assert advance_phase.main([]) == 2

    def test_single_competition(self, fake_service):
        competition = MagicMock(id="c-1")
        competition.phase.value = "judging"
        fake_service.advance_phase.return_value = competition

        assert advance_phase.main(["--competition", "c-1", "--skip-quota-rollover"]) == 0
        fake_service.advance_phase.assert_called_once_with("c-1", now=None)
        fake_service.roll_over_quotas.assert_not_called()

    def test_finalize_only(self, fake_service, capsys):
        fake_service.finalize_results.return_value.model_dump_json.return_value = '{"winners": []}'

        assert advance_phase.main(["--finalize", "c-1"]) == 0
        fake_service.finalize_results.assert_called_once_with("c-1")
        fake_service.advance_due_competitions.assert_not_called()
        assert '"winners"' in capsys.readouterr().out

    def test_contest_error_exit_code(self, fake_service):
        fake_service.advance_phase.side_effect = NotFoundException("Competition", "nope")
        assert advance_phase.main(["--competition", "nope"]) == 1
