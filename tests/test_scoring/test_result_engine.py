"""Unit tests for the match result engine."""
import pytest

from app.core.exceptions import ValidationError
from app.models import Inning, Match
from app.models.models import MATCH_COMPLETED, MATCH_INNING2, RESULT_AUTO, RESULT_OVERRIDE
from app.services.scoring.ledger import InningsSummary
from app.services.scoring.result_engine import (
    KIND_NO_RESULT,
    KIND_TIE,
    KIND_WIN,
    TIE_SUMMARY,
    apply_result,
    build_override,
    clear_result,
    compute_auto_result,
    format_margin,
)

NAMES = {"team-a": "Chennai Strikers", "team-b": "Mumbai Mariners"}


@pytest.fixture
def match():
    return Match(id="match-1", team1_id="team-a", team2_id="team-b", status=MATCH_INNING2)


@pytest.fixture
def inning2():
    # team-b chases
    return Inning(id="inning-2", inning_number=2, batting_team_id="team-b", bowling_team_id="team-a", target=14)


class TestAutoResult:
    """Results derived from two innings."""

    def test_chase_won_by_wickets(self, inning2):
        """Should credit the chasing side with the wickets in hand."""
        result = compute_auto_result(
            InningsSummary(runs=13, legal_balls=12), inning2, InningsSummary(runs=14, wickets=3, legal_balls=9), NAMES
        )

        assert result.kind == KIND_WIN
        assert result.winner_id == "team-b"
        assert result.margin == "7 wickets"
        assert result.summary == "Mumbai Mariners won by 7 wickets"

    def test_defended_by_runs(self, inning2):
        """Should credit the side batting first with the run difference."""
        result = compute_auto_result(
            InningsSummary(runs=150), inning2, InningsSummary(runs=120, wickets=10), NAMES
        )

        assert result.winner_id == "team-a"
        assert result.margin == "30 runs"
        assert result.summary == "Chennai Strikers won by 30 runs"

    def test_singular_margins(self, inning2):
        """Should say "1 run" and "1 wicket"."""
        by_run = compute_auto_result(InningsSummary(runs=100), inning2, InningsSummary(runs=99, wickets=10), NAMES)
        by_wicket = compute_auto_result(InningsSummary(runs=100), inning2, InningsSummary(runs=101, wickets=9), NAMES)

        assert by_run.margin == "1 run"
        assert by_wicket.margin == "1 wicket"

    def test_equal_totals_tie(self, inning2):
        """Should record a tie with no winner."""
        result = compute_auto_result(InningsSummary(runs=120), inning2, InningsSummary(runs=120, wickets=4), NAMES)

        assert result.kind == KIND_TIE
        assert result.winner_id is None
        assert result.summary == TIE_SUMMARY

    def test_format_margin(self):
        assert format_margin(2, "run") == "2 runs"
        assert format_margin(1, "run") == "1 run"


class TestOverride:
    """Explicit results supplied by hand."""

    def test_winner_must_be_a_match_team(self, match):
        """Should reject a winner from outside the match."""
        with pytest.raises(ValidationError):
            build_override(match, NAMES, winner_id="team-z")

    def test_winner_with_generated_summary(self, match):
        """Should generate a summary when none is given."""
        result = build_override(match, NAMES, winner_id="team-a", margin="5 runs")

        assert result.kind == KIND_WIN
        assert result.summary == "Chennai Strikers won by 5 runs"

    def test_summary_without_winner_is_no_result(self, match):
        """Should treat a bare summary as a no-result."""
        result = build_override(match, NAMES, summary="No result - rain")

        assert result.kind == KIND_NO_RESULT
        assert result.winner_id is None

    def test_nothing_supplied(self, match):
        """Should require a winner or a summary."""
        with pytest.raises(ValidationError):
            build_override(match, NAMES)


class TestApplyResult:
    """Writing results onto a match."""

    def test_apply_and_clear(self, match):
        """Should complete the match with the result, and clear it again."""
        result = build_override(match, NAMES, winner_id="team-b", margin="3 wickets")

        apply_result(match, result, RESULT_OVERRIDE)

        assert match.status == MATCH_COMPLETED
        assert match.result_winner_id == "team-b"
        assert match.result_source == RESULT_OVERRIDE

        clear_result(match)

        assert match.result_winner_id is None
        assert match.result_summary is None
        assert not match.has_result()
