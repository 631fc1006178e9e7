"""Unit tests for innings completion rules."""
from app.models import Inning
from app.models.models import (
    COMPLETION_ALL_OUT,
    COMPLETION_MANUAL,
    COMPLETION_OVERS,
    COMPLETION_TARGET,
)
from app.services.scoring.completion_monitor import completion_reason, evaluate
from app.services.scoring.ledger import InningsSummary


def _inning(number=1, target=None, is_completed=False, completion_reason=None):
    return Inning(
        id="inning-1",
        match_id="match-1",
        inning_number=number,
        batting_team_id="team-a",
        bowling_team_id="team-b",
        target=target,
        is_completed=is_completed,
        completion_reason=completion_reason,
    )


class TestCompletionReason:
    """Which condition ends an innings."""

    def test_in_progress(self):
        """Should return None while no condition holds."""
        summary = InningsSummary(runs=40, wickets=9, legal_balls=119)

        assert completion_reason(summary, 1, None, 20) is None

    def test_all_out_at_ten_wickets(self):
        """Should complete the instant the tenth wicket falls."""
        summary = InningsSummary(runs=80, wickets=10, legal_balls=50)

        assert completion_reason(summary, 1, None, 20) == COMPLETION_ALL_OUT

    def test_overs_exhausted(self):
        """Should complete once completed overs reach the limit."""
        assert completion_reason(InningsSummary(legal_balls=12), 1, None, 2) == COMPLETION_OVERS
        assert completion_reason(InningsSummary(legal_balls=11), 1, None, 2) is None

    def test_target_only_applies_to_second_innings(self):
        """Should treat reaching the target as completion for innings 2 only."""
        summary = InningsSummary(runs=14, legal_balls=9)

        assert completion_reason(summary, 2, 14, 2) == COMPLETION_TARGET
        assert completion_reason(summary, 1, 14, 2) is None
        assert completion_reason(InningsSummary(runs=13, legal_balls=9), 2, 14, 2) is None


class TestEvaluate:
    """State changes applied to the innings."""

    def test_fresh_crossing_completes(self):
        """Should flag the innings and report a fresh completion."""
        inning = _inning()

        change = evaluate(inning, InningsSummary(wickets=10), 20)

        assert change.just_completed
        assert change.reason == COMPLETION_ALL_OUT
        assert inning.is_completed
        assert inning.completion_reason == COMPLETION_ALL_OUT

    def test_already_completed_is_not_a_fresh_crossing(self):
        """Should not report just_completed twice."""
        inning = _inning(is_completed=True, completion_reason=COMPLETION_OVERS)

        change = evaluate(inning, InningsSummary(legal_balls=12), 2)

        assert change.completed
        assert not change.just_completed
        assert not change.reverted

    def test_reverts_when_condition_no_longer_holds(self):
        """Should reopen an auto-completed innings after its deciding ball is undone."""
        inning = _inning(number=2, target=14, is_completed=True, completion_reason=COMPLETION_TARGET)

        change = evaluate(inning, InningsSummary(runs=10, legal_balls=8, wickets=3), 2)

        assert change.reverted
        assert not inning.is_completed
        assert inning.completion_reason is None

    def test_manual_completion_is_never_reverted(self):
        """Should leave a manually closed innings closed."""
        inning = _inning(is_completed=True, completion_reason=COMPLETION_MANUAL)

        change = evaluate(inning, InningsSummary(runs=10, legal_balls=8), 20)

        assert change.completed
        assert not change.reverted
        assert inning.is_completed
