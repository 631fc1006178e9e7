"""
Innings Completion Monitor.

Re-evaluated after every ledger mutation from the full ledger of the innings.
An innings is complete when any of these hold:

- all out: 10 or more wickets
- overs: completed overs reach the overs-per-innings limit
- target: innings 2 with a target set and runs at or above it
"""
import logging
from dataclasses import dataclass
from typing import Optional

from app.models import Inning
from app.models.models import (
    COMPLETION_ALL_OUT,
    COMPLETION_MANUAL,
    COMPLETION_OVERS,
    COMPLETION_TARGET,
)
from app.services.scoring.ledger import ALL_OUT_WICKETS, InningsSummary

logger = logging.getLogger(__name__)


@dataclass
class CompletionChange:
    """Outcome of one monitor evaluation."""
    completed: bool
    reason: Optional[str] = None
    just_completed: bool = False
    reverted: bool = False


def completion_reason(
    summary: InningsSummary,
    inning_number: int,
    target: Optional[int],
    overs_per_innings: int
) -> Optional[str]:
    """Return why the innings is over, or None if it is still in progress."""
    if summary.wickets >= ALL_OUT_WICKETS:
        return COMPLETION_ALL_OUT
    if summary.completed_overs >= overs_per_innings:
        return COMPLETION_OVERS
    if inning_number == 2 and target is not None and summary.runs >= target:
        return COMPLETION_TARGET
    return None


def evaluate(inning: Inning, summary: InningsSummary, overs_per_innings: int) -> CompletionChange:
    """
    Apply the completion rules to ``inning`` in place.

    Only a fresh crossing sets the flag. A completed innings whose conditions no
    longer hold (after an undo) goes back to in progress, unless it was closed
    manually.
    """
    reason = completion_reason(summary, inning.inning_number, inning.target, overs_per_innings)

    if reason and not inning.is_completed:
        inning.is_completed = True
        inning.completion_reason = reason
        logger.info(
            f"Inning {inning.inning_number} of match {inning.match_id} completed ({reason}) "
            f"at {summary.runs}/{summary.wickets} in {summary.overs} overs"
        )
        return CompletionChange(completed=True, reason=reason, just_completed=True)

    if inning.is_completed and reason is None and inning.completion_reason != COMPLETION_MANUAL:
        logger.info(
            f"Inning {inning.inning_number} of match {inning.match_id} reopened "
            f"(was {inning.completion_reason})"
        )
        inning.is_completed = False
        inning.completion_reason = None
        return CompletionChange(completed=False, reverted=True)

    return CompletionChange(completed=inning.is_completed, reason=inning.completion_reason)
