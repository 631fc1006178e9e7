"""
Match Result Engine.

Computes a match result from two completed innings, or validates a manual
override. Applying either moves the match to ``completed``.

Auto result:
- Chasing side passes the first-innings total: inning-2 batting team wins by
  (10 - wickets lost) wickets.
- Chasing side falls short: inning-2 bowling team wins by the run difference.
- Equal totals: tie, no winner.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Dict

from app.core.exceptions import ValidationError
from app.models import Inning, Match
from app.models.models import MATCH_COMPLETED, RESULT_AUTO
from app.services.scoring.ledger import ALL_OUT_WICKETS, InningsSummary

logger = logging.getLogger(__name__)

KIND_WIN = "win"
KIND_TIE = "tie"
KIND_NO_RESULT = "no_result"

TIE_SUMMARY = "Match tied"


@dataclass
class MatchResult:
    """A decided (or undecidable) match outcome."""
    kind: str
    winner_id: Optional[str] = None
    margin: Optional[str] = None
    summary: str = ""


def format_margin(amount: int, unit: str) -> str:
    """Format a margin such as "7 wickets" or "1 run"."""
    return f"{amount} {unit}" if amount == 1 else f"{amount} {unit}s"


def win_summary(team_name: str, margin: Optional[str]) -> str:
    return f"{team_name} won by {margin}" if margin else f"{team_name} won"


def compute_auto_result(
    first: InningsSummary,
    inning2: Inning,
    second: InningsSummary,
    team_names: Dict[str, str]
) -> MatchResult:
    """
    Derive the result of a match whose two innings are complete.

    Args:
        first: Ledger summary of the first innings
        inning2: Second innings
        second: Ledger summary of the second innings
        team_names: Team id -> display name
    """
    if second.runs > first.runs:
        winner_id = inning2.batting_team_id
        margin = format_margin(ALL_OUT_WICKETS - second.wickets, "wicket")
    elif second.runs < first.runs:
        winner_id = inning2.bowling_team_id
        margin = format_margin(first.runs - second.runs, "run")
    else:
        return MatchResult(kind=KIND_TIE, summary=TIE_SUMMARY)

    return MatchResult(
        kind=KIND_WIN,
        winner_id=winner_id,
        margin=margin,
        summary=win_summary(team_names.get(winner_id, winner_id), margin),
    )


def build_override(
    match: Match,
    team_names: Dict[str, str],
    winner_id: Optional[str] = None,
    margin: Optional[str] = None,
    summary: Optional[str] = None
) -> MatchResult:
    """
    Validate an explicit result supplied by a scorer or admin.

    A winner must be one of the two match teams. A summary without a winner
    records a no-result.

    Raises:
        ValidationError: Winner is not a match team, or nothing was supplied
    """
    if winner_id:
        if winner_id not in match.team_ids():
            raise ValidationError(
                "Winner must be one of the match teams",
                details={"winner": winner_id},
            )
        return MatchResult(
            kind=KIND_WIN,
            winner_id=winner_id,
            margin=margin,
            summary=summary or win_summary(team_names.get(winner_id, winner_id), margin),
        )

    if summary:
        return MatchResult(kind=KIND_NO_RESULT, margin=margin, summary=summary)

    raise ValidationError("A winner or a summary is required to set a result")


def apply_result(match: Match, result: MatchResult, source: str = RESULT_AUTO) -> None:
    """Write a result onto the match and mark it completed."""
    match.result_winner_id = result.winner_id
    match.result_margin = result.margin
    match.result_summary = result.summary
    match.result_source = source
    match.status = MATCH_COMPLETED
    logger.info(f"Match {match.id} completed ({source}): {result.summary}")


def clear_result(match: Match) -> None:
    """Remove a result, e.g. when the deciding ball is undone."""
    match.result_winner_id = None
    match.result_margin = None
    match.result_summary = None
    match.result_source = None
