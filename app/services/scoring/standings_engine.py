"""
Standings Engine.

Folds finished matches into a tournament's points table:

- Win: winner +1 played, +1 won, +2 points; loser +1 played, +1 lost.
- Tie, no result or abandoned: both +1 played, +1 no result, +1 point.
- NRR (decisive matches only): each side adds its own run rate minus the
  run rate it conceded in that match. NRR is a running sum of per-match
  differences, not an average.

After every update rows are re-sorted by points then NRR (both descending,
stable) and given 1-based positions.

Corrections use a full recompute: ``rebuild`` zeroes the table and folds every
completed/abandoned match again in match-number order. ``Match.standings_applied``
keeps the incremental fold from running twice for one match.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core import metrics
from app.models import Match, PointsTable, PointsTableStanding
from app.models.models import MATCH_ABANDONED, MATCH_COMPLETED
from app.repositories.cricket import (
    BallRepository,
    InningRepository,
    MatchRepository,
    PointsTableRepository,
    TeamRepository,
)
from app.services.scoring.ledger import raw_run_rate, summarize

logger = logging.getLogger(__name__)

POINTS_WIN = 2
POINTS_SHARED = 1


@dataclass
class MatchOutcome:
    """What one finished match contributes to the table."""
    match_id: str
    team_ids: Tuple[str, str]
    winner_id: Optional[str] = None
    nrr_deltas: Dict[str, float] = field(default_factory=dict)

    @property
    def decisive(self) -> bool:
        return self.winner_id is not None


def nrr_deltas(
    first_batting_team_id: str,
    second_batting_team_id: str,
    first_runs: int,
    first_legal_balls: int,
    second_runs: int,
    second_legal_balls: int
) -> Dict[str, float]:
    """
    Per-team NRR contribution of one match.

    A side that has not batted (no legal balls) contributes a rate of 0.
    """
    first_rate = raw_run_rate(first_runs, first_legal_balls)
    second_rate = raw_run_rate(second_runs, second_legal_balls)
    return {
        first_batting_team_id: first_rate - second_rate,
        second_batting_team_id: second_rate - first_rate,
    }


def apply_outcome(rows: Dict[str, PointsTableStanding], outcome: MatchOutcome) -> None:
    """Add one match outcome to the two competing teams' rows."""
    for team_id in outcome.team_ids:
        row = rows[team_id]
        row.played += 1
        if not outcome.decisive:
            row.no_result += 1
            row.points += POINTS_SHARED
        elif team_id == outcome.winner_id:
            row.won += 1
            row.points += POINTS_WIN
        else:
            row.lost += 1
        if outcome.decisive:
            row.net_run_rate = (row.net_run_rate or 0.0) + outcome.nrr_deltas.get(team_id, 0.0)


def rank(rows: List[PointsTableStanding]) -> List[PointsTableStanding]:
    """Sort rows by points then NRR (descending, stable) and assign positions."""
    ordered = sorted(rows, key=lambda r: (r.points, r.net_run_rate or 0.0), reverse=True)
    for position, row in enumerate(ordered, start=1):
        row.position = position
    return ordered


class StandingsEngine:
    """Maintains tournament points tables from finished matches."""

    def __init__(self, db: Session):
        self.db = db
        self.tables = PointsTableRepository(db)
        self.teams = TeamRepository(db)
        self.matches = MatchRepository(db)
        self.innings = InningRepository(db)
        self.balls = BallRepository(db)

    def outcome_for(self, match: Match) -> MatchOutcome:
        """Derive a finished match's table contribution from its result and ledger."""
        outcome = MatchOutcome(match_id=match.id, team_ids=match.team_ids())
        if match.status != MATCH_COMPLETED or not match.result_winner_id:
            return outcome

        outcome.winner_id = match.result_winner_id
        innings = self.innings.find_by_match(match.id)
        if not innings:
            return outcome

        first = innings[0]
        first_summary = summarize(self.balls.find_by_inning(first.id))
        if len(innings) > 1:
            second_summary = summarize(self.balls.find_by_inning(innings[1].id))
        else:
            second_summary = summarize([])
        outcome.nrr_deltas = nrr_deltas(
            first.batting_team_id,
            first.bowling_team_id,
            first_summary.runs,
            first_summary.legal_balls,
            second_summary.runs,
            second_summary.legal_balls,
        )
        return outcome

    def _table(self, tournament_id: str) -> PointsTable:
        return self.tables.get_or_create(tournament_id, self.teams.team_ids(tournament_id))

    def _rows_by_team(self, table: PointsTable) -> Dict[str, PointsTableStanding]:
        return {row.team_id: row for row in self.tables.find_standings(table.id)}

    def fold_match(self, match: Match) -> Optional[PointsTable]:
        """
        Fold one completed or abandoned match into its tournament's table.

        Returns None without touching the table when the match was already folded.
        """
        if match.status not in (MATCH_COMPLETED, MATCH_ABANDONED):
            raise ValueError(f"Match {match.id} is not finished (status={match.status})")
        if match.standings_applied:
            logger.warning(f"Match {match.id} already folded into standings, skipping")
            return None

        table = self._table(match.tournament_id)
        rows = self._rows_by_team(table)
        outcome = self.outcome_for(match)
        apply_outcome(rows, outcome)
        rank(list(rows.values()))
        match.standings_applied = True
        self.db.flush()

        metrics.record_standings_update("fold")
        logger.info(
            f"Standings updated for tournament {match.tournament_id} from match {match.id}",
            extra={"winner_id": outcome.winner_id},
        )
        return table

    def rebuild(self, tournament_id: str) -> PointsTable:
        """Recompute a tournament's table from every finished match."""
        table = self._table(tournament_id)
        self.tables.reset_standings(table.id)
        rows = self._rows_by_team(table)

        folded = 0
        for match in self.matches.find_by_tournament(tournament_id):
            if match.status in (MATCH_COMPLETED, MATCH_ABANDONED):
                apply_outcome(rows, self.outcome_for(match))
                match.standings_applied = True
                folded += 1
            else:
                match.standings_applied = False

        rank(list(rows.values()))
        self.db.flush()

        metrics.record_standings_update("rebuild")
        logger.info(f"Rebuilt standings for tournament {tournament_id} from {folded} matches")
        return table

    def standings(self, tournament_id: str) -> Tuple[PointsTable, List[PointsTableStanding]]:
        """Return the table (seeding it if absent) and its rows in position order."""
        table = self._table(tournament_id)
        rows = self.tables.find_standings(table.id)
        if any(row.position is None for row in rows):
            rank(rows)
            self.db.flush()
            rows = self.tables.find_standings(table.id)
        return table, rows
