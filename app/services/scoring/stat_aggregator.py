"""
Stat Aggregator.

Maintains MatchPlayerStats as a cache over the ball ledger. Each admitted ball
produces a set of per-player counter deltas; undo applies the exact negation.
``rebuild_match_stats`` recomputes a match's rows from the ledger and must
always agree with the incremental path.

Delta rules per ball:
- Batsman: runs, legal balls faced, fours/sixes on exactly 4/6, out on a wicket
- Bowler (legal balls only): balls, runs conceded, dot balls, wickets except run-outs
- Fielder: one dismissal for caught/run-out/stumped when named
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.models import Ball, Inning, MatchPlayerStats
from app.models.models import FIELDER_WICKET_TYPES
from app.repositories.cricket import BallRepository, InningRepository, MatchPlayerStatsRepository

logger = logging.getLogger(__name__)

NON_BOWLER_WICKETS = ("run-out",)


@dataclass
class PlayerDelta:
    """Counter changes for one player caused by one ball."""
    player_id: str
    team_id: str
    counters: Dict[str, int] = field(default_factory=dict)
    out: Optional[bool] = None

    def negated(self) -> "PlayerDelta":
        return PlayerDelta(
            player_id=self.player_id,
            team_id=self.team_id,
            counters={name: -amount for name, amount in self.counters.items()},
        )


def ball_deltas(ball: Ball, batting_team_id: str, bowling_team_id: str) -> List[PlayerDelta]:
    """Compute the per-player deltas of one ball."""
    batsman = PlayerDelta(
        player_id=ball.batsman_id,
        team_id=batting_team_id,
        counters={
            "batting_runs": ball.runs_batsman,
            "batting_balls": 1 if ball.is_legal else 0,
            "batting_fours": 1 if ball.runs_batsman == 4 else 0,
            "batting_sixes": 1 if ball.runs_batsman == 6 else 0,
        },
        out=True if ball.is_wicket else None,
    )
    deltas = [batsman]

    if ball.is_legal:
        credited = ball.is_wicket and ball.wicket_type not in NON_BOWLER_WICKETS
        deltas.append(PlayerDelta(
            player_id=ball.bowler_id,
            team_id=bowling_team_id,
            counters={
                "bowling_balls": 1,
                "bowling_runs_conceded": ball.runs_total,
                "bowling_wickets": 1 if credited else 0,
                "bowling_dot_balls": 1 if ball.runs_total == 0 else 0,
            },
        ))

    if ball.is_wicket and ball.wicket_type in FIELDER_WICKET_TYPES and ball.fielder_id:
        deltas.append(PlayerDelta(
            player_id=ball.fielder_id,
            team_id=bowling_team_id,
            counters={"fielding_dismissals": 1},
        ))

    return deltas


class StatAggregator:
    """Applies and reverts ball deltas against MatchPlayerStats."""

    def __init__(self, db: Session):
        self.db = db
        self.stats = MatchPlayerStatsRepository(db)
        self.balls = BallRepository(db)
        self.innings = InningRepository(db)

    def _apply(self, match_id: str, delta: PlayerDelta) -> MatchPlayerStats:
        return self.stats.increment(
            match_id,
            delta.player_id,
            delta.team_id,
            out=delta.out,
            **delta.counters,
        )

    def apply_ball(self, ball: Ball, inning: Inning) -> List[MatchPlayerStats]:
        """Credit an admitted ball; returns the touched stats rows."""
        return [
            self._apply(ball.match_id, delta)
            for delta in ball_deltas(ball, inning.batting_team_id, inning.bowling_team_id)
        ]

    def revert_ball(self, ball: Ball, inning: Inning) -> List[MatchPlayerStats]:
        """
        Apply the negated deltas of a ball already removed from the ledger.

        The batsman's out flag is cleared only when no remaining ball of the
        match dismisses them.
        """
        rows = []
        for delta in ball_deltas(ball, inning.batting_team_id, inning.bowling_team_id):
            reverse = delta.negated()
            if delta.out:
                reverse.out = self.balls.count_dismissals(ball.match_id, delta.player_id) > 0
            rows.append(self._apply(ball.match_id, reverse))
        return rows

    def rebuild_match_stats(self, match_id: str) -> List[MatchPlayerStats]:
        """Drop and recompute every stats row of a match from its ledger."""
        innings_by_id = {inning.id: inning for inning in self.innings.find_by_match(match_id)}
        removed = self.stats.delete_by_match(match_id)

        balls = self.balls.find_by_match(match_id)
        for ball in balls:
            self.apply_ball(ball, innings_by_id[ball.inning_id])

        rows = self.stats.find_by_match(match_id)
        logger.info(
            f"Rebuilt stats for match {match_id}: {len(balls)} balls, "
            f"{removed} rows replaced by {len(rows)}"
        )
        return rows
