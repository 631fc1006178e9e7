"""
MatchPlayerStats Repository.

Stats rows are keyed by (match, player). ``increment`` is the single write path:
it creates the row on first contact with the delta as its starting value and
adds the delta otherwise, inside the caller's transaction.

Usage:
    repo = MatchPlayerStatsRepository(db)
    repo.increment(match_id, player_id, team_id, batting_runs=4, batting_fours=1)
"""
import uuid
from typing import Optional, List, Dict

from app.models import MatchPlayerStats
from app.repositories.base import BaseRepository

COUNTER_FIELDS = (
    "batting_runs",
    "batting_balls",
    "batting_fours",
    "batting_sixes",
    "bowling_balls",
    "bowling_runs_conceded",
    "bowling_wickets",
    "bowling_dot_balls",
    "fielding_dismissals",
)


class MatchPlayerStatsRepository(BaseRepository[MatchPlayerStats]):
    """Repository for per-match player statistics."""

    entity_name = "Player stats"

    def __init__(self, db):
        """Initialize the stats repository."""
        super().__init__(MatchPlayerStats, db)

    def find_for(self, match_id: str, player_id: str) -> Optional[MatchPlayerStats]:
        """Find the stats row of one player in one match."""
        return self.where_first(
            MatchPlayerStats.match_id == match_id,
            MatchPlayerStats.player_id == player_id,
        )

    def find_by_match(self, match_id: str) -> List[MatchPlayerStats]:
        """Return every stats row of a match."""
        return self.db.query(MatchPlayerStats).filter(
            MatchPlayerStats.match_id == match_id
        ).order_by(MatchPlayerStats.team_id, MatchPlayerStats.created_at).all()

    def increment(
        self,
        match_id: str,
        player_id: str,
        team_id: str,
        out: Optional[bool] = None,
        **deltas: int
    ) -> MatchPlayerStats:
        """
        Upsert-and-increment a player's counters.

        Args:
            match_id: Match the contribution belongs to
            player_id: Contributing player
            team_id: Player's team (recorded on creation)
            out: When not None, overwrite the batting out flag
            **deltas: Counter name -> signed amount

        Returns:
            The updated (or newly created) stats row
        """
        unknown = set(deltas) - set(COUNTER_FIELDS)
        if unknown:
            raise ValueError(f"Unknown stat counters: {sorted(unknown)}")

        row = self.find_for(match_id, player_id)
        if row is None:
            row = MatchPlayerStats(
                id=str(uuid.uuid4()),
                match_id=match_id,
                player_id=player_id,
                team_id=team_id,
                batting_out=False,
                **{field: 0 for field in COUNTER_FIELDS},
            )
            self.db.add(row)

        for field, amount in deltas.items():
            if amount:
                setattr(row, field, (getattr(row, field) or 0) + amount)
        if out is not None:
            row.batting_out = out

        self.db.flush()
        return row

    def delete_by_match(self, match_id: str) -> int:
        """Delete every stats row of a match; returns the number removed."""
        rows = self.find_by_match(match_id)
        for row in rows:
            self.db.delete(row)
        self.db.flush()
        return len(rows)

    @staticmethod
    def as_counters(row: MatchPlayerStats) -> Dict[str, int]:
        """Snapshot a row's counters and out flag as a plain dict."""
        snapshot = {field: getattr(row, field) for field in COUNTER_FIELDS}
        snapshot["batting_out"] = bool(row.batting_out)
        return snapshot
