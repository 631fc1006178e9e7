"""
Player Repository for squad lookups.

The scoring core uses this purely for membership checks: which team a player
belongs to and whether a set of ids all sit in one squad.

Usage:
    repo = PlayerRepository(db)
    squad = repo.find_by_team(team_id)
    repo.belongs_to_team(player_id, team_id)
"""
from typing import Optional, List, Dict, Iterable

from app.models import Player
from app.repositories.base import BaseRepository


class PlayerRepository(BaseRepository[Player]):
    """Repository for player data access."""

    entity_name = "Player"

    def __init__(self, db):
        """Initialize the player repository."""
        super().__init__(Player, db)

    # ========================================================================
    # Team-based Queries
    # ========================================================================

    def find_by_team(self, team_id: str) -> List[Player]:
        """Return a team's squad ordered by jersey number."""
        return self.db.query(Player).filter(
            Player.team_id == team_id
        ).order_by(Player.jersey_number).all()

    def find_by_jersey(self, team_id: str, jersey_number: int) -> Optional[Player]:
        """Find the player wearing a jersey number in a team."""
        return self.where_first(
            Player.team_id == team_id,
            Player.jersey_number == jersey_number,
        )

    def belongs_to_team(self, player_id: str, team_id: str) -> bool:
        """Check whether a player is part of a team's squad."""
        if not player_id or not team_id:
            return False
        return self.exists_where(Player.id == player_id, Player.team_id == team_id)

    def find_team_id(self, player_id: str) -> Optional[str]:
        """Return the team id of a player, or None if the player is unknown."""
        player = self.find_by_id(player_id)
        return player.team_id if player else None

    # ========================================================================
    # Bulk Lookups
    # ========================================================================

    def find_many(self, player_ids: Iterable[str]) -> List[Player]:
        """Load several players in one query."""
        ids = [pid for pid in set(player_ids) if pid]
        if not ids:
            return []
        return self.db.query(Player).filter(Player.id.in_(ids)).all()

    def names_by_id(self, player_ids: Iterable[str]) -> Dict[str, str]:
        """Map player ids to names, skipping unknown ids."""
        return {player.id: player.name for player in self.find_many(player_ids)}
