"""
Team and Tournament repositories.

Usage:
    teams = TeamRepository(db).find_by_tournament(tournament_id)
    tournament = TournamentRepository(db).get_or_raise(tournament_id)
"""
from typing import Optional, List

from app.models import Team, Tournament
from app.repositories.base import BaseRepository


class TournamentRepository(BaseRepository[Tournament]):
    """Repository for tournament data access."""

    entity_name = "Tournament"

    def __init__(self, db):
        """Initialize the tournament repository."""
        super().__init__(Tournament, db)

    def find_by_name_and_season(self, name: str, season: int) -> Optional[Tournament]:
        """Find a tournament by its (name, season) pair."""
        return self.where_first(Tournament.name == name, Tournament.season == season)


class TeamRepository(BaseRepository[Team]):
    """Repository for team data access."""

    entity_name = "Team"

    def __init__(self, db):
        """Initialize the team repository."""
        super().__init__(Team, db)

    def find_by_tournament(self, tournament_id: str) -> List[Team]:
        """Return every team of a tournament ordered by name."""
        return self.db.query(Team).filter(
            Team.tournament_id == tournament_id
        ).order_by(Team.name).all()

    def find_by_name(self, tournament_id: str, name: str) -> Optional[Team]:
        """Find a team by name within a tournament."""
        return self.where_first(Team.tournament_id == tournament_id, Team.name == name)

    def team_ids(self, tournament_id: str) -> List[str]:
        """Return the ids of a tournament's teams."""
        return [team.id for team in self.find_by_tournament(tournament_id)]
