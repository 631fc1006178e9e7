"""
Registry service for tournaments, teams, players and fixtures.

Reference data consumed by the scoring core. Only creation and lookup are
supported here.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Any

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import unit_of_work
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models import Player, Tournament
from app.models.models import MATCH_TYPES, MATCH_UPCOMING, PLAYER_ROLES
from app.repositories.cricket import (
    MatchRepository,
    PlayerRepository,
    TeamRepository,
    TournamentRepository,
)
from app.services.scoring.serializers import match_to_dict, team_to_dict

logger = logging.getLogger(__name__)


class RegistryService:
    """Creates and looks up registry entities."""

    def __init__(self, db: Session):
        self.db = db
        self.tournaments = TournamentRepository(db)
        self.teams = TeamRepository(db)
        self.players = PlayerRepository(db)
        self.matches = MatchRepository(db)

    # ==================== Tournaments ====================

    def create_tournament(
        self,
        name: str,
        season: int,
        overs_per_innings: Optional[int] = None
    ) -> Dict[str, Any]:
        """Create a tournament; (name, season) must be unique."""
        overs = overs_per_innings or settings.DEFAULT_OVERS_PER_INNINGS
        if overs < 1:
            raise ValidationError("oversPerInnings must be at least 1")

        with unit_of_work(self.db, "create_tournament"):
            if self.tournaments.find_by_name_and_season(name, season):
                raise ConflictError(f"Tournament '{name}' already exists for season {season}")
            tournament = self.tournaments.create(name=name, season=season, overs_per_innings=overs)
            response = self._tournament_to_dict(tournament)

        logger.info(f"Created tournament {name} ({season})")
        return response

    def get_tournament(self, tournament_id: str) -> Dict[str, Any]:
        tournament = self.tournaments.get_or_raise(tournament_id)
        data = self._tournament_to_dict(tournament)
        data["teams"] = [team_to_dict(team) for team in self.teams.find_by_tournament(tournament.id)]
        return data

    # ==================== Teams ====================

    def create_team(
        self,
        tournament_id: str,
        name: str,
        short_name: str,
        city: Optional[str] = None
    ) -> Dict[str, Any]:
        """Register a team in a tournament; names are unique per tournament."""
        with unit_of_work(self.db, "create_team"):
            self.tournaments.get_or_raise(tournament_id)
            if self.teams.find_by_name(tournament_id, name):
                raise ConflictError(f"Team '{name}' already exists in this tournament")
            team = self.teams.create(
                tournament_id=tournament_id, name=name, short_name=short_name, city=city
            )
            response = team_to_dict(team)

        logger.info(f"Created team {name} in tournament {tournament_id}")
        return response

    def get_team(self, team_id: str) -> Dict[str, Any]:
        team = self.teams.get_or_raise(team_id)
        data = team_to_dict(team)
        data["players"] = [self._player_to_dict(player) for player in self.players.find_by_team(team.id)]
        return data

    # ==================== Players ====================

    def create_player(
        self,
        team_id: str,
        name: str,
        jersey_number: int,
        role: str = "batsman"
    ) -> Dict[str, Any]:
        """Add a player to a team's squad; jersey numbers are unique per team."""
        if role not in PLAYER_ROLES:
            raise ValidationError(f"role must be one of: {', '.join(PLAYER_ROLES)}")

        with unit_of_work(self.db, "create_player"):
            self.teams.get_or_raise(team_id)
            if self.players.find_by_jersey(team_id, jersey_number):
                raise ConflictError(f"Jersey number {jersey_number} is already taken in this team")
            player = self.players.create(
                team_id=team_id, name=name, jersey_number=jersey_number, role=role
            )
            response = self._player_to_dict(player)

        return response

    def get_player(self, player_id: str) -> Dict[str, Any]:
        return self._player_to_dict(self.players.get_or_raise(player_id))

    # ==================== Matches ====================

    def create_match(
        self,
        tournament_id: str,
        match_number: int,
        team1: str,
        team2: str,
        venue: Optional[str] = None,
        match_date: Optional[datetime] = None,
        match_type: str = "league"
    ) -> Dict[str, Any]:
        """Schedule a fixture between two teams of the tournament."""
        if match_type not in MATCH_TYPES:
            raise ValidationError(f"type must be one of: {', '.join(MATCH_TYPES)}")

        with unit_of_work(self.db, "create_match"):
            self.tournaments.get_or_raise(tournament_id)
            team_ids = set(self.teams.team_ids(tournament_id))
            if team1 not in team_ids or team2 not in team_ids:
                raise NotFoundError("One or both teams not found in this tournament")
            if team1 == team2:
                raise ValidationError("Team 1 and Team 2 must be different")
            if self.matches.find_by_number(tournament_id, match_number):
                raise ConflictError(f"Match number {match_number} already exists in this tournament")

            match = self.matches.create(
                tournament_id=tournament_id,
                match_number=match_number,
                team1_id=team1,
                team2_id=team2,
                venue=venue,
                match_date=match_date,
                match_type=match_type,
                status=MATCH_UPCOMING,
                standings_applied=False,
            )
            response = match_to_dict(match)

        logger.info(f"Created match {match_number} in tournament {tournament_id}")
        return response

    def get_match(self, match_id: str) -> Dict[str, Any]:
        return match_to_dict(self.matches.get_or_raise(match_id))

    def list_matches(self, tournament_id: str) -> List[Dict[str, Any]]:
        self.tournaments.get_or_raise(tournament_id)
        return [match_to_dict(match) for match in self.matches.find_by_tournament(tournament_id)]

    # ==================== Serializers ====================

    def _tournament_to_dict(self, tournament: Tournament) -> Dict[str, Any]:
        return {
            "id": tournament.id,
            "name": tournament.name,
            "season": tournament.season,
            "overs_per_innings": tournament.overs_per_innings,
            "status": tournament.status,
        }

    def _player_to_dict(self, player: Player) -> Dict[str, Any]:
        return {
            "id": player.id,
            "team_id": player.team_id,
            "name": player.name,
            "jersey_number": player.jersey_number,
            "role": player.role,
        }
