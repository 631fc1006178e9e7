"""
Match setup: toss and playing XI selection ahead of the first innings.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Any

from sqlalchemy.orm import Session

from app.core.database import unit_of_work
from app.core.exceptions import NotFoundError, PreconditionError, ValidationError
from app.models import Match
from app.models.models import (
    MATCH_INNING1,
    MATCH_INNING2,
    MATCH_TOSS,
    MATCH_UPCOMING,
    TOSS_DECISIONS,
)
from app.repositories.cricket import MatchRepository, PlayerRepository, TeamRepository
from app.services.scoring.serializers import team_to_dict

logger = logging.getLogger(__name__)

PLAYING_XI_SIZE = 11


@dataclass
class XIEntry:
    """One selected player in a playing XI."""
    player: str
    is_captain: bool = False
    is_wicket_keeper: bool = False
    batting_order: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player": self.player,
            "is_captain": self.is_captain,
            "is_wicket_keeper": self.is_wicket_keeper,
            "batting_order": self.batting_order,
        }


class MatchSetupService:
    """Toss and roster lock for a match."""

    def __init__(self, db: Session):
        self.db = db
        self.matches = MatchRepository(db)
        self.teams = TeamRepository(db)
        self.players = PlayerRepository(db)

    @staticmethod
    def _team_key(match: Match, team_id: str) -> str:
        if team_id == match.team1_id:
            return "team1"
        if team_id == match.team2_id:
            return "team2"
        raise ValidationError("Team is not part of this match", details={"team_id": team_id})

    # ==================== Toss ====================

    def record_toss(self, match_id: str, winner: str, decision: str) -> Dict[str, Any]:
        """
        Record the toss and move the match to ``toss``.

        Raises:
            ValidationError: Missing fields, bad decision or winner not a match team
            PreconditionError: Match already past the toss
        """
        if not winner or not decision:
            raise ValidationError("Winner and decision are required")
        if decision not in TOSS_DECISIONS:
            raise ValidationError("Decision must be either 'bat' or 'bowl'")

        with unit_of_work(self.db, "record_toss"):
            match = self.matches.get_or_raise(match_id)
            if match.status not in (MATCH_UPCOMING, MATCH_TOSS):
                raise PreconditionError(f"Cannot record toss. Current match status is '{match.status}'")
            if winner not in match.team_ids():
                raise ValidationError("Toss winner must be one of the match teams")

            match.toss_winner_id = winner
            match.toss_decision = decision
            match.status = MATCH_TOSS
            self.db.flush()

            batting = winner if decision == "bat" else match.opponent_of(winner)
            response = {
                "toss": {"winner": winner, "decision": decision},
                "match_status": match.status,
                "batting_team_id": batting,
                "bowling_team_id": match.opponent_of(batting),
            }

        logger.info(f"Toss recorded for match {match_id}: {winner} chose to {decision}")
        return response

    def get_toss(self, match_id: str) -> Dict[str, Any]:
        """Return the toss of a match."""
        match = self.matches.get_or_raise(match_id)
        if not match.toss_winner_id:
            raise NotFoundError("Toss not recorded yet", details={"match_id": match_id})
        return {
            "match_id": match.id,
            "toss": {"winner": match.toss_winner_id, "decision": match.toss_decision},
            "match_status": match.status,
        }

    # ==================== Playing XI ====================

    def set_playing_xi(self, match_id: str, team_id: str, entries: List[XIEntry]) -> Dict[str, Any]:
        """
        Lock a team's playing XI for a match.

        Rules: exactly 11 distinct squad players, exactly one captain and at
        least one wicket-keeper. Missing batting order defaults to list position;
        the XI is stored sorted by batting order.
        """
        if not team_id or entries is None:
            raise ValidationError("teamId and players array are required")
        if len(entries) != PLAYING_XI_SIZE:
            raise ValidationError(f"Playing XI must contain exactly {PLAYING_XI_SIZE} players")

        with unit_of_work(self.db, "set_playing_xi"):
            match = self.matches.get_or_raise(match_id)
            if match.status != MATCH_TOSS:
                raise PreconditionError(
                    f"Cannot set playing XI. Match status must be 'toss'. Current status is '{match.status}'"
                )
            team_key = self._team_key(match, team_id)
            team = self.teams.get_or_raise(team_id)

            player_ids = [entry.player for entry in entries]
            if any(not pid for pid in player_ids):
                raise ValidationError("Each player must have a player ID")
            if len(set(player_ids)) != len(player_ids):
                raise ValidationError("Playing XI cannot list a player twice")
            squad = {player.id for player in self.players.find_many(player_ids) if player.team_id == team_id}
            if len(squad) != len(player_ids):
                raise ValidationError("Some players do not belong to this team")

            if sum(1 for entry in entries if entry.is_captain) != 1:
                raise ValidationError("Playing XI must have exactly one captain")
            if not any(entry.is_wicket_keeper for entry in entries):
                raise ValidationError("Playing XI must have at least one wicket-keeper")

            ordered = []
            for index, entry in enumerate(entries, start=1):
                ordered.append(XIEntry(
                    player=entry.player,
                    is_captain=entry.is_captain,
                    is_wicket_keeper=entry.is_wicket_keeper,
                    batting_order=entry.batting_order or index,
                ))
            ordered.sort(key=lambda entry: entry.batting_order)

            playing_xi = dict(match.playing_xi or {"team1": [], "team2": []})
            playing_xi[team_key] = [entry.to_dict() for entry in ordered]
            match.playing_xi = playing_xi
            self.db.flush()

            response = {
                "team": team_to_dict(team),
                "playing_xi": playing_xi[team_key],
                "total_players": len(ordered),
                "captain": next(e.player for e in ordered if e.is_captain),
                "wicket_keepers": [e.player for e in ordered if e.is_wicket_keeper],
            }

        logger.info(f"Playing XI set for team {team_id} in match {match_id}")
        return response

    def update_batting_order(self, match_id: str, team_id: str, batting_order: List[str]) -> Dict[str, Any]:
        """Reorder a locked XI; allowed from the toss until the second innings."""
        if not team_id or batting_order is None:
            raise ValidationError("teamId and battingOrder array are required")

        with unit_of_work(self.db, "update_batting_order"):
            match = self.matches.get_or_raise(match_id)
            if match.status not in (MATCH_TOSS, MATCH_INNING1, MATCH_INNING2):
                raise PreconditionError(f"Cannot update batting order. Match status is '{match.status}'")
            team_key = self._team_key(match, team_id)

            current = (match.playing_xi or {}).get(team_key) or []
            if not current:
                raise PreconditionError("Playing XI not set for this team")
            if len(batting_order) != len(current):
                raise ValidationError(f"Batting order must contain exactly {len(current)} players")

            by_player = {entry["player"]: entry for entry in current}
            updated = []
            for position, player_id in enumerate(batting_order, start=1):
                if player_id not in by_player:
                    raise ValidationError(f"Player with ID {player_id} not found in playing XI")
                updated.append({**by_player[player_id], "batting_order": position})
            if len({entry["player"] for entry in updated}) != len(updated):
                raise ValidationError("Batting order cannot list a player twice")

            playing_xi = dict(match.playing_xi)
            playing_xi[team_key] = updated
            match.playing_xi = playing_xi
            self.db.flush()

        logger.info(f"Batting order updated for team {team_id} in match {match_id}")
        return {"team_id": team_id, "playing_xi": updated}

    def get_playing_xi(self, match_id: str) -> Dict[str, Any]:
        """Return both locked XIs with player names."""
        match = self.matches.get_or_raise(match_id)
        playing_xi = match.playing_xi or {}
        result = {}
        for team_key, team_id in (("team1", match.team1_id), ("team2", match.team2_id)):
            entries = playing_xi.get(team_key) or []
            names = self.players.names_by_id(entry["player"] for entry in entries)
            result[team_key] = {
                "team_id": team_id,
                "players": [{**entry, "name": names.get(entry["player"])} for entry in entries],
                "is_set": bool(entries),
            }
        return {"match_id": match.id, "playing_xi": result}
