"""
Cricket Repository module.

This module contains the repositories for registry data (tournaments, teams,
players) and the scoring core (matches, innings, balls, stats, standings).
"""

from app.repositories.cricket.ball_repository import BallRepository
from app.repositories.cricket.inning_repository import InningRepository
from app.repositories.cricket.match_repository import MatchRepository
from app.repositories.cricket.player_repository import PlayerRepository
from app.repositories.cricket.points_table_repository import PointsTableRepository
from app.repositories.cricket.stats_repository import MatchPlayerStatsRepository
from app.repositories.cricket.team_repository import TeamRepository, TournamentRepository

__all__ = [
    "BallRepository",
    "InningRepository",
    "MatchRepository",
    "PlayerRepository",
    "PointsTableRepository",
    "MatchPlayerStatsRepository",
    "TeamRepository",
    "TournamentRepository",
]
