"""
Models Module

Usage:
    from app.models import Match, Inning, Ball

    balls = db.query(Ball).filter(Ball.inning_id == inning_id).all()
"""

from app.models.models import (
    Base,
    Tournament,
    Team,
    Player,
    Match,
    Inning,
    Ball,
    MatchPlayerStats,
    PointsTable,
    PointsTableStanding,
)

__all__ = [
    "Base",
    "Tournament",
    "Team",
    "Player",
    "Match",
    "Inning",
    "Ball",
    "MatchPlayerStats",
    "PointsTable",
    "PointsTableStanding",
]
