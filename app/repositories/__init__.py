"""
Repository layer for data access.

The repository pattern provides:
1. Separation of data access logic from scoring logic
2. Single place for query logic (easier to maintain)
3. Easier testing (can mock repositories)
4. Consistent interface for data operations

Usage:
    from app.repositories.cricket import BallRepository, InningRepository
    from app.core.database import SessionLocal

    db = SessionLocal()
    ball_repo = BallRepository(db)
    last_ball = ball_repo.find_latest(inning_id)
    db.close()
"""

from app.repositories.base import BaseRepository

# Cricket Repositories
from app.repositories.cricket import (
    BallRepository,
    InningRepository,
    MatchRepository,
    PlayerRepository,
    PointsTableRepository,
    MatchPlayerStatsRepository,
    TeamRepository,
    TournamentRepository,
)

__all__ = [
    "BaseRepository",
    "BallRepository",
    "InningRepository",
    "MatchRepository",
    "PlayerRepository",
    "PointsTableRepository",
    "MatchPlayerStatsRepository",
    "TeamRepository",
    "TournamentRepository",
]
