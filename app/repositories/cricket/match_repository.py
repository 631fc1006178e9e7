"""
Match Repository.

Usage:
    repo = MatchRepository(db)
    finished = repo.find_finished(tournament_id)
"""
from typing import Optional, List, Sequence

from app.models import Match
from app.models.models import MATCH_ABANDONED, MATCH_COMPLETED
from app.repositories.base import BaseRepository


class MatchRepository(BaseRepository[Match]):
    """Repository for match data access."""

    entity_name = "Match"

    def __init__(self, db):
        """Initialize the match repository."""
        super().__init__(Match, db)

    def find_by_number(self, tournament_id: str, match_number: int) -> Optional[Match]:
        """Find a tournament's match by its match number."""
        return self.where_first(
            Match.tournament_id == tournament_id,
            Match.match_number == match_number,
        )

    def find_by_tournament(
        self,
        tournament_id: str,
        statuses: Optional[Sequence[str]] = None
    ) -> List[Match]:
        """
        Return a tournament's matches in match-number order.

        Args:
            tournament_id: Tournament to scan
            statuses: Optional status filter
        """
        query = self.db.query(Match).filter(Match.tournament_id == tournament_id)
        if statuses:
            query = query.filter(Match.status.in_(list(statuses)))
        return query.order_by(Match.match_number).all()

    def find_finished(self, tournament_id: str) -> List[Match]:
        """Return completed and abandoned matches in match-number order."""
        return self.find_by_tournament(tournament_id, (MATCH_COMPLETED, MATCH_ABANDONED))
