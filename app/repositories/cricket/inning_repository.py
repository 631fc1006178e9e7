"""
Inning Repository.

Usage:
    repo = InningRepository(db)
    first = repo.find_by_match_and_number(match_id, 1)
"""
from typing import Optional, List

from app.models import Inning
from app.repositories.base import BaseRepository


class InningRepository(BaseRepository[Inning]):
    """Repository for innings data access."""

    entity_name = "Inning"

    def __init__(self, db):
        """Initialize the inning repository."""
        super().__init__(Inning, db)

    def find_by_match_and_number(self, match_id: str, inning_number: int) -> Optional[Inning]:
        """Find the innings of a match with the given number."""
        return self.where_first(
            Inning.match_id == match_id,
            Inning.inning_number == inning_number,
        )

    def find_by_match(self, match_id: str) -> List[Inning]:
        """Return a match's innings ordered by inning number."""
        return self.db.query(Inning).filter(
            Inning.match_id == match_id
        ).order_by(Inning.inning_number).all()

    def both_completed(self, match_id: str) -> bool:
        """Check whether innings 1 and 2 both exist and are completed."""
        innings = self.find_by_match(match_id)
        return len(innings) == 2 and all(inning.is_completed for inning in innings)
