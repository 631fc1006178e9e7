"""
Ball Repository for the ball ledger.

The ledger is ordered by (over, ball_in_over). Every "latest" lookup in the
scoring core goes through here so that ordering is defined in one place.

Usage:
    repo = BallRepository(db)
    last = repo.find_latest(inning_id)
    page, total = repo.find_page(inning_id, page=1, limit=20)
"""
from typing import Optional, List, Tuple
from sqlalchemy import and_, asc, desc, or_

from app.models import Ball, Inning
from app.repositories.base import BaseRepository

SORTABLE_FIELDS = ("over", "ball_in_over", "created_at", "runs_total")


class BallRepository(BaseRepository[Ball]):
    """Repository for ball ledger access."""

    entity_name = "Ball"

    def __init__(self, db):
        """Initialize the ball repository."""
        super().__init__(Ball, db)

    # ========================================================================
    # Position Lookups
    # ========================================================================

    def position_taken(self, inning_id: str, over: int, ball_in_over: int) -> bool:
        """Check whether a ledger position is already occupied."""
        return self.exists_where(
            Ball.inning_id == inning_id,
            Ball.over == over,
            Ball.ball_in_over == ball_in_over,
        )

    def find_latest(self, inning_id: str) -> Optional[Ball]:
        """Find the most recently recorded ball of an innings by position."""
        return self.db.query(Ball).filter(
            Ball.inning_id == inning_id
        ).order_by(
            desc(Ball.over), desc(Ball.ball_in_over)
        ).first()

    # ========================================================================
    # Innings Scans
    # ========================================================================

    def find_by_inning(self, inning_id: str) -> List[Ball]:
        """Return the full ledger of an innings in delivery order."""
        return self.db.query(Ball).filter(
            Ball.inning_id == inning_id
        ).order_by(
            asc(Ball.over), asc(Ball.ball_in_over)
        ).all()

    def find_by_match(self, match_id: str) -> List[Ball]:
        """Return every ball of a match, innings by innings."""
        return self.db.query(Ball).join(
            Inning, Ball.inning_id == Inning.id
        ).filter(
            Ball.match_id == match_id
        ).order_by(
            asc(Inning.inning_number), asc(Ball.over), asc(Ball.ball_in_over)
        ).all()

    def find_in_over(self, inning_id: str, over: int) -> List[Ball]:
        """Return all deliveries of one over in order."""
        return self.db.query(Ball).filter(
            Ball.inning_id == inning_id,
            Ball.over == over,
        ).order_by(asc(Ball.ball_in_over)).all()

    def find_over_range(
        self,
        inning_id: str,
        from_over: int = 0,
        to_over: Optional[int] = None
    ) -> List[Ball]:
        """
        Return balls whose over lies in [from_over, to_over].

        Args:
            inning_id: Innings to scan
            from_over: Lowest over to include
            to_over: Highest over to include (None for no upper bound)
        """
        query = self.db.query(Ball).filter(
            Ball.inning_id == inning_id,
            Ball.over >= from_over,
        )
        if to_over is not None:
            query = query.filter(Ball.over <= to_over)
        return query.order_by(asc(Ball.over), asc(Ball.ball_in_over)).all()

    def find_page(
        self,
        inning_id: str,
        page: int = 1,
        limit: int = 20,
        sort_by: str = "over",
        descending: bool = False
    ) -> Tuple[List[Ball], int]:
        """
        Return one page of an innings' balls and the total ball count.

        Sorting by over always breaks ties on ball_in_over in the same direction.

        Returns:
            Tuple of (balls on this page, total balls in the innings)
        """
        if sort_by not in SORTABLE_FIELDS:
            sort_by = "over"
        direction = desc if descending else asc

        query = self.db.query(Ball).filter(Ball.inning_id == inning_id)
        total = query.count()

        ordering = [direction(getattr(Ball, sort_by))]
        if sort_by == "over":
            ordering.append(direction(Ball.ball_in_over))

        balls = query.order_by(*ordering).offset((page - 1) * limit).limit(limit).all()
        return balls, total

    # ========================================================================
    # Wicket Queries
    # ========================================================================

    def find_last_wicket(self, inning_id: str) -> Optional[Ball]:
        """Find the most recent dismissal ball of an innings."""
        return self.db.query(Ball).filter(
            Ball.inning_id == inning_id,
            Ball.is_wicket.is_(True),
        ).order_by(
            desc(Ball.over), desc(Ball.ball_in_over)
        ).first()

    def find_after_position(self, inning_id: str, over: int, ball_in_over: int) -> List[Ball]:
        """Return balls recorded strictly after the given position."""
        return self.db.query(Ball).filter(
            Ball.inning_id == inning_id,
            or_(
                Ball.over > over,
                and_(Ball.over == over, Ball.ball_in_over > ball_in_over),
            ),
        ).order_by(asc(Ball.over), asc(Ball.ball_in_over)).all()

    def count_dismissals(self, match_id: str, player_id: str) -> int:
        """Count balls in a match that dismiss the given player."""
        return self.count(
            Ball.match_id == match_id,
            Ball.is_wicket.is_(True),
            Ball.player_out_id == player_id,
        )
