"""
Points Table Repository.

A tournament's points table is created lazily and seeded with a zero row for
every team in the tournament.

Usage:
    repo = PointsTableRepository(db)
    table = repo.get_or_create(tournament_id, team_ids)
"""
import uuid
from typing import Optional, List, Iterable

from app.models import PointsTable, PointsTableStanding
from app.repositories.base import BaseRepository


class PointsTableRepository(BaseRepository[PointsTable]):
    """Repository for tournament standings."""

    entity_name = "Points table"

    def __init__(self, db):
        """Initialize the points table repository."""
        super().__init__(PointsTable, db)

    def find_by_tournament(self, tournament_id: str) -> Optional[PointsTable]:
        """Find a tournament's points table."""
        return self.where_first(PointsTable.tournament_id == tournament_id)

    def get_or_create(self, tournament_id: str, team_ids: Iterable[str]) -> PointsTable:
        """
        Return the tournament's points table, creating and seeding it if absent.

        Teams registered after the table was created get their zero row here too.
        """
        table = self.find_by_tournament(tournament_id)
        if table is None:
            table = self.create(tournament_id=tournament_id)

        existing = {row.team_id for row in self.find_standings(table.id)}
        for team_id in team_ids:
            if team_id not in existing:
                self.db.add(PointsTableStanding(
                    id=str(uuid.uuid4()),
                    points_table_id=table.id,
                    team_id=team_id,
                    played=0,
                    won=0,
                    lost=0,
                    no_result=0,
                    points=0,
                    net_run_rate=0.0,
                    qualified=False,
                ))
        self.db.flush()
        return table

    def find_standings(self, points_table_id: str) -> List[PointsTableStanding]:
        """Return a table's rows ordered by position (unranked rows last)."""
        return self.db.query(PointsTableStanding).filter(
            PointsTableStanding.points_table_id == points_table_id
        ).order_by(
            PointsTableStanding.position.is_(None),
            PointsTableStanding.position,
        ).all()

    def reset_standings(self, points_table_id: str) -> List[PointsTableStanding]:
        """Zero every row of a table ahead of a full recompute."""
        rows = self.find_standings(points_table_id)
        for row in rows:
            row.played = 0
            row.won = 0
            row.lost = 0
            row.no_result = 0
            row.points = 0
            row.net_run_rate = 0.0
            row.position = None
        self.db.flush()
        return rows
