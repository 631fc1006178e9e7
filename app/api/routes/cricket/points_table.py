"""
Points table API routes.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import require_admin
from app.core.database import get_db
from app.services.scoring import ScoringService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tournaments", tags=["points-table"])


@router.get("/{tournament_id}/points-table")
async def get_points_table(tournament_id: str, db: Session = Depends(get_db)):
    """Ranked standings: points first, then net run rate."""
    return {"success": True, "data": ScoringService(db).get_points_table(tournament_id)}


@router.post("/{tournament_id}/points-table/rebuild")
async def rebuild_points_table(
    tournament_id: str,
    role: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Recompute standings from every finished match of the tournament."""
    data = ScoringService(db).rebuild_points_table(tournament_id)
    return {"success": True, "message": "Points table rebuilt", "data": data}
