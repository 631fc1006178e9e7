"""
Innings API routes.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.core.auth import require_scorer
from app.core.database import get_db
from app.services.scoring import ScorecardService, ScoringService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["innings"])


class StartInningRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    inning_number: int = Field(..., alias="inningNumber", description="1 or 2")
    batting_team_id: Optional[str] = Field(
        None, alias="battingTeamId", description="Checked against the side resolved from the toss or innings 1"
    )


@router.post("/matches/{match_id}/innings", status_code=201)
async def start_inning(
    match_id: str,
    request: StartInningRequest,
    role: str = Depends(require_scorer),
    db: Session = Depends(get_db)
):
    """Open innings 1 or 2 of a match."""
    data = ScoringService(db).start_inning(match_id, request.inning_number, request.batting_team_id)
    return {
        "success": True,
        "message": f"Inning {request.inning_number} started successfully",
        "data": data,
    }


@router.get("/matches/{match_id}/innings")
async def get_match_innings(match_id: str, db: Session = Depends(get_db)):
    """All innings of a match with totals."""
    return {"success": True, "data": ScorecardService(db).get_match_innings(match_id)}


@router.get("/matches/{match_id}/innings/current")
async def get_current_inning(match_id: str, db: Session = Depends(get_db)):
    """The innings in progress."""
    return {"success": True, "data": ScorecardService(db).get_current_inning(match_id)}


@router.get("/innings/{inning_id}")
async def get_inning_details(
    inning_id: str,
    with_balls: bool = Query(False, alias="withBalls"),
    db: Session = Depends(get_db)
):
    """Innings totals, optionally with every ball."""
    data = ScorecardService(db).get_inning_details(inning_id, with_balls=with_balls)
    return {"success": True, "data": data}


@router.post("/innings/{inning_id}/complete")
async def complete_inning(
    inning_id: str,
    role: str = Depends(require_scorer),
    db: Session = Depends(get_db)
):
    """Close an innings by hand (declaration, curtailment)."""
    data = ScoringService(db).complete_inning(inning_id)
    return {
        "success": True,
        "message": "Inning completed successfully",
        "data": data,
    }
