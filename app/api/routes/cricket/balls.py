"""
Ball-by-ball scoring API routes.

Recording and undo require the scorer role; all views are open.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.core.auth import require_scorer
from app.core.database import get_db
from app.services.scoring import ScorecardService, ScoringService
from app.services.scoring.ball_validator import event_from_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/innings", tags=["balls"])


# Request models
class RunsIn(BaseModel):
    """Runs breakdown of a delivery."""
    batsman: int = Field(0, ge=0)
    extras: int = Field(0, ge=0)
    total: Optional[int] = Field(None, ge=0, description="Defaults to batsman + extras")


class WicketIn(BaseModel):
    """Dismissal on a delivery."""
    model_config = ConfigDict(populate_by_name=True)

    is_wicket: bool = Field(False, alias="isWicket")
    type: Optional[str] = Field(None, description="bowled, caught, lbw, run-out, stumped, hit-wicket")
    player_out: Optional[str] = Field(None, alias="playerOut")
    fielder: Optional[str] = None


class RecordBallRequest(BaseModel):
    """A delivery as submitted by the scorer."""
    model_config = ConfigDict(populate_by_name=True)

    over: int = Field(..., ge=1, description="Over number, starting at 1")
    ball_in_over: int = Field(..., alias="ballInOver", ge=1, le=6)
    is_legal: bool = Field(True, alias="isLegal")
    bowler: str
    batsman: str
    non_striker: str = Field(..., alias="nonStriker")
    runs: RunsIn = Field(default_factory=RunsIn)
    extra_type: Optional[str] = Field(None, alias="extraType", description="wide, no-ball, bye, leg-bye, penalty")
    wicket: Optional[WicketIn] = None
    commentary: Optional[str] = None


# Routes
@router.post("/{inning_id}/balls", status_code=201)
async def record_ball(
    inning_id: str,
    request: RecordBallRequest,
    role: str = Depends(require_scorer),
    db: Session = Depends(get_db)
):
    """Record one ball. Stats, innings completion and any result follow atomically."""
    event = event_from_payload(request.model_dump(by_alias=True))
    data = ScoringService(db).record_ball(inning_id, event)
    return {
        "success": True,
        "message": "Ball recorded successfully",
        "data": data,
    }


@router.delete("/{inning_id}/balls/last")
async def undo_last_ball(
    inning_id: str,
    role: str = Depends(require_scorer),
    db: Session = Depends(get_db)
):
    """Undo the most recently recorded ball of an innings."""
    data = ScoringService(db).undo_last_ball(inning_id)
    return {
        "success": True,
        "message": f"Ball {data['removed_ball']['position']} removed",
        "data": data,
    }


@router.get("/{inning_id}/balls")
async def get_inning_balls(
    inning_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=120),
    sort_by: str = Query("over", alias="sortBy"),
    sort_order: str = Query("asc", alias="sortOrder", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db)
):
    """Paginated balls of an innings, grouped by over, with innings statistics."""
    data = ScorecardService(db).get_inning_balls(
        inning_id, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order
    )
    pagination = data.pop("pagination")
    return {"success": True, "data": data, "pagination": pagination}


@router.get("/{inning_id}/current-over")
async def get_current_over(inning_id: str, db: Session = Depends(get_db)):
    """The over in progress."""
    return {"success": True, "data": ScorecardService(db).get_current_over(inning_id)}


@router.get("/{inning_id}/batting-partners")
async def get_batting_partners(inning_id: str, db: Session = Depends(get_db)):
    """Current batsmen and their partnership since the last wicket."""
    return {"success": True, "data": ScorecardService(db).get_batting_partners(inning_id)}


@router.get("/{inning_id}/commentary")
async def get_ball_commentary(
    inning_id: str,
    from_over: int = Query(0, alias="fromOver", ge=0),
    to_over: Optional[int] = Query(None, alias="toOver", ge=0),
    db: Session = Depends(get_db)
):
    """Ball commentary for an over range."""
    data = ScorecardService(db).get_ball_commentary(inning_id, from_over=from_over, to_over=to_over)
    return {"success": True, "data": data}
