"""
Match API routes: toss, playing XI, result and scorecard.

Setup and completion require the scorer role. Result correction and stats
rebuilds require the admin role.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.core.auth import require_admin, require_scorer
from app.core.database import get_db
from app.services.scoring import MatchSetupService, ScorecardService, ScoringService, XIEntry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/matches", tags=["matches"])


# Request models
class TossRequest(BaseModel):
    winner: str = Field(..., description="Team ID of the toss winner")
    decision: str = Field(..., description="bat or bowl")


class XIPlayerIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    player: str
    is_captain: bool = Field(False, alias="isCaptain")
    is_wicket_keeper: bool = Field(False, alias="isWicketKeeper")
    batting_order: Optional[int] = Field(None, alias="battingOrder", ge=1, le=11)


class PlayingXIRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    team_id: str = Field(..., alias="teamId")
    players: List[XIPlayerIn]


class BattingOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    team_id: str = Field(..., alias="teamId")
    batting_order: List[str] = Field(..., alias="battingOrder")


class MatchResultRequest(BaseModel):
    """Explicit result. Omit winner and summary to derive it from the innings."""
    model_config = ConfigDict(populate_by_name=True)

    winner: Optional[str] = None
    margin: Optional[str] = None
    summary: Optional[str] = None
    man_of_the_match: Optional[str] = Field(None, alias="manOfTheMatch")


class AbandonRequest(BaseModel):
    reason: Optional[str] = None


# ==================== Toss & Playing XI ====================

@router.post("/{match_id}/toss")
async def record_toss(
    match_id: str,
    request: TossRequest,
    role: str = Depends(require_scorer),
    db: Session = Depends(get_db)
):
    """Record the toss; the match moves to the toss stage."""
    data = MatchSetupService(db).record_toss(match_id, request.winner, request.decision)
    return {"success": True, "message": "Toss recorded successfully", "data": data}


@router.get("/{match_id}/toss")
async def get_toss(match_id: str, db: Session = Depends(get_db)):
    return {"success": True, "data": MatchSetupService(db).get_toss(match_id)}


@router.put("/{match_id}/playing-xi")
async def set_playing_xi(
    match_id: str,
    request: PlayingXIRequest,
    role: str = Depends(require_scorer),
    db: Session = Depends(get_db)
):
    """Lock a team's playing XI."""
    entries = [
        XIEntry(
            player=p.player,
            is_captain=p.is_captain,
            is_wicket_keeper=p.is_wicket_keeper,
            batting_order=p.batting_order,
        )
        for p in request.players
    ]
    data = MatchSetupService(db).set_playing_xi(match_id, request.team_id, entries)
    return {"success": True, "message": "Playing XI set successfully", "data": data}


@router.get("/{match_id}/playing-xi")
async def get_playing_xi(match_id: str, db: Session = Depends(get_db)):
    return {"success": True, "data": MatchSetupService(db).get_playing_xi(match_id)}


@router.patch("/{match_id}/batting-order")
async def update_batting_order(
    match_id: str,
    request: BattingOrderRequest,
    role: str = Depends(require_scorer),
    db: Session = Depends(get_db)
):
    data = MatchSetupService(db).update_batting_order(match_id, request.team_id, request.batting_order)
    return {"success": True, "message": "Batting order updated successfully", "data": data}


# ==================== Completion & Result ====================

@router.post("/{match_id}/complete")
async def complete_match(
    match_id: str,
    request: MatchResultRequest,
    role: str = Depends(require_scorer),
    db: Session = Depends(get_db)
):
    """Complete a match from its innings, or with an explicit result."""
    data = ScoringService(db).complete_match(
        match_id,
        winner=request.winner,
        margin=request.margin,
        summary=request.summary,
        man_of_the_match=request.man_of_the_match,
    )
    return {"success": True, "message": "Match completed successfully", "data": data}


@router.post("/{match_id}/abandon")
async def abandon_match(
    match_id: str,
    request: Optional[AbandonRequest] = None,
    role: str = Depends(require_scorer),
    db: Session = Depends(get_db)
):
    """Abandon a match; both sides get one point."""
    reason = request.reason if request else None
    data = ScoringService(db).abandon_match(match_id, reason)
    return {"success": True, "message": "Match abandoned", "data": data}


@router.get("/{match_id}/result")
async def get_match_result(match_id: str, db: Session = Depends(get_db)):
    return {"success": True, "data": ScoringService(db).get_match_result(match_id)}


@router.put("/{match_id}/result")
async def update_match_result(
    match_id: str,
    request: MatchResultRequest,
    role: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Correct the result of a completed match. Standings are recomputed if the winner changes."""
    data = ScoringService(db).update_match_result(
        match_id,
        winner=request.winner,
        margin=request.margin,
        summary=request.summary,
        man_of_the_match=request.man_of_the_match,
    )
    return {"success": True, "message": "Match result updated successfully", "data": data}


# ==================== Scorecard & Maintenance ====================

@router.get("/{match_id}/scorecard")
async def get_match_scorecard(match_id: str, db: Session = Depends(get_db)):
    """Innings totals with per-player batting, bowling and fielding figures."""
    return {"success": True, "data": ScorecardService(db).get_match_scorecard(match_id)}


@router.post("/{match_id}/stats/rebuild")
async def rebuild_match_stats(
    match_id: str,
    role: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Recompute player stats of a match from its balls."""
    data = ScoringService(db).rebuild_match_stats(match_id)
    return {"success": True, "message": "Player stats rebuilt from ball ledger", "data": data}
