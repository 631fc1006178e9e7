"""
Registry API routes for tournaments, teams, players and fixtures.

Creating registry entries requires the admin role.
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.core.auth import require_admin
from app.core.database import get_db
from app.services.registry_service import RegistryService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["registry"])


class TournamentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    season: int
    overs_per_innings: Optional[int] = Field(None, alias="oversPerInnings", ge=1)


class TeamCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    short_name: str = Field(..., alias="shortName", min_length=1, max_length=10)
    city: Optional[str] = None


class PlayerCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    jersey_number: int = Field(..., alias="jerseyNumber", ge=0)
    role: str = "batsman"


class MatchCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    match_number: int = Field(..., alias="matchNumber", ge=1)
    team1: str
    team2: str
    venue: Optional[str] = None
    match_date: Optional[datetime] = Field(None, alias="date")
    type: str = "league"


# ==================== Tournaments ====================

@router.post("/tournaments", status_code=201)
async def create_tournament(
    request: TournamentCreate,
    role: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    data = RegistryService(db).create_tournament(request.name, request.season, request.overs_per_innings)
    return {"success": True, "message": "Tournament created successfully", "data": data}


@router.get("/tournaments/{tournament_id}")
async def get_tournament(tournament_id: str, db: Session = Depends(get_db)):
    return {"success": True, "data": RegistryService(db).get_tournament(tournament_id)}


# ==================== Teams ====================

@router.post("/tournaments/{tournament_id}/teams", status_code=201)
async def create_team(
    tournament_id: str,
    request: TeamCreate,
    role: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    data = RegistryService(db).create_team(tournament_id, request.name, request.short_name, request.city)
    return {"success": True, "message": "Team created successfully", "data": data}


@router.get("/teams/{team_id}")
async def get_team(team_id: str, db: Session = Depends(get_db)):
    return {"success": True, "data": RegistryService(db).get_team(team_id)}


# ==================== Players ====================

@router.post("/teams/{team_id}/players", status_code=201)
async def create_player(
    team_id: str,
    request: PlayerCreate,
    role: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    data = RegistryService(db).create_player(team_id, request.name, request.jersey_number, request.role)
    return {"success": True, "message": "Player created successfully", "data": data}


@router.get("/players/{player_id}")
async def get_player(player_id: str, db: Session = Depends(get_db)):
    return {"success": True, "data": RegistryService(db).get_player(player_id)}


# ==================== Matches ====================

@router.post("/tournaments/{tournament_id}/matches", status_code=201)
async def create_match(
    tournament_id: str,
    request: MatchCreate,
    role: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    data = RegistryService(db).create_match(
        tournament_id,
        request.match_number,
        request.team1,
        request.team2,
        venue=request.venue,
        match_date=request.match_date,
        match_type=request.type,
    )
    return {"success": True, "message": "Match created successfully", "data": data}


@router.get("/tournaments/{tournament_id}/matches")
async def list_matches(tournament_id: str, db: Session = Depends(get_db)):
    data = RegistryService(db).list_matches(tournament_id)
    return {"success": True, "data": data, "count": len(data)}


@router.get("/matches/{match_id}")
async def get_match(match_id: str, db: Session = Depends(get_db)):
    return {"success": True, "data": RegistryService(db).get_match(match_id)}
