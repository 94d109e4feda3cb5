"""
League & Team API Routes
"""

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ladder.database import get_session
from ladder.models.league import League
from ladder.models.team import Team

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class LeagueCreateRequest(BaseModel):
    name: str


class LeagueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_at: datetime


class TeamCreateRequest(BaseModel):
    name: str
    active: bool = True


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    league_id: int
    name: str
    active: bool


def get_league_or_404(session: Session, league_id: int) -> League:
    league = session.get(League, league_id)
    if not league:
        raise HTTPException(status_code=404, detail="League not found")
    return league


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/leagues", response_model=LeagueResponse, status_code=201)
def create_league(request: LeagueCreateRequest, session: Session = Depends(get_session)):
    league = League(name=request.name.strip())
    session.add(league)
    session.commit()
    session.refresh(league)
    return league


@router.get("/leagues/{league_id}", response_model=LeagueResponse)
def get_league(league_id: int, session: Session = Depends(get_session)):
    return get_league_or_404(session, league_id)


@router.get("/leagues/{league_id}/teams", response_model=List[TeamResponse])
def get_teams(league_id: int, session: Session = Depends(get_session)):
    """Teams of a league ordered by id."""
    get_league_or_404(session, league_id)
    return session.exec(select(Team).where(Team.league_id == league_id).order_by(Team.id)).all()


@router.post("/leagues/{league_id}/teams", response_model=TeamResponse, status_code=201)
def create_team(league_id: int, request: TeamCreateRequest, session: Session = Depends(get_session)):
    """
    Create a team in a league.

    Constraints:
    - (league_id, name) must be unique
    """
    get_league_or_404(session, league_id)
    team = Team(league_id=league_id, name=request.name.strip(), active=request.active)
    session.add(team)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail=f"Team '{request.name}' already exists in this league")
    session.refresh(team)
    return team
