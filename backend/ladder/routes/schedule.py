"""
Weekly Schedule API Routes
Tier slots per league week: creation, listing, movement-week toggle,
carrying a no-games tier forward and moving a week's placements.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from ladder.database import get_session
from ladder.models.tier_slot import POSITION_LABELS, TierSlot
from ladder.routes.leagues import get_league_or_404
from ladder.services.format_registry import DEFAULT_FORMAT_ID, is_registered, resolve
from ladder.services.placement_service import (
    carry_forward_tier,
    get_tier_slot,
    move_week_placements,
    week_rows,
)

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class TierSlotCreateRequest(BaseModel):
    tier_number: int
    format: str = DEFAULT_FORMAT_ID
    team_a_name: Optional[str] = None
    team_b_name: Optional[str] = None
    team_c_name: Optional[str] = None
    team_d_name: Optional[str] = None
    team_e_name: Optional[str] = None
    team_f_name: Optional[str] = None
    # seeded ladder ranks, typically only on week 1
    team_a_ranking: Optional[int] = None
    team_b_ranking: Optional[int] = None
    team_c_ranking: Optional[int] = None
    team_d_ranking: Optional[int] = None
    team_e_ranking: Optional[int] = None
    team_f_ranking: Optional[int] = None
    no_games: bool = False
    movement_week: bool = False
    location: Optional[str] = None
    time_slot: Optional[str] = None
    court: Optional[str] = None


class TierSlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    league_id: int
    week_number: int
    tier_number: int
    format: str
    team_a_name: Optional[str] = None
    team_b_name: Optional[str] = None
    team_c_name: Optional[str] = None
    team_d_name: Optional[str] = None
    team_e_name: Optional[str] = None
    team_f_name: Optional[str] = None
    team_a_ranking: Optional[int] = None
    team_b_ranking: Optional[int] = None
    team_c_ranking: Optional[int] = None
    team_d_ranking: Optional[int] = None
    team_e_ranking: Optional[int] = None
    team_f_ranking: Optional[int] = None
    is_completed: bool
    no_games: bool
    movement_week: bool
    location: Optional[str] = None
    time_slot: Optional[str] = None
    court: Optional[str] = None


class MovementWeekRequest(BaseModel):
    movement_week: bool


class MovePlacementsRequest(BaseModel):
    to_week: int


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/leagues/{league_id}/weeks/{week_number}/tiers", response_model=List[TierSlotResponse])
def get_week_tiers(league_id: int, week_number: int, session: Session = Depends(get_session)):
    get_league_or_404(session, league_id)
    return week_rows(session, league_id, week_number)


@router.post(
    "/leagues/{league_id}/weeks/{week_number}/tiers",
    response_model=TierSlotResponse,
    status_code=201,
)
def create_tier_slot(
    league_id: int,
    week_number: int,
    request: TierSlotCreateRequest,
    session: Session = Depends(get_session),
):
    """
    Create one tier slot.

    Constraints:
    - format must be registered
    - only the format's position labels may hold a team or a ranking
    - rankings start at 1
    - (league_id, week_number, tier_number) must be unique
    """
    get_league_or_404(session, league_id)
    if not is_registered(request.format):
        raise HTTPException(status_code=422, detail=f"Unknown format: {request.format}")
    if request.tier_number < 1 or week_number < 1:
        raise HTTPException(status_code=422, detail="week_number and tier_number start at 1")
    spec = resolve(request.format)
    for label in POSITION_LABELS:
        ranking = getattr(request, f"team_{label.lower()}_ranking")
        if label not in spec.labels and (getattr(request, f"team_{label.lower()}_name") or ranking is not None):
            raise HTTPException(
                status_code=422, detail=f"Format {spec.id} has no position {label}"
            )
        if ranking is not None and ranking < 1:
            raise HTTPException(status_code=422, detail=f"Ranking for position {label} must be at least 1")

    slot = TierSlot(league_id=league_id, week_number=week_number, **request.model_dump())
    session.add(slot)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(
            status_code=409, detail=f"Week {week_number} already has tier {request.tier_number}"
        )
    session.refresh(slot)
    return slot


@router.patch("/leagues/{league_id}/weeks/{week_number}/movement-week", response_model=List[TierSlotResponse])
def set_movement_week(
    league_id: int,
    week_number: int,
    request: MovementWeekRequest,
    session: Session = Depends(get_session),
):
    """Flag (or unflag) every tier of a week as a movement week."""
    get_league_or_404(session, league_id)
    rows = week_rows(session, league_id, week_number)
    if not rows:
        raise HTTPException(status_code=404, detail="Week not found")
    for row in rows:
        row.movement_week = request.movement_week
        row.updated_at = datetime.utcnow()
        session.add(row)
    session.commit()
    return week_rows(session, league_id, week_number)


@router.post(
    "/leagues/{league_id}/weeks/{week_number}/tiers/{tier_number}/carry-forward",
    response_model=TierSlotResponse,
)
def carry_forward(
    league_id: int,
    week_number: int,
    tier_number: int,
    session: Session = Depends(get_session),
):
    """Copy a no-games tier's teams unchanged into next week."""
    get_league_or_404(session, league_id)
    slot = get_tier_slot(session, league_id, week_number, tier_number)
    if not slot:
        raise HTTPException(status_code=404, detail="Tier not found")
    if not slot.no_games:
        raise HTTPException(status_code=422, detail="Only a no-games tier can be carried forward")
    return carry_forward_tier(session, league_id, week_number, tier_number)


@router.post("/leagues/{league_id}/weeks/{week_number}/move-placements")
def move_placements(
    league_id: int,
    week_number: int,
    request: MovePlacementsRequest,
    session: Session = Depends(get_session),
):
    """Move every placement of a week to the same tier/position of another week."""
    get_league_or_404(session, league_id)
    if request.to_week < 1:
        raise HTTPException(status_code=422, detail="to_week starts at 1")
    moved = move_week_placements(session, league_id, week_number, request.to_week)
    return {"from_week": week_number, "to_week": request.to_week, "teams_moved": moved}
