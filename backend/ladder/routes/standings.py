"""
Standings API Routes
Season standings and manual adjustments.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session, select

from ladder.database import get_session
from ladder.models.standing import Standing
from ladder.models.team import Team
from ladder.routes.leagues import get_league_or_404
from ladder.services.standings_updater import apply_manual_adjustments, ordered_standings

router = APIRouter()


class StandingResponse(BaseModel):
    team_id: int
    team_name: Optional[str] = None
    current_position: Optional[int] = None
    wins: int
    losses: int
    points: int
    point_differential: int
    manual_wins_adj: int
    manual_losses_adj: int
    manual_points_adj: int
    manual_diff_adj: int
    total_wins: int
    total_losses: int
    total_points: int
    total_differential: int


class AdjustmentRequest(BaseModel):
    manual_wins_adj: Optional[int] = None
    manual_losses_adj: Optional[int] = None
    manual_points_adj: Optional[int] = None
    manual_diff_adj: Optional[int] = None


def _to_response(standing: Standing, team_name: Optional[str]) -> StandingResponse:
    return StandingResponse(
        team_id=standing.team_id,
        team_name=team_name,
        current_position=standing.current_position,
        wins=standing.wins,
        losses=standing.losses,
        points=standing.points,
        point_differential=standing.point_differential,
        manual_wins_adj=standing.manual_wins_adj,
        manual_losses_adj=standing.manual_losses_adj,
        manual_points_adj=standing.manual_points_adj,
        manual_diff_adj=standing.manual_diff_adj,
        total_wins=standing.total_wins,
        total_losses=standing.total_losses,
        total_points=standing.total_points,
        total_differential=standing.total_differential,
    )


@router.get("/leagues/{league_id}/standings", response_model=List[StandingResponse])
def get_standings(league_id: int, session: Session = Depends(get_session)):
    """Standings ordered by current position."""
    get_league_or_404(session, league_id)
    names = {t.id: t.name for t in session.exec(select(Team).where(Team.league_id == league_id)).all()}
    return [_to_response(s, names.get(s.team_id)) for s in ordered_standings(session, league_id)]


@router.patch("/leagues/{league_id}/standings/{team_id}/adjustments", response_model=StandingResponse)
def adjust_standing(
    league_id: int,
    team_id: int,
    request: AdjustmentRequest,
    session: Session = Depends(get_session),
):
    """Set manual adjustments for one team; positions are recomputed."""
    get_league_or_404(session, league_id)
    team = session.get(Team, team_id)
    if not team or team.league_id != league_id:
        raise HTTPException(status_code=404, detail="Team not found")
    standing = session.exec(
        select(Standing).where(Standing.league_id == league_id, Standing.team_id == team_id)
    ).first()
    if standing is None:
        standing = Standing(league_id=league_id, team_id=team_id)
    standing = apply_manual_adjustments(
        session,
        standing,
        wins=request.manual_wins_adj,
        losses=request.manual_losses_adj,
        points=request.manual_points_adj,
        differential=request.manual_diff_adj,
    )
    return _to_response(standing, team.name)
