"""
Score Submission API Routes
Submit a tier's card and read back weekly results.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlmodel import Session

from ladder.database import get_session
from ladder.routes.leagues import get_league_or_404
from ladder.services.errors import NotFoundError, PersistenceError, UnknownFormatError, ValidationError
from ladder.services.score_submission import submit_tier_scores, tier_results

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class ScoreSubmissionRequest(BaseModel):
    """One entry per pairing, in the format's pairing order.

    Each entry is a list of [left, right] scores, or a display string
    such as "25-20 25-22".
    """

    pairings: List[Any]
    spares: Optional[Dict[str, Any]] = None
    movement_week: Optional[bool] = None


class TeamLineResponse(BaseModel):
    position: str
    team_name: Optional[str] = None
    rank: int
    wins: int
    losses: int
    sets_won: int
    sets_lost: int
    points_for: int
    points_against: int
    league_points: int


class MovementResponse(BaseModel):
    team_name: str
    rank: int
    source_position: str
    target_week: int
    target_tier: int
    target_position: str


class SubmissionResponse(BaseModel):
    league_id: int
    week_number: int
    tier_number: int
    format_id: str
    order: List[str]
    movement_week: bool
    lines: List[TeamLineResponse]
    movement: List[MovementResponse]
    skipped_standings: List[str] = []


class WeeklyResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    week_number: int
    tier_number: int
    team_name: str
    position: Optional[str] = None
    tier_position: int
    wins: int
    losses: int
    sets_won: int
    sets_lost: int
    points_for: int
    points_against: int
    league_points: int
    match_details: Optional[Dict[str, Any]] = None


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "/leagues/{league_id}/weeks/{week_number}/tiers/{tier_number}/scores",
    response_model=SubmissionResponse,
)
def submit_scores(
    league_id: int,
    week_number: int,
    tier_number: int,
    request: ScoreSubmissionRequest,
    session: Session = Depends(get_session),
):
    """
    Submit (or resubmit) the scores of one tier.

    Writes weekly results, applies the standings delta and places teams in
    the next week. Resubmitting the same card is a no-op for standings.
    """
    get_league_or_404(session, league_id)
    try:
        result = submit_tier_scores(
            session,
            league_id,
            week_number,
            tier_number,
            request.pairings,
            spares=request.spares,
            movement_week=request.movement_week,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (ValidationError, UnknownFormatError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=f"Store unavailable: {e}")

    return SubmissionResponse(
        league_id=result.league_id,
        week_number=result.week_number,
        tier_number=result.tier_number,
        format_id=result.format_id,
        order=result.order,
        movement_week=result.movement_week,
        lines=[TeamLineResponse(**vars(line)) for line in result.lines],
        movement=[
            MovementResponse(
                team_name=m.team_name,
                rank=m.rank,
                source_position=m.source_position,
                target_week=m.target_week,
                target_tier=m.target_tier,
                target_position=m.target_position,
            )
            for m in result.movement
        ],
        skipped_standings=result.standings.skipped if result.standings else [],
    )


@router.get("/leagues/{league_id}/weeks/{week_number}/results", response_model=List[WeeklyResultResponse])
def get_week_results(league_id: int, week_number: int, session: Session = Depends(get_session)):
    """Weekly results ordered by tier, then rank."""
    get_league_or_404(session, league_id)
    return tier_results(session, league_id, week_number)
