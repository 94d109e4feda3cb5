"""
Weekly Rank API Routes
Seed rank and per-week ladder rank for each team (elite leagues).
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session, select

from ladder.database import get_session
from ladder.models.team import Team
from ladder.routes.leagues import get_league_or_404
from ladder.services.weekly_rank_tracker import league_rank_history

router = APIRouter()


class TeamRankResponse(BaseModel):
    team_id: int
    team_name: str
    seed_rank: Optional[int] = None
    weekly_ranks: Dict[int, int] = {}


class WeeklyRanksResponse(BaseModel):
    league_id: int
    is_elite: bool
    max_week: int
    teams: List[TeamRankResponse]


@router.get("/leagues/{league_id}/weekly-ranks", response_model=WeeklyRanksResponse)
def get_weekly_ranks(league_id: int, session: Session = Depends(get_session)):
    """
    Per-team rank history.

    Teams are listed by seed rank (unseeded last), then id.
    """
    get_league_or_404(session, league_id)
    history = league_rank_history(session, league_id)
    teams = session.exec(select(Team).where(Team.league_id == league_id, Team.active == True)).all()  # noqa: E712

    def sort_key(team: Team):
        seed = history.seed_ranks.get(team.id)
        return (seed is None, seed or 0, team.id)

    return WeeklyRanksResponse(
        league_id=league_id,
        is_elite=history.is_elite,
        max_week=history.max_week,
        teams=[
            TeamRankResponse(
                team_id=team.id,
                team_name=team.name,
                seed_rank=history.seed_ranks.get(team.id),
                weekly_ranks=history.weekly_ranks.get(team.id, {}),
            )
            for team in sorted(teams, key=sort_key)
        ],
    )
