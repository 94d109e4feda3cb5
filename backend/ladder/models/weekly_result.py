from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, SQLModel


class WeeklyResult(SQLModel, table=True):
    """One team's result for one tier of one week. Overwritten on resubmission."""

    __table_args__ = (
        SAUniqueConstraint(
            "league_id", "week_number", "tier_number", "team_name", name="uq_weekly_result_team"
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: int = Field(foreign_key="league.id", index=True)
    week_number: int = Field(index=True)
    tier_number: int
    team_name: str
    position: Optional[str] = Field(default=None)  # Label the team played from
    tier_position: int  # Final rank within the tier (1 = best)

    wins: int = Field(default=0)
    losses: int = Field(default=0)
    sets_won: int = Field(default=0)
    sets_lost: int = Field(default=0)
    points_for: int = Field(default=0)
    points_against: int = Field(default=0)
    league_points: int = Field(default=0)

    # Audit only (spares, raw sets, summaries); never read back for recomputation
    match_details: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def differential(self) -> int:
        return (self.points_for or 0) - (self.points_against or 0)
