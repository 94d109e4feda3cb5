from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class Standing(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("league_id", "team_id", name="uq_standing_league_team"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: int = Field(foreign_key="league.id", index=True)
    team_id: int = Field(foreign_key="team.id", index=True)

    # Accumulated from weekly results
    wins: int = Field(default=0)
    losses: int = Field(default=0)
    points: int = Field(default=0)
    point_differential: int = Field(default=0)

    # Manual adjustments (additive, never touched by recomputation)
    manual_wins_adj: int = Field(default=0)
    manual_losses_adj: int = Field(default=0)
    manual_points_adj: int = Field(default=0)
    manual_diff_adj: int = Field(default=0)

    current_position: Optional[int] = Field(default=None)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def total_wins(self) -> int:
        return (self.wins or 0) + (self.manual_wins_adj or 0)

    @property
    def total_losses(self) -> int:
        return (self.losses or 0) + (self.manual_losses_adj or 0)

    @property
    def total_points(self) -> int:
        return (self.points or 0) + (self.manual_points_adj or 0)

    @property
    def total_differential(self) -> int:
        return (self.point_differential or 0) + (self.manual_diff_adj or 0)
