from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from ladder.models.league import League


class Team(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("league_id", "name", name="uq_league_team_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: int = Field(foreign_key="league.id", index=True)
    name: str
    active: bool = Field(default=True)  # Inactive teams are ignored for standings
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    league: "League" = Relationship(back_populates="teams")
