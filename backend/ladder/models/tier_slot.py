from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel

POSITION_LABELS = ("A", "B", "C", "D", "E", "F")


class TierSlot(SQLModel, table=True):
    """One tier of one league week: format, team per position, ranking overrides."""

    __table_args__ = (
        SAUniqueConstraint("league_id", "week_number", "tier_number", name="uq_tier_slot_week_tier"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: int = Field(foreign_key="league.id", index=True)
    week_number: int = Field(index=True)
    tier_number: int  # 1 = top tier
    format: str = Field(default="3-teams-6-sets")

    team_a_name: Optional[str] = Field(default=None)
    team_b_name: Optional[str] = Field(default=None)
    team_c_name: Optional[str] = Field(default=None)
    team_d_name: Optional[str] = Field(default=None)
    team_e_name: Optional[str] = Field(default=None)
    team_f_name: Optional[str] = Field(default=None)

    # Numeric ranking override per position (elite weekly rank display)
    team_a_ranking: Optional[int] = Field(default=None)
    team_b_ranking: Optional[int] = Field(default=None)
    team_c_ranking: Optional[int] = Field(default=None)
    team_d_ranking: Optional[int] = Field(default=None)
    team_e_ranking: Optional[int] = Field(default=None)
    team_f_ranking: Optional[int] = Field(default=None)

    is_completed: bool = Field(default=False)
    no_games: bool = Field(default=False)  # Tier sits out this week
    movement_week: bool = Field(default=False)  # Elite tiers may move across tiers

    location: Optional[str] = Field(default=None)
    time_slot: Optional[str] = Field(default=None)
    court: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def team_name(self, label: str) -> Optional[str]:
        return getattr(self, f"team_{label.lower()}_name")

    def set_team_name(self, label: str, name: Optional[str]) -> None:
        setattr(self, f"team_{label.lower()}_name", name)

    def set_team_ranking(self, label: str, ranking: Optional[int]) -> None:
        setattr(self, f"team_{label.lower()}_ranking", ranking)

    def team_names(self, labels=POSITION_LABELS) -> Dict[str, Optional[str]]:
        return {label: self.team_name(label) for label in labels}

    def placed_names(self) -> List[str]:
        """Non-empty team names in label order."""
        return [n for n in (self.team_name(label) for label in POSITION_LABELS) if n and n.strip()]
