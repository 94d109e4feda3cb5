from ladder.models.league import League
from ladder.models.standing import Standing
from ladder.models.team import Team
from ladder.models.tier_slot import POSITION_LABELS, TierSlot
from ladder.models.weekly_result import WeeklyResult

__all__ = [
    "League",
    "Team",
    "TierSlot",
    "POSITION_LABELS",
    "WeeklyResult",
    "Standing",
]
