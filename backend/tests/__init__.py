# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from ladder.models.league import League  # noqa: F401
from ladder.models.standing import Standing  # noqa: F401
from ladder.models.team import Team  # noqa: F401
from ladder.models.tier_slot import TierSlot  # noqa: F401
from ladder.models.weekly_result import WeeklyResult  # noqa: F401
