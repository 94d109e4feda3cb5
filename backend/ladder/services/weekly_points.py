"""
Weekly league points.

    points = base_points[rank - 1] + tier_bonus * max(0, tier_offset)

tier_offset is the tier's distance from the bottom tier (0 = bottom).
Best-of-5 tiers score 2 + min(set_wins, 3) + 1 per tier above the bottom.
Elite tiers carry a zero table: they report wins/losses only.
"""
from typing import Dict, List, Optional

from ladder.services.errors import ValidationError
from ladder.services.format_registry import FormatSpec
from ladder.services.match_aggregator import TierAggregate

BEST_OF_SETS_FLOOR = 2
BEST_OF_SETS_CAP = 3


def league_points(spec: FormatSpec, rank: int, tier_offset: int, set_wins: int = 0) -> int:
    if rank < 1 or rank > spec.team_count:
        raise ValidationError(f"{spec.id}: rank {rank} out of range")
    bonus = spec.tier_bonus * max(0, tier_offset)
    if spec.points_mode == "best_of_sets":
        return BEST_OF_SETS_FLOOR + min(max(0, set_wins), BEST_OF_SETS_CAP) + bonus
    return spec.base_points[rank - 1] + bonus


def tier_points(
    spec: FormatSpec,
    order: List[str],
    tier_offset: int,
    agg: Optional[TierAggregate] = None,
) -> Dict[str, int]:
    """{label: league points} for a resolved order."""
    points: Dict[str, int] = {}
    for rank, label in enumerate(order, start=1):
        set_wins = agg.stats[label].set_wins if agg is not None else 0
        points[label] = league_points(spec, rank, tier_offset, set_wins=set_wins)
    return points
