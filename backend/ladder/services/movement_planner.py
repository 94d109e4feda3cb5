"""
Movement Planner: resolved tier order → next-week (tier, label) assignments.

Pure function over the format's movement topology:
- one MovementAssignment per ranked team
- moves off the top or bottom of the ladder saturate (the team stays)
- elite formats only move across tiers when movement_week is True;
  otherwise teams are re-seeded within their tier or elite pair

movement_week is always passed in by the caller. The rank order is the same
either way; only the target tier/label differ.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ladder.services.errors import ValidationError
from ladder.services.format_registry import FORMATS, FormatSpec, MoveRule

logger = logging.getLogger(__name__)

PAIR_ROLES = ("top", "bottom", "single")


@dataclass(frozen=True)
class MovementAssignment:
    target_week: int
    target_tier: int
    target_position: str
    team_name: str
    rank: int
    source_position: str


def variant_key(spec: FormatSpec, movement_week: bool, pair_role: Optional[str]) -> str:
    """Pick the topology variant for this tier."""
    gated = spec.elite and movement_week
    if spec.elite_pair:
        pair_role = pair_role or "single"
        if pair_role not in PAIR_ROLES:
            raise ValidationError(f"{spec.id}: unknown pair role {pair_role!r}")
        return f"{pair_role}+movement_week" if gated else pair_role
    if gated and "movement_week" in spec.movement:
        return "movement_week"
    return "default"


def _saturate(rule: MoveRule, is_top_tier: bool, is_bottom_tier: bool) -> Tuple[int, str]:
    if rule.saturated_label is not None:
        if rule.tier_delta < 0 and is_top_tier:
            return 0, rule.saturated_label
        if rule.tier_delta > 0 and is_bottom_tier:
            return 0, rule.saturated_label
    return rule.tier_delta, rule.label


def plan_movement(
    spec: FormatSpec,
    order: Sequence[str],
    team_names: Dict[str, Optional[str]],
    current_week: int,
    tier_number: int,
    is_top_tier: bool,
    is_bottom_tier: bool,
    movement_week: bool = False,
    pair_role: Optional[str] = None,
    target_week: Optional[int] = None,
) -> List[MovementAssignment]:
    """Plan next-week assignments for one tier.

    Teams without a name in *team_names* are logged and skipped.
    """
    if len(order) != spec.team_count:
        raise ValidationError(f"{spec.id}: expected {spec.team_count} ranked labels, got {len(order)}")

    rules = spec.movement[variant_key(spec, movement_week, pair_role)]
    week = target_week if target_week is not None else current_week + 1

    assignments: List[MovementAssignment] = []
    for rank, (label, rule) in enumerate(zip(order, rules), start=1):
        name = (team_names.get(label) or "").strip()
        if not name:
            logger.warning(
                "Tier %d week %d: no team at position %s (rank %d); skipping its movement",
                tier_number, current_week, label, rank,
            )
            continue
        delta, target_label = _saturate(rule, is_top_tier, is_bottom_tier)
        assignments.append(
            MovementAssignment(
                target_week=week,
                target_tier=tier_number + delta,
                target_position=target_label,
                team_name=name,
                rank=rank,
                source_position=label,
            )
        )
    return assignments


def elite_pair_roles(tiers: Sequence[Tuple[int, str]]) -> Dict[int, Tuple[str, int]]:
    """Pair consecutive 2-team elite tiers.

    *tiers* is (tier_number, format_id) for one week. Returns
    {tier_number: (role, partner_tier)} for every paired tier; runs are
    paired from the top, so an odd tier at the end of a run is left unpaired.
    """
    roles: Dict[int, Tuple[str, int]] = {}
    pending: Optional[int] = None
    previous: Optional[int] = None
    for tier_number, format_id in sorted(tiers):
        spec = FORMATS.get(format_id or "")
        is_pair_format = spec is not None and spec.elite_pair
        if not is_pair_format or (pending is not None and previous is not None and tier_number != previous + 1):
            pending = None
        if is_pair_format:
            if pending is None:
                pending = tier_number
            else:
                roles[pending] = ("top", tier_number)
                roles[tier_number] = ("bottom", pending)
                pending = None
        previous = tier_number
    return roles
