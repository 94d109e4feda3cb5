"""
Ranking & Tie-break Resolver: totally order a tier's position labels.

Cascade formats, evaluated until a difference is found:
  1. set wins (match wins for the 9-set elite triangle)
  2. total point differential
  3. head-to-head differential, only when exactly two teams remain tied
  4. canonical label order

Head-to-head formats rank by Game 2 courts instead: court 1 winner,
court 1 loser, court 2 winner, court 2 loser, and so on.

The output is always a permutation of the format's labels.
"""
from __future__ import annotations

from itertools import groupby
from typing import Dict, List, Tuple

from ladder.services.errors import ValidationError
from ladder.services.format_registry import FormatSpec
from ladder.services.match_aggregator import TierAggregate


def head_to_head_differential(agg: TierAggregate, x: str, y: str) -> int:
    """Point differential of *x* over *y* across the sets they played each other."""
    total = 0
    for pairing in agg.pairings:
        if not pairing.involves(x, y):
            continue
        diff = pairing.left_differential
        total += diff if pairing.left == x else -diff
    return total


def _primary(spec: FormatSpec, agg: TierAggregate, label: str) -> int:
    stat = agg.stats[label]
    return stat.match_wins if spec.rank_by_match_wins else stat.set_wins


def _cascade_order(spec: FormatSpec, agg: TierAggregate) -> List[str]:
    def key(label: str) -> Tuple[int, int]:
        return (-_primary(spec, agg, label), -agg.stats[label].differential)

    positional = sorted(spec.labels, key=lambda label: (key(label), spec.labels.index(label)))

    order: List[str] = []
    for _, group in groupby(positional, key=key):
        tied = list(group)
        if len(tied) == 2:
            x, y = tied
            if head_to_head_differential(agg, y, x) > 0:
                tied = [y, x]
        order.extend(tied)
    return order


def _game2_order(spec: FormatSpec, agg: TierAggregate) -> List[str]:
    order: List[str] = []
    for court in agg.courts(2):
        if court.winner is None or court.loser is None:
            raise ValidationError(f"{spec.id}: game 2 court {court.court} is not decided")
        order.extend([court.winner, court.loser])
    return order


def resolve_order(spec: FormatSpec, agg: TierAggregate) -> List[str]:
    """Return the format's labels ordered best → worst."""
    if spec.is_head_to_head:
        order = _game2_order(spec, agg)
    else:
        order = _cascade_order(spec, agg)
    if sorted(order) != sorted(spec.labels):
        raise ValidationError(f"{spec.id}: ranking did not cover every position ({order})")
    return order


def rank_by_label(order: List[str]) -> Dict[str, int]:
    """{label: 1-based rank} for a resolved order."""
    return {label: i + 1 for i, label in enumerate(order)}
