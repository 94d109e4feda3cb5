"""
Match Aggregator: fold a tier card into per-team match statistics.

A card is one list of raw (left, right) score pairs per pairing, in the
order the format's pairing topology lists them.

- Best-of-N pairings stop counting once a side reaches the threshold;
  later sets are ignored even when filled in.
- Fixed-count pairings count every set; every set must be decided.
- Head-to-head formats aggregate in two phases: Game 1 courts decide
  winners/losers, which resolve the Game 2 pairing labels (W1, L2, ...).
  Game 2 is only evaluated once every Game 1 court is decided.

Any tied, blank, out-of-range or incomplete input raises ValidationError.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ladder.services.errors import ValidationError
from ladder.services.format_registry import FormatSpec, PairingSpec
from ladder.services.set_outcome import check_set

logger = logging.getLogger(__name__)

RawSet = Tuple[Any, Any]


@dataclass
class TeamMatchStat:
    set_wins: int = 0
    set_losses: int = 0
    match_wins: int = 0
    match_losses: int = 0
    points_for: int = 0
    points_against: int = 0

    @property
    def differential(self) -> int:
        return self.points_for - self.points_against


@dataclass
class PairingResult:
    index: int
    game: int
    court: int  # 1-based within its game
    left: str  # resolved position label
    right: str
    sets: List[Tuple[int, int]]  # counted sets only
    left_sets: int = 0
    right_sets: int = 0
    winner: Optional[str] = None
    loser: Optional[str] = None

    @property
    def left_differential(self) -> int:
        return sum(a - b for a, b in self.sets)

    def involves(self, x: str, y: str) -> bool:
        return {self.left, self.right} == {x, y}


@dataclass
class TierAggregate:
    format_id: str
    stats: Dict[str, TeamMatchStat]
    pairings: List[PairingResult] = field(default_factory=list)

    def courts(self, game: int) -> List[PairingResult]:
        return [p for p in self.pairings if p.game == game]

    def game2_labels(self) -> List[Tuple[str, str]]:
        return [(p.left, p.right) for p in self.courts(2)]


# ============================================================================
# Pairing evaluation
# ============================================================================


def _pairing_name(pairing: PairingSpec, left: str, right: str) -> str:
    return f"game {pairing.game} {left} vs {right}"


def _count_pairing(
    spec: FormatSpec,
    pairing: PairingSpec,
    raw_sets: Sequence[RawSet],
    left: str,
    right: str,
) -> List[Tuple[int, int]]:
    """Return the counted (left, right) set scores for one pairing."""
    name = _pairing_name(pairing, left, right)
    raw_sets = list(raw_sets or [])
    if len(raw_sets) > pairing.sets:
        raise ValidationError(f"{name}: expected at most {pairing.sets} sets, got {len(raw_sets)}")
    raw_sets += [(None, None)] * (pairing.sets - len(raw_sets))

    counted: List[Tuple[int, int]] = []
    if not pairing.best_of:
        for i, raw in enumerate(raw_sets):
            counted.append(check_set(raw[0], raw[1], spec.set_rule, where=f"{name} set {i + 1}"))
        return counted

    needed = pairing.wins_needed
    left_wins = right_wins = 0
    for i, raw in enumerate(raw_sets):
        if left_wins >= needed or right_wins >= needed:
            break
        is_decider = i == pairing.sets - 1
        a, b = check_set(raw[0], raw[1], spec.set_rule, is_decider=is_decider, where=f"{name} set {i + 1}")
        counted.append((a, b))
        if a > b:
            left_wins += 1
        else:
            right_wins += 1
    if left_wins < needed and right_wins < needed:
        raise ValidationError(f"{name}: best of {pairing.sets} not decided")
    return counted


def _decide_court(spec: FormatSpec, result: PairingResult) -> None:
    """Set winner/loser: set wins, then differential, then (optionally) left label."""
    if result.left_sets != result.right_sets:
        left_won = result.left_sets > result.right_sets
    elif result.left_differential != 0:
        left_won = result.left_differential > 0
    elif spec.court_positional_fallback:
        left_won = True
    else:
        raise ValidationError(
            f"game {result.game} court {result.court}: {result.left} vs {result.right} is tied"
        )
    result.winner, result.loser = (result.left, result.right) if left_won else (result.right, result.left)


def _apply(
    stats: Dict[str, TeamMatchStat],
    result: PairingResult,
    count_points: bool,
) -> None:
    left_stat, right_stat = stats[result.left], stats[result.right]
    for a, b in result.sets:
        if a > b:
            result.left_sets += 1
        else:
            result.right_sets += 1
        if count_points:
            left_stat.points_for += a
            left_stat.points_against += b
            right_stat.points_for += b
            right_stat.points_against += a
    left_stat.set_wins += result.left_sets
    left_stat.set_losses += result.right_sets
    right_stat.set_wins += result.right_sets
    right_stat.set_losses += result.left_sets


def _resolve_label(ref: str, court_outcomes: Dict[str, str]) -> str:
    if ref in court_outcomes:
        return court_outcomes[ref]
    return ref


# ============================================================================
# Public API
# ============================================================================


def aggregate(spec: FormatSpec, card: Sequence[Sequence[RawSet]]) -> TierAggregate:
    """Fold *card* into a TierAggregate for *spec*.

    Raises ValidationError for a malformed or incomplete card.
    """
    if len(card) != len(spec.pairings):
        raise ValidationError(
            f"{spec.id}: expected {len(spec.pairings)} pairings, got {len(card)}"
        )

    stats: Dict[str, TeamMatchStat] = {label: TeamMatchStat() for label in spec.labels}
    agg = TierAggregate(format_id=spec.id, stats=stats)

    # Game 1 court outcomes by reference: {"W1": "A", "L1": "B", ...}
    court_outcomes: Dict[str, str] = {}
    court_in_game: Dict[int, int] = {}

    for index, (pairing, raw_sets) in enumerate(zip(spec.pairings, card)):
        if pairing.game > 1:
            # Game 2 waits for every Game 1 court
            missing = [p for p in agg.courts(1) if p.winner is None]
            if missing:
                raise ValidationError(f"{spec.id}: Game 1 must be decided before Game 2")
        left = _resolve_label(pairing.left, court_outcomes)
        right = _resolve_label(pairing.right, court_outcomes)
        if left not in stats or right not in stats:
            raise ValidationError(f"{spec.id}: cannot resolve pairing {pairing.left} vs {pairing.right}")

        court_in_game[pairing.game] = court_in_game.get(pairing.game, 0) + 1
        result = PairingResult(
            index=index,
            game=pairing.game,
            court=court_in_game[pairing.game],
            left=left,
            right=right,
            sets=_count_pairing(spec, pairing, raw_sets, left, right),
        )
        count_points = spec.differential_scope == "all" or pairing.game == 2
        _apply(stats, result, count_points)

        if pairing.best_of:
            result.winner, result.loser = (
                (left, right) if result.left_sets > result.right_sets else (right, left)
            )
            stats[result.winner].match_wins += 1
            stats[result.loser].match_losses += 1
        elif spec.is_head_to_head:
            _decide_court(spec, result)
            if pairing.game == 1:
                court_outcomes[f"W{result.court}"] = result.winner
                court_outcomes[f"L{result.court}"] = result.loser
            logger.debug(
                "%s game %d court %d: %s beat %s (%d-%d sets)",
                spec.id, result.game, result.court, result.winner, result.loser,
                max(result.left_sets, result.right_sets), min(result.left_sets, result.right_sets),
            )
        agg.pairings.append(result)

    return agg


def game2_pairings_for(spec: FormatSpec, game1_winners: Sequence[str]) -> List[Tuple[str, str]]:
    """Resolve Game 2 labels from Game 1 court winners (court order).

    Losers are the other label of each Game 1 court.
    """
    game1 = [p for p in spec.pairings if p.game == 1]
    if len(game1_winners) != len(game1):
        raise ValidationError(f"{spec.id}: expected {len(game1)} Game 1 winners")
    outcomes: Dict[str, str] = {}
    for court, (pairing, winner) in enumerate(zip(game1, game1_winners), start=1):
        if winner not in (pairing.left, pairing.right):
            raise ValidationError(f"{winner!r} did not play on Game 1 court {court}")
        outcomes[f"W{court}"] = winner
        outcomes[f"L{court}"] = pairing.right if winner == pairing.left else pairing.left
    return [
        (_resolve_label(p.left, outcomes), _resolve_label(p.right, outcomes))
        for p in spec.pairings
        if p.game == 2
    ]
