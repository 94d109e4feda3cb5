"""
Set Outcome Evaluator: is one raw score pair a completed, valid set?

Casual rule: two distinct integers within [0, cap]. Elite casual sets
add a deuce threshold: a winner above it must lead by 2.
Rally rule: the winner reaches the set target (25, or 15 for a decider)
with a margin of at least 2.

A tie is never a decided set.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from ladder.services.errors import ValidationError
from ladder.services.format_registry import SetRule

LEFT = "left"
RIGHT = "right"


@dataclass
class SetOutcome:
    decided: bool
    winning_side: Optional[str] = None  # "left" | "right"
    margin: Optional[int] = None
    left_score: Optional[int] = None
    right_score: Optional[int] = None
    reason: Optional[str] = None  # why the set is not decided


def parse_score_value(raw: Any) -> Optional[int]:
    """Parse one raw score. Blank, non-numeric and fractional input → None."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    text = str(raw).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def evaluate_set(raw_left: Any, raw_right: Any, rule: SetRule, is_decider: bool = False) -> SetOutcome:
    left = parse_score_value(raw_left)
    right = parse_score_value(raw_right)
    if left is None or right is None:
        return SetOutcome(decided=False, left_score=left, right_score=right, reason="blank or non-numeric score")
    if left < 0 or right < 0:
        return SetOutcome(decided=False, left_score=left, right_score=right, reason="negative score")
    if left == right:
        return SetOutcome(decided=False, left_score=left, right_score=right, reason="tied set")

    margin = abs(left - right)
    high = max(left, right)
    if rule.kind == "rally":
        target = rule.decider_target if is_decider else rule.target
        if high < target:
            return SetOutcome(
                decided=False, left_score=left, right_score=right,
                reason=f"winner must reach {target}",
            )
        if margin < rule.margin:
            return SetOutcome(
                decided=False, left_score=left, right_score=right,
                reason=f"winner must lead by {rule.margin}",
            )
    else:
        if rule.cap is not None and high > rule.cap:
            return SetOutcome(
                decided=False, left_score=left, right_score=right,
                reason=f"score above {rule.cap}",
            )
        if rule.deuce_threshold is not None and high > rule.deuce_threshold and margin < rule.margin:
            return SetOutcome(
                decided=False, left_score=left, right_score=right,
                reason=f"winner past {rule.deuce_threshold} must lead by {rule.margin}",
            )

    return SetOutcome(
        decided=True,
        winning_side=LEFT if left > right else RIGHT,
        margin=margin,
        left_score=left,
        right_score=right,
    )


def check_set(
    raw_left: Any,
    raw_right: Any,
    rule: SetRule,
    is_decider: bool = False,
    where: str = "set",
) -> Tuple[int, int]:
    """Return (left, right) for a decided set or raise ValidationError."""
    outcome = evaluate_set(raw_left, raw_right, rule, is_decider=is_decider)
    if not outcome.decided:
        raise ValidationError(f"{where}: {outcome.reason} ({raw_left!r}-{raw_right!r})")
    return outcome.left_score, outcome.right_score
