"""
Score card parser for submitted pairings.

Each pairing of a card may arrive in any of these shapes:
  [["25", "20"], [25, 22]]       → explicit (left, right) pairs
  [{"left": 25, "right": 20}]    → structured sets
  "25-20 25-22 10-25"            → display string, one set per token
  "25-20, 25-22"                 → comma-separated variant
  {"display": "21-10 21-12"}     → extracts display string first

Values are kept raw: validity is decided by the set outcome evaluator.
Raises ValidationError on a shape it cannot read.
"""
from __future__ import annotations

from typing import Any, List, Sequence, Tuple

from ladder.services.errors import ValidationError

RawSet = Tuple[Any, Any]


def parse_pairing(entry: Any, where: str = "pairing") -> List[RawSet]:
    """Normalize one pairing entry into a list of raw (left, right) sets."""
    if entry is None:
        return []
    if isinstance(entry, dict):
        if "sets" in entry and isinstance(entry["sets"], list):
            return parse_pairing(entry["sets"], where)
        raw = entry.get("display") or entry.get("score") or ""
        return _parse_score_string(str(raw), where)
    if isinstance(entry, str):
        return _parse_score_string(entry, where)
    if isinstance(entry, (list, tuple)):
        return [_parse_set(s, f"{where} set {i + 1}") for i, s in enumerate(entry)]
    raise ValidationError(f"{where}: unreadable scores {entry!r}")


def parse_card(pairings: Sequence[Any]) -> List[List[RawSet]]:
    """Normalize every pairing of a submitted card."""
    return [parse_pairing(p, f"pairing {i + 1}") for i, p in enumerate(pairings)]


def _parse_set(s: Any, where: str) -> RawSet:
    if isinstance(s, dict):
        return (s.get("left", s.get("a")), s.get("right", s.get("b")))
    if isinstance(s, (list, tuple)) and len(s) == 2:
        return (s[0], s[1])
    if isinstance(s, str):
        parsed = _parse_score_string(s, where)
        if len(parsed) == 1:
            return parsed[0]
    raise ValidationError(f"{where}: expected a pair of scores, got {s!r}")


def _parse_score_string(raw: str, where: str) -> List[RawSet]:
    """Parse strings like '21-10', '25-20 25-22 10-25', '25-20, 25-22'."""
    # Normalize: replace commas with spaces, collapse whitespace
    parts = raw.replace(",", " ").split()

    sets: List[RawSet] = []
    for part in parts:
        pair = part.split("-")
        if len(pair) != 2:
            raise ValidationError(f"{where}: cannot read set {part!r}")
        sets.append((pair[0], pair[1]))
    return sets
