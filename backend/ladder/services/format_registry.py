"""
Format Registry: Tier Format Rules (Single Source of Truth)

Every per-format rule lives here: position labels, pairing topology, set
validity, league points table and movement topology. All other modules must
resolve a FormatSpec from this registry. Do NOT duplicate these rules elsewhere.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Tuple

from ladder.services.errors import UnknownFormatError

# =============================================================================
# Rule Types
# =============================================================================

SetRuleKind = Literal["casual", "rally"]
PointsMode = Literal["table", "best_of_sets"]
RankingMode = Literal["cascade", "game2_courts"]
DifferentialScope = Literal["all", "game2"]

ALL_LABELS: Tuple[str, ...] = ("A", "B", "C", "D", "E", "F")


@dataclass(frozen=True)
class SetRule:
    kind: SetRuleKind
    cap: Optional[int] = None  # casual: highest legal score
    target: int = 25  # rally: score a regular set is played to
    decider_target: int = 15  # rally: score the deciding set is played to
    margin: int = 2  # minimum winning margin (rally, or casual past deuce_threshold)
    deuce_threshold: Optional[int] = None  # casual: winner above this must lead by margin


@dataclass(frozen=True)
class PairingSpec:
    """One pairing of a tier card.

    left/right are position labels, or Game 1 court references ("W1", "L2")
    for Game 2 pairings of head-to-head formats.
    """

    left: str
    right: str
    sets: int
    best_of: bool = False
    game: int = 1

    @property
    def wins_needed(self) -> int:
        return self.sets // 2 + 1


@dataclass(frozen=True)
class MoveRule:
    """Where the team at one rank goes next week.

    tier_delta: -1 up one tier, 0 stay, +1 down one tier.
    saturated_label: label used instead when the move would leave the ladder.
    """

    tier_delta: int
    label: str
    saturated_label: Optional[str] = None


@dataclass(frozen=True)
class FormatSpec:
    id: str
    display_name: str
    labels: Tuple[str, ...]
    pairings: Tuple[PairingSpec, ...]
    set_rule: SetRule
    base_points: Tuple[int, ...]  # indexed by rank - 1 (best first)
    tier_bonus: int
    movement: Dict[str, Tuple[MoveRule, ...]] = field(hash=False, compare=False)
    elite: bool = False
    points_mode: PointsMode = "table"
    ranking_mode: RankingMode = "cascade"
    rank_by_match_wins: bool = False
    count_match_wins: bool = False  # weekly wins/losses are matches, not sets
    differential_scope: DifferentialScope = "all"
    court_positional_fallback: bool = False
    elite_pair: bool = False

    @property
    def team_count(self) -> int:
        return len(self.labels)

    @property
    def set_count(self) -> int:
        return sum(p.sets for p in self.pairings)

    @property
    def is_head_to_head(self) -> bool:
        return self.ranking_mode == "game2_courts"


# =============================================================================
# Set Rules
# =============================================================================

CASUAL_21 = SetRule(kind="casual", cap=21)
CASUAL_25 = SetRule(kind="casual", cap=25)
# elite triangles: open to 40, but a winner past 19 must lead by 2
ELITE_40 = SetRule(kind="casual", cap=40, deuce_threshold=19, margin=2)
RALLY_25 = SetRule(kind="rally", target=25, decider_target=15, margin=2)


# =============================================================================
# Pairing Topologies
# =============================================================================

def _repeat(left: str, right: str, count: int, game: int = 1) -> Tuple[PairingSpec, ...]:
    return (PairingSpec(left, right, sets=count, game=game),)


TWO_TEAM_FOUR_SETS = _repeat("A", "B", 4)
TWO_TEAM_BEST_OF_5 = (PairingSpec("A", "B", sets=5, best_of=True),)

# A vs C, A vs B, B vs C, two sets each
THREE_TEAM_SIX_SETS = _repeat("A", "C", 2) + _repeat("A", "B", 2) + _repeat("B", "C", 2)
THREE_TEAM_NINE_SETS = (
    PairingSpec("A", "C", sets=3, best_of=True),
    PairingSpec("A", "B", sets=3, best_of=True),
    PairingSpec("B", "C", sets=3, best_of=True),
)

# Game 2 references Game 1 courts: W1 = winner of court 1, L2 = loser of court 2
FOUR_TEAM_H2H = (
    PairingSpec("A", "B", sets=2, game=1),
    PairingSpec("C", "D", sets=2, game=1),
    PairingSpec("W1", "W2", sets=2, game=2),
    PairingSpec("L1", "L2", sets=2, game=2),
)
SIX_TEAM_H2H = (
    PairingSpec("A", "B", sets=2, game=1),
    PairingSpec("C", "D", sets=2, game=1),
    PairingSpec("E", "F", sets=2, game=1),
    PairingSpec("W1", "W2", sets=2, game=2),
    PairingSpec("L1", "W3", sets=2, game=2),
    PairingSpec("L2", "L3", sets=2, game=2),
)


# =============================================================================
# Movement Topologies
# =============================================================================
# Keyed by variant: "default", "movement_week", and for elite pairs
# "top"/"bottom"/"single" with an optional "+movement_week" suffix.
# Rules are indexed by rank - 1. Up-movers land on the lowest label of the
# tier above, down-movers land on A of the tier below.

TWO_TEAM_MOVES = {
    "default": (MoveRule(-1, "B", "A"), MoveRule(+1, "A", "B")),
}

THREE_TEAM_MOVES = {
    "default": (MoveRule(-1, "C", "A"), MoveRule(0, "B"), MoveRule(+1, "A", "C")),
}

ELITE_THREE_TEAM_MOVES = {
    "default": (MoveRule(0, "A"), MoveRule(0, "B"), MoveRule(0, "C")),
    "movement_week": (MoveRule(-1, "B", "A"), MoveRule(0, "B"), MoveRule(+1, "A", "C")),
}

# Pair-internal moves (top loser down to partner, bottom winner up to partner)
# never leave the ladder, so they carry no saturated label.
ELITE_PAIR_MOVES = {
    "top": (MoveRule(0, "A"), MoveRule(+1, "A")),
    "bottom": (MoveRule(-1, "B"), MoveRule(0, "B")),
    "top+movement_week": (MoveRule(-1, "B", "A"), MoveRule(+1, "A")),
    "bottom+movement_week": (MoveRule(-1, "B"), MoveRule(+1, "A", "B")),
    # an elite tier without a partner re-seeds on its own
    "single": (MoveRule(0, "A"), MoveRule(0, "B")),
    "single+movement_week": (MoveRule(-1, "B", "A"), MoveRule(+1, "A", "B")),
}

# Ranks follow Game 2: court 1 winner, court 1 loser, court 2 winner, court 2 loser
FOUR_TEAM_MOVES = {
    "default": (
        MoveRule(-1, "D", "A"),
        MoveRule(0, "C"),
        MoveRule(0, "B"),
        MoveRule(+1, "A", "D"),
    ),
}

SIX_TEAM_MOVES = {
    "default": (
        MoveRule(-1, "F", "A"),
        MoveRule(0, "C"),
        MoveRule(0, "B"),
        MoveRule(0, "E"),
        MoveRule(0, "D"),
        MoveRule(+1, "A", "F"),
    ),
}


# =============================================================================
# Registry
# =============================================================================

_FORMATS: Tuple[FormatSpec, ...] = (
    FormatSpec(
        id="2-teams-4-sets",
        display_name="2 Teams (4 Sets)",
        labels=("A", "B"),
        pairings=TWO_TEAM_FOUR_SETS,
        set_rule=CASUAL_21,
        base_points=(5, 3),
        tier_bonus=2,
        movement=TWO_TEAM_MOVES,
    ),
    FormatSpec(
        id="2-teams-best-of-5",
        display_name="2 Teams (Best of 5)",
        labels=("A", "B"),
        pairings=TWO_TEAM_BEST_OF_5,
        set_rule=RALLY_25,
        base_points=(2, 2),  # plus min(set wins, 3)
        tier_bonus=1,
        movement=TWO_TEAM_MOVES,
        points_mode="best_of_sets",
    ),
    FormatSpec(
        id="2-teams-elite",
        display_name="2 Teams Elite (Best of 5)",
        labels=("A", "B"),
        pairings=TWO_TEAM_BEST_OF_5,
        set_rule=RALLY_25,
        base_points=(0, 0),
        tier_bonus=0,
        movement=ELITE_PAIR_MOVES,
        elite=True,
        elite_pair=True,
    ),
    FormatSpec(
        id="3-teams-6-sets",
        display_name="3 Teams (6 Sets)",
        labels=("A", "B", "C"),
        pairings=THREE_TEAM_SIX_SETS,
        set_rule=CASUAL_21,
        base_points=(5, 4, 3),
        tier_bonus=2,
        movement=THREE_TEAM_MOVES,
    ),
    FormatSpec(
        id="3-teams-elite-6-sets",
        display_name="3 Teams Elite (6 Sets)",
        labels=("A", "B", "C"),
        pairings=THREE_TEAM_SIX_SETS,
        set_rule=ELITE_40,
        base_points=(0, 0, 0),
        tier_bonus=0,
        movement=ELITE_THREE_TEAM_MOVES,
        elite=True,
    ),
    FormatSpec(
        id="3-teams-elite-9-sets",
        display_name="3 Teams Elite (9 Sets)",
        labels=("A", "B", "C"),
        pairings=THREE_TEAM_NINE_SETS,
        set_rule=ELITE_40,
        base_points=(0, 0, 0),
        tier_bonus=0,
        movement=ELITE_THREE_TEAM_MOVES,
        elite=True,
        rank_by_match_wins=True,
        count_match_wins=True,
    ),
    FormatSpec(
        id="4-teams-head-to-head",
        display_name="4 Teams Head-to-Head",
        labels=("A", "B", "C", "D"),
        pairings=FOUR_TEAM_H2H,
        set_rule=CASUAL_25,
        base_points=(6, 5, 4, 3),
        tier_bonus=3,
        movement=FOUR_TEAM_MOVES,
        ranking_mode="game2_courts",
    ),
    FormatSpec(
        id="6-teams-head-to-head",
        display_name="6 Teams Head-to-Head",
        labels=ALL_LABELS,
        pairings=SIX_TEAM_H2H,
        set_rule=CASUAL_25,
        base_points=(8, 7, 6, 5, 4, 3),
        tier_bonus=5,
        movement=SIX_TEAM_MOVES,
        ranking_mode="game2_courts",
        differential_scope="game2",
        court_positional_fallback=True,
    ),
)

FORMATS: Dict[str, FormatSpec] = {spec.id: spec for spec in _FORMATS}

DEFAULT_FORMAT_ID = "3-teams-6-sets"


def resolve(format_id: Optional[str]) -> FormatSpec:
    """Return the FormatSpec for *format_id* or raise UnknownFormatError."""
    spec = FORMATS.get((format_id or "").strip())
    if spec is None:
        raise UnknownFormatError(str(format_id))
    return spec


def list_formats() -> List[FormatSpec]:
    """All registered formats in display order."""
    return list(_FORMATS)


def is_registered(format_id: Optional[str]) -> bool:
    return (format_id or "").strip() in FORMATS
