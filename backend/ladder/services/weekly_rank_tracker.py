"""
Weekly Rank Tracker: numeric ladder rank per team per week (elite leagues).

- Seed rank (week 1) comes from the published week-1 schedule only:
  2-team elite rows are emitted in pairs (A, B, A, B); any other tier that
  appears while a pair is waiting for its second row is held and emitted
  after the pair.
- The rank after a played week comes from the placements of the next week
  that has games (tier ascending, then A..F): movement already encodes the
  result.
- Teams missing from the next week's placements (tier not submitted yet)
  fall back to that week's WeeklyResult tier positions; elite pairs are
  ranked top winner, bottom winner, top loser, bottom loser.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from sqlmodel import Session, select

from ladder.models.team import Team
from ladder.models.tier_slot import POSITION_LABELS, TierSlot
from ladder.models.weekly_result import WeeklyResult
from ladder.services.format_registry import FORMATS
from ladder.services.movement_planner import elite_pair_roles
from ladder.utils.names import build_name_index, normalize_name


@dataclass
class RankHistory:
    seed_ranks: Dict[int, int] = field(default_factory=dict)  # team_id -> rank
    weekly_ranks: Dict[int, Dict[int, int]] = field(default_factory=dict)  # team_id -> {week: rank}
    max_week: int = 0
    is_elite: bool = False


def _is_elite_pair(format_id: Optional[str]) -> bool:
    spec = FORMATS.get(format_id or "")
    return spec is not None and spec.elite_pair


def _row_names(row: TierSlot) -> List[str]:
    spec = FORMATS.get(row.format or "")
    labels = spec.labels if spec is not None else POSITION_LABELS
    return [n for n in (row.team_name(label) for label in labels) if n and n.strip()]


def rank_names(names: Iterable[str]) -> Dict[str, int]:
    """Sequential 1-based ranks in emission order; blanks and repeats are dropped."""
    ranks: Dict[str, int] = {}
    for name in names:
        key = (name or "").strip()
        if key and key not in ranks:
            ranks[key] = len(ranks) + 1
    return ranks


# ============================================================================
# Pure orderings
# ============================================================================


def seed_order(week1_rows: Sequence[TierSlot]) -> List[str]:
    """Week-1 seed order honouring the 2-team elite A/B pairing."""
    output: List[str] = []
    pending: List[TierSlot] = []
    held: List[TierSlot] = []

    for row in sorted(week1_rows, key=lambda r: r.tier_number):
        if _is_elite_pair(row.format):
            pending.append(row)
            if len(pending) == 2:
                for r in pending:
                    output.extend(_row_names(r))
                pending = []
                for r in held:
                    output.extend(_row_names(r))
                held = []
        elif pending:
            held.append(row)
        else:
            output.extend(_row_names(row))

    for r in pending + held:
        output.extend(_row_names(r))
    return list(rank_names(output))


def seed_ranks(week1_rows: Sequence[TierSlot]) -> Dict[str, int]:
    return rank_names(seed_order(week1_rows))


def placement_order(rows: Sequence[TierSlot]) -> List[str]:
    """Names in ladder order: ascending tier, then A..F."""
    names: List[str] = []
    for row in sorted(rows, key=lambda r: r.tier_number):
        names.extend(n for n in (row.team_name(label) for label in POSITION_LABELS) if n and n.strip())
    return list(rank_names(names))


def results_order(tier_rows: Sequence[TierSlot], results: Sequence[WeeklyResult]) -> List[str]:
    """Names in ladder order from one week's results."""
    by_tier: Dict[int, List[WeeklyResult]] = {}
    for r in results:
        by_tier.setdefault(r.tier_number, []).append(r)
    for rows in by_tier.values():
        rows.sort(key=lambda r: (r.tier_position or 0))

    roles = elite_pair_roles([(r.tier_number, r.format) for r in tier_rows])
    names: List[str] = []
    for row in sorted(tier_rows, key=lambda r: r.tier_number):
        role = roles.get(row.tier_number)
        if role is not None and role[0] == "bottom":
            continue
        if role is not None:
            top = by_tier.get(row.tier_number, [])
            bottom = by_tier.get(role[1], [])
            top_winner, top_loser = _winner_loser(top)
            bottom_winner, bottom_loser = _winner_loser(bottom)
            names.extend(n for n in (top_winner, bottom_winner, top_loser, bottom_loser) if n)
        else:
            names.extend(r.team_name for r in by_tier.get(row.tier_number, []))
    return list(rank_names(names))


def _winner_loser(rows: Sequence[WeeklyResult]):
    winner = next((r.team_name for r in rows if r.tier_position == 1), rows[0].team_name if rows else None)
    loser = next((r.team_name for r in rows if (r.tier_position or 0) > 1), None)
    return winner, loser


# ============================================================================
# History
# ============================================================================


def build_rank_history(
    schedule_rows: Sequence[TierSlot],
    results: Sequence[WeeklyResult],
    teams: Sequence[Team],
) -> RankHistory:
    index = build_name_index((t.id, t.name) for t in sorted(teams, key=lambda t: t.id))

    def to_ids(name_ranks: Dict[str, int]) -> Dict[int, int]:
        out: Dict[int, int] = {}
        for name, rank in name_ranks.items():
            team_id = index.get(normalize_name(name))
            if team_id is not None:
                out[team_id] = rank
        return out

    by_week: Dict[int, List[TierSlot]] = {}
    for row in schedule_rows:
        by_week.setdefault(row.week_number, []).append(row)
    results_by_week: Dict[int, List[WeeklyResult]] = {}
    for r in results:
        results_by_week.setdefault(r.week_number, []).append(r)

    weeks = sorted(by_week)
    no_games_weeks = {w for w in weeks if all(r.no_games for r in by_week[w])}
    history = RankHistory(
        max_week=max(weeks) if weeks else 0,
        is_elite=any(FORMATS.get(r.format or "") is not None and FORMATS[r.format].elite for r in schedule_rows),
    )
    history.seed_ranks = to_ids(seed_ranks(by_week.get(1, [])))

    def stamp(week: int, id_ranks: Dict[int, int], fill_only: bool = False) -> None:
        for team_id, rank in id_ranks.items():
            ranks = history.weekly_ranks.setdefault(team_id, {})
            if fill_only and week in ranks:
                continue
            ranks[week] = rank

    for w in weeks:
        if w < 2 or w in no_games_weeks:
            continue
        prev = w - 1
        while prev >= 1 and prev in no_games_weeks:
            prev -= 1
        if prev < 1:
            continue
        id_ranks = to_ids(rank_names(placement_order(by_week[w])))
        if id_ranks:
            stamp(prev, id_ranks)

    for w in sorted(results_by_week):
        if w in no_games_weeks:
            continue
        # placements win; results only fill teams still unranked for the week
        id_ranks = to_ids(rank_names(results_order(by_week.get(w, []), results_by_week[w])))
        stamp(w, id_ranks, fill_only=True)
    return history


def league_rank_history(session: Session, league_id: int) -> RankHistory:
    schedule_rows = session.exec(
        select(TierSlot)
        .where(TierSlot.league_id == league_id)
        .order_by(TierSlot.week_number, TierSlot.tier_number)
    ).all()
    results = session.exec(select(WeeklyResult).where(WeeklyResult.league_id == league_id)).all()
    teams = session.exec(select(Team).where(Team.league_id == league_id, Team.active == True)).all()  # noqa: E712
    return build_rank_history(schedule_rows, results, teams)
