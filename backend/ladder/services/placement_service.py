"""
Next-week placement: write planned MovementAssignments into future tier slots.

Guarantees:
    - Idempotent (every write is keyed by week, tier and position)
    - A moved team appears at most once in the destination week
    - Missing destination rows are created from the current week's template
    - A destination week where every tier has no games is skipped
"""
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set

from sqlmodel import Session, select

from ladder.models.tier_slot import POSITION_LABELS, TierSlot
from ladder.services.format_registry import DEFAULT_FORMAT_ID
from ladder.services.movement_planner import MovementAssignment

logger = logging.getLogger(__name__)

MOVEMENT_DEBUG = os.getenv("MOVEMENT_DEBUG", "false").lower() in ("true", "1", "yes")

TEMPLATE_PLACEHOLDER = "TBD"


# ============================================================================
# Week / tier lookups
# ============================================================================


def week_rows(session: Session, league_id: int, week_number: int) -> List[TierSlot]:
    """All tier slots of one league week, ordered by tier."""
    return list(
        session.exec(
            select(TierSlot)
            .where(TierSlot.league_id == league_id, TierSlot.week_number == week_number)
            .order_by(TierSlot.tier_number)
        ).all()
    )


def get_tier_slot(session: Session, league_id: int, week_number: int, tier_number: int) -> Optional[TierSlot]:
    return session.exec(
        select(TierSlot).where(
            TierSlot.league_id == league_id,
            TierSlot.week_number == week_number,
            TierSlot.tier_number == tier_number,
        )
    ).first()


def is_no_games_week(rows: Sequence[TierSlot]) -> bool:
    return bool(rows) and all(r.no_games for r in rows)


def destination_week(session: Session, league_id: int, current_week: int) -> int:
    """Week that receives movement from *current_week*.

    The following week, unless every tier of it has no games; then the week after.
    """
    next_week = current_week + 1
    if is_no_games_week(week_rows(session, league_id, next_week)):
        return next_week + 1
    return next_week


@dataclass
class LadderPosition:
    is_top_tier: bool
    is_bottom_tier: bool
    tier_offset: int


def tier_boundaries(rows: Sequence[TierSlot], tier_number: int) -> LadderPosition:
    """Ladder position of *tier_number* within one week's rows.

    A neighbouring tier that has no games (or does not exist) is a boundary.
    tier_offset counts the playable tiers below this one (0 = bottom).
    """
    playable = {r.tier_number for r in rows if not r.no_games}
    return LadderPosition(
        is_top_tier=(tier_number - 1) not in playable,
        is_bottom_tier=(tier_number + 1) not in playable,
        tier_offset=sum(1 for t in playable if t > tier_number),
    )


def _template_slot(template: Optional[TierSlot], league_id: int, week_number: int, tier_number: int) -> TierSlot:
    return TierSlot(
        league_id=league_id,
        week_number=week_number,
        tier_number=tier_number,
        format=(template.format if template else None) or DEFAULT_FORMAT_ID,
        location=(template.location if template else None) or TEMPLATE_PLACEHOLDER,
        time_slot=(template.time_slot if template else None) or TEMPLATE_PLACEHOLDER,
        court=(template.court if template else None) or TEMPLATE_PLACEHOLDER,
        movement_week=template.movement_week if template else False,
    )


def ensure_week_rows(
    session: Session,
    league_id: int,
    template_week: int,
    target_week: int,
    tier_numbers: Iterable[int],
) -> Dict[int, TierSlot]:
    """{tier_number: row} for *target_week*, creating rows from *template_week* as needed."""
    rows = {r.tier_number: r for r in week_rows(session, league_id, target_week)}
    templates = {r.tier_number: r for r in week_rows(session, league_id, template_week)}
    for tier_number in sorted(set(tier_numbers)):
        if tier_number in rows or tier_number < 1:
            continue
        row = _template_slot(templates.get(tier_number), league_id, target_week, tier_number)
        session.add(row)
        rows[tier_number] = row
        logger.info("Created week %d tier %d from week %d template", target_week, tier_number, template_week)
    session.flush()
    return rows


def _clear_names(rows: Iterable[TierSlot], names: Set[str]) -> int:
    cleared = 0
    for row in rows:
        for label in POSITION_LABELS:
            if row.team_name(label) in names:
                row.set_team_name(label, None)
                row.set_team_ranking(label, None)
                row.updated_at = datetime.utcnow()
                cleared += 1
    return cleared


# ============================================================================
# Writes
# ============================================================================


def apply_assignments(
    session: Session,
    league_id: int,
    current_week: int,
    assignments: Sequence[MovementAssignment],
) -> List[MovementAssignment]:
    """Place *assignments* into their target week. Does not commit.

    Returns the assignments actually written; an assignment whose target tier
    cannot exist is logged and skipped.
    """
    if not assignments:
        return []
    by_week: Dict[int, List[MovementAssignment]] = {}
    for a in assignments:
        by_week.setdefault(a.target_week, []).append(a)

    written: List[MovementAssignment] = []
    for target_week, week_assignments in sorted(by_week.items()):
        rows = ensure_week_rows(
            session, league_id, current_week, target_week, (a.target_tier for a in week_assignments)
        )
        _clear_names(rows.values(), {a.team_name for a in week_assignments})

        for a in sorted(week_assignments, key=lambda x: (x.target_tier, POSITION_LABELS.index(x.target_position))):
            row = rows.get(a.target_tier)
            if row is None:
                logger.warning(
                    "No tier %d in week %d for %s; skipping placement", a.target_tier, target_week, a.team_name
                )
                continue
            occupant = row.team_name(a.target_position)
            if occupant and occupant != a.team_name:
                logger.warning(
                    "Week %d tier %d position %s: replacing %s with %s",
                    target_week, a.target_tier, a.target_position, occupant, a.team_name,
                )
            row.set_team_name(a.target_position, a.team_name)
            row.set_team_ranking(a.target_position, None)
            row.updated_at = datetime.utcnow()
            session.add(row)
            written.append(a)

        if MOVEMENT_DEBUG:
            log_week_summary(session, league_id, target_week)
    return written


def carry_forward_tier(session: Session, league_id: int, current_week: int, tier_number: int) -> Optional[TierSlot]:
    """Copy a no-games tier's placements unchanged into its destination week. Commits."""
    current = get_tier_slot(session, league_id, current_week, tier_number)
    if current is None:
        return None
    target_week = destination_week(session, league_id, current_week)
    rows = ensure_week_rows(session, league_id, current_week, target_week, [tier_number])
    names = set(current.placed_names())
    _clear_names(rows.values(), names)

    target = rows[tier_number]
    for label in POSITION_LABELS:
        name = current.team_name(label)
        if name:
            target.set_team_name(label, name)
            target.set_team_ranking(label, getattr(current, f"team_{label.lower()}_ranking"))
    target.updated_at = datetime.utcnow()
    session.add(target)
    session.commit()
    session.refresh(target)
    logger.info("Carried week %d tier %d forward to week %d", current_week, tier_number, target_week)
    return target


def move_week_placements(session: Session, league_id: int, from_week: int, to_week: int) -> int:
    """Move every placement of *from_week* to the same tier/position in *to_week*. Commits.

    Returns the number of teams moved.
    """
    if from_week == to_week:
        return 0
    source_rows = week_rows(session, league_id, from_week)
    if not source_rows:
        return 0
    targets = ensure_week_rows(session, league_id, from_week, to_week, (r.tier_number for r in source_rows))
    names = {n for r in source_rows for n in r.placed_names()}
    _clear_names(targets.values(), names)

    moved = 0
    for src in source_rows:
        target = targets[src.tier_number]
        for label in POSITION_LABELS:
            name = src.team_name(label)
            if not name:
                continue
            target.set_team_name(label, name)
            target.set_team_ranking(label, getattr(src, f"team_{label.lower()}_ranking"))
            src.set_team_name(label, None)
            src.set_team_ranking(label, None)
            moved += 1
        session.add(src)
        session.add(target)
    session.commit()
    return moved


def log_week_summary(session: Session, league_id: int, week_number: int) -> None:
    session.flush()
    summary = " | ".join(
        f"T{r.tier_number}: " + " ".join(f"{label}={r.team_name(label) or '-'}" for label in POSITION_LABELS[:3])
        for r in week_rows(session, league_id, week_number)
    )
    logger.info("[Movement] Week %d placements: %s", week_number, summary)
