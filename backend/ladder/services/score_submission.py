"""
Score submission pipeline for one tier of one week.

    card → aggregate → rank → points + movement plan → weekly results
         → standings delta → positions → next-week placement

Everything up to the movement plan is pure validation: a ValidationError
there leaves the store untouched. Submissions for the same
(league, week, tier) are serialized so each one diffs against the snapshot
left by the one before it.

Guarantees:
    - Idempotent (resubmitting the same card changes nothing further)
    - Weekly results are upserted per (league, week, tier, team)
    - Store failures surface as PersistenceError after a rollback
"""
import logging
import threading
import weakref
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ladder.models.weekly_result import WeeklyResult
from ladder.services.errors import NotFoundError, PersistenceError, ValidationError
from ladder.services.format_registry import FormatSpec, resolve
from ladder.services.match_aggregator import TierAggregate, aggregate
from ladder.services.movement_planner import MovementAssignment, elite_pair_roles, plan_movement
from ladder.services.placement_service import (
    apply_assignments,
    destination_week,
    get_tier_slot,
    tier_boundaries,
    week_rows,
)
from ladder.services.ranking import resolve_order
from ladder.services.score_parser import parse_card
from ladder.services.standings_updater import (
    Contribution,
    StandingsDelta,
    apply_delta,
    compute_delta,
    recalculate_positions,
    snapshot,
)
from ladder.services.weekly_points import tier_points

logger = logging.getLogger(__name__)

TierKey = Tuple[int, int, int]

# entries drop out once no submission holds the lock
_key_locks: "weakref.WeakValueDictionary[TierKey, threading.Lock]" = weakref.WeakValueDictionary()
_key_locks_guard = threading.Lock()


def tier_lock(key: TierKey) -> threading.Lock:
    """One lock per (league, week, tier)."""
    with _key_locks_guard:
        lock = _key_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _key_locks[key] = lock
        return lock


@dataclass
class TeamLine:
    position: str
    team_name: Optional[str]
    rank: int
    wins: int
    losses: int
    sets_won: int
    sets_lost: int
    points_for: int
    points_against: int
    league_points: int

    @property
    def differential(self) -> int:
        return self.points_for - self.points_against


@dataclass
class TierEvaluation:
    """Pure outcome of a card: everything decided before any write."""

    spec: FormatSpec
    aggregate: TierAggregate
    order: List[str]
    lines: List[TeamLine]
    tier_offset: int


@dataclass
class SubmissionResult:
    league_id: int
    week_number: int
    tier_number: int
    format_id: str
    order: List[str]
    lines: List[TeamLine]
    movement: List[MovementAssignment] = field(default_factory=list)
    standings: Optional[StandingsDelta] = None
    movement_week: bool = False


# ============================================================================
# Pure evaluation
# ============================================================================


def evaluate_card(
    spec: FormatSpec,
    pairings: Sequence[Any],
    team_names: Dict[str, Optional[str]],
    tier_offset: int,
) -> TierEvaluation:
    """Validate and score a card without touching the store."""
    agg = aggregate(spec, parse_card(pairings))
    order = resolve_order(spec, agg)
    points = tier_points(spec, order, tier_offset, agg)

    lines: List[TeamLine] = []
    for rank, label in enumerate(order, start=1):
        stat = agg.stats[label]
        if spec.count_match_wins:
            wins, losses = stat.match_wins, stat.match_losses
        else:
            wins, losses = stat.set_wins, stat.set_losses
        lines.append(
            TeamLine(
                position=label,
                team_name=(team_names.get(label) or "").strip() or None,
                rank=rank,
                wins=wins,
                losses=losses,
                sets_won=stat.set_wins,
                sets_lost=stat.set_losses,
                points_for=stat.points_for,
                points_against=stat.points_against,
                league_points=points[label],
            )
        )
    return TierEvaluation(spec=spec, aggregate=agg, order=order, lines=lines, tier_offset=tier_offset)


def _match_details(
    evaluation: TierEvaluation,
    pairings: Sequence[Any],
    spares: Optional[Dict[str, Any]],
    movement: Sequence[MovementAssignment],
) -> Dict[str, Any]:
    sets = []
    for result, raw in zip(evaluation.aggregate.pairings, pairings):
        sets.append(
            {
                "game": result.game,
                "court": result.court,
                "teams": [result.left, result.right],
                "scores": raw,
                "winner": result.winner,
            }
        )
    details: Dict[str, Any] = {
        "format": evaluation.spec.id,
        "spares": spares or {},
        "sets": sets,
        "order": evaluation.order,
        "movement": [
            {"team_name": m.team_name, "target_tier": m.target_tier, "target_position": m.target_position}
            for m in movement
        ],
    }
    if evaluation.spec.is_head_to_head:
        details["summary"] = [asdict(line) for line in evaluation.lines]
    return details


# ============================================================================
# Writes
# ============================================================================


def _upsert_results(
    session: Session,
    league_id: int,
    week_number: int,
    tier_number: int,
    lines: Sequence[TeamLine],
    details: Dict[str, Any],
) -> Dict[str, Contribution]:
    """Upsert one WeeklyResult per named team; returns the new snapshot."""
    existing = {
        r.team_name: r
        for r in session.exec(
            select(WeeklyResult).where(
                WeeklyResult.league_id == league_id,
                WeeklyResult.week_number == week_number,
                WeeklyResult.tier_number == tier_number,
            )
        ).all()
    }
    new: Dict[str, Contribution] = {}
    for line in lines:
        if not line.team_name:
            continue
        row = existing.pop(line.team_name, None)
        if row is None:
            row = WeeklyResult(
                league_id=league_id,
                week_number=week_number,
                tier_number=tier_number,
                team_name=line.team_name,
                tier_position=line.rank,
            )
        row.position = line.position
        row.tier_position = line.rank
        row.wins = line.wins
        row.losses = line.losses
        row.sets_won = line.sets_won
        row.sets_lost = line.sets_lost
        row.points_for = line.points_for
        row.points_against = line.points_against
        row.league_points = line.league_points
        row.match_details = details
        row.updated_at = datetime.utcnow()
        session.add(row)
        new[line.team_name] = Contribution(
            wins=line.wins, losses=line.losses, points=line.league_points, differential=line.differential
        )
    # Teams no longer in this tier lose their stale row
    for stale in existing.values():
        session.delete(stale)
    session.flush()
    return new


def submit_tier_scores(
    session: Session,
    league_id: int,
    week_number: int,
    tier_number: int,
    pairings: Sequence[Any],
    spares: Optional[Dict[str, Any]] = None,
    movement_week: Optional[bool] = None,
) -> SubmissionResult:
    """Score one tier and apply its weekly results, standings and movement.

    movement_week defaults to the tier slot's own flag.
    Raises NotFoundError, UnknownFormatError, ValidationError or PersistenceError.
    """
    slot = get_tier_slot(session, league_id, week_number, tier_number)
    if slot is None:
        raise NotFoundError(f"League {league_id} week {week_number} has no tier {tier_number}")
    if slot.no_games:
        raise ValidationError(f"Week {week_number} tier {tier_number} is marked no games")
    spec = resolve(slot.format)

    rows = week_rows(session, league_id, week_number)
    position = tier_boundaries(rows, tier_number)
    team_names = slot.team_names(spec.labels)
    evaluation = evaluate_card(spec, pairings, team_names, position.tier_offset)

    is_movement_week = slot.movement_week if movement_week is None else movement_week
    role = elite_pair_roles([(r.tier_number, r.format) for r in rows if not r.no_games]).get(tier_number)
    movement = plan_movement(
        spec,
        evaluation.order,
        team_names,
        current_week=week_number,
        tier_number=tier_number,
        is_top_tier=position.is_top_tier,
        is_bottom_tier=position.is_bottom_tier,
        movement_week=is_movement_week,
        pair_role=role[0] if role else None,
        target_week=destination_week(session, league_id, week_number),
    )
    details = _match_details(evaluation, pairings, spares, movement)

    key = (league_id, week_number, tier_number)
    with tier_lock(key):
        try:
            previous = snapshot(session, league_id, week_number, tier_number)
            new = _upsert_results(session, league_id, week_number, tier_number, evaluation.lines, details)

            slot.is_completed = True
            slot.updated_at = datetime.utcnow()
            session.add(slot)

            standings = apply_delta(session, league_id, compute_delta(previous, new))
            recalculate_positions(session, league_id)
            written = apply_assignments(session, league_id, week_number, movement)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Submission for league %d week %d tier %d failed: %s", league_id, week_number, tier_number, e)
            raise PersistenceError(str(e)) from e

    logger.info(
        "League %d week %d tier %d (%s): order %s, %d teams placed in week %s",
        league_id, week_number, tier_number, spec.id, "".join(evaluation.order), len(written),
        movement[0].target_week if movement else "-",
    )
    return SubmissionResult(
        league_id=league_id,
        week_number=week_number,
        tier_number=tier_number,
        format_id=spec.id,
        order=evaluation.order,
        lines=evaluation.lines,
        movement=written,
        standings=standings,
        movement_week=bool(is_movement_week) and spec.elite,
    )


def tier_results(session: Session, league_id: int, week_number: int) -> List[WeeklyResult]:
    return list(
        session.exec(
            select(WeeklyResult)
            .where(WeeklyResult.league_id == league_id, WeeklyResult.week_number == week_number)
            .order_by(WeeklyResult.tier_number, WeeklyResult.tier_position)
        ).all()
    )
