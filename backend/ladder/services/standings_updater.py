"""
Standings Updater: apply one tier submission to season standings.

The week's contribution is modelled as an explicit Previous/New snapshot
diff: the WeeklyResult rows stored for (league, week, tier) before the
submission are the previous snapshot, the freshly computed rows are the new
one, and only `new - previous` is added to each Standing.

Guarantees:
    - Idempotent (resubmitting identical content applies a zero delta)
    - Standing rows are created lazily on a team's first contribution
    - Manual adjustments are never touched by recomputation
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlmodel import Session, select

from ladder.models.standing import Standing
from ladder.models.team import Team
from ladder.models.weekly_result import WeeklyResult
from ladder.utils.names import build_name_index, normalize_name

logger = logging.getLogger(__name__)


@dataclass
class Contribution:
    wins: int = 0
    losses: int = 0
    points: int = 0
    differential: int = 0

    def minus(self, other: "Contribution") -> "Contribution":
        return Contribution(
            wins=self.wins - other.wins,
            losses=self.losses - other.losses,
            points=self.points - other.points,
            differential=self.differential - other.differential,
        )

    def is_zero(self) -> bool:
        return not (self.wins or self.losses or self.points or self.differential)


@dataclass
class StandingsDelta:
    """Per-team delta of one submission, keyed by team name."""

    deltas: Dict[str, Contribution] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)


def contribution_of(result: WeeklyResult) -> Contribution:
    return Contribution(
        wins=result.wins or 0,
        losses=result.losses or 0,
        points=result.league_points or 0,
        differential=result.differential,
    )


def snapshot(session: Session, league_id: int, week_number: int, tier_number: int) -> Dict[str, Contribution]:
    """{team_name: contribution} stored for one (league, week, tier)."""
    rows = session.exec(
        select(WeeklyResult).where(
            WeeklyResult.league_id == league_id,
            WeeklyResult.week_number == week_number,
            WeeklyResult.tier_number == tier_number,
        )
    ).all()
    return {r.team_name: contribution_of(r) for r in rows}


def compute_delta(previous: Dict[str, Contribution], new: Dict[str, Contribution]) -> Dict[str, Contribution]:
    """new - previous for every team in either snapshot.

    A team only in *previous* (renamed out of the tier) gets its old
    contribution subtracted.
    """
    delta: Dict[str, Contribution] = {}
    for name in list(new) + [n for n in previous if n not in new]:
        delta[name] = new.get(name, Contribution()).minus(previous.get(name, Contribution()))
    return delta


def _active_team_index(session: Session, league_id: int) -> Dict[str, int]:
    teams = session.exec(select(Team).where(Team.league_id == league_id, Team.active == True)).all()  # noqa: E712
    return build_name_index((t.id, t.name) for t in sorted(teams, key=lambda t: t.id))


def get_or_create_standing(session: Session, league_id: int, team_id: int) -> Standing:
    standing = session.exec(
        select(Standing).where(Standing.league_id == league_id, Standing.team_id == team_id)
    ).first()
    if standing is None:
        standing = Standing(league_id=league_id, team_id=team_id)
        session.add(standing)
    return standing


def apply_delta(session: Session, league_id: int, delta: Dict[str, Contribution]) -> StandingsDelta:
    """Add each team's delta to its Standing. Does not commit.

    Names that match no active team are logged and skipped.
    """
    index = _active_team_index(session, league_id)
    applied = StandingsDelta()
    for name, d in delta.items():
        team_id = index.get(normalize_name(name))
        if team_id is None:
            logger.warning("League %d: no active team named %r; standings not updated for it", league_id, name)
            applied.skipped.append(name)
            continue
        standing = get_or_create_standing(session, league_id, team_id)
        standing.wins = (standing.wins or 0) + d.wins
        standing.losses = (standing.losses or 0) + d.losses
        standing.points = (standing.points or 0) + d.points
        standing.point_differential = (standing.point_differential or 0) + d.differential
        standing.updated_at = datetime.utcnow()
        session.add(standing)
        applied.deltas[name] = d
    session.flush()
    return applied


def recalculate_positions(session: Session, league_id: int) -> List[Standing]:
    """Assign current_position across the league. Does not commit.

    Order: points, then differential, then wins (manual adjustments
    included), then team id.
    """
    standings = session.exec(select(Standing).where(Standing.league_id == league_id)).all()

    def sort_key(s: Standing):
        return (-s.total_points, -s.total_differential, -s.total_wins, s.team_id)

    ordered = sorted(standings, key=sort_key)
    for position, standing in enumerate(ordered, start=1):
        if standing.current_position != position:
            standing.current_position = position
            session.add(standing)
    return ordered


def apply_manual_adjustments(
    session: Session,
    standing: Standing,
    wins: Optional[int] = None,
    losses: Optional[int] = None,
    points: Optional[int] = None,
    differential: Optional[int] = None,
) -> Standing:
    """Set manual adjustment values, then recompute positions. Commits."""
    if wins is not None:
        standing.manual_wins_adj = wins
    if losses is not None:
        standing.manual_losses_adj = losses
    if points is not None:
        standing.manual_points_adj = points
    if differential is not None:
        standing.manual_diff_adj = differential
    standing.updated_at = datetime.utcnow()
    session.add(standing)
    session.flush()
    recalculate_positions(session, standing.league_id)
    session.commit()
    session.refresh(standing)
    return standing


def ordered_standings(session: Session, league_id: int) -> Iterable[Standing]:
    standings = session.exec(select(Standing).where(Standing.league_id == league_id)).all()
    return sorted(
        standings,
        key=lambda s: (s.current_position is None, s.current_position or 0, s.team_id),
    )
