"""
Format Registry API Routes
Read-only view of the supported tier formats.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ladder.services.errors import UnknownFormatError
from ladder.services.format_registry import FormatSpec, list_formats, resolve

router = APIRouter()


class PairingResponse(BaseModel):
    game: int
    left: str
    right: str
    sets: int
    best_of: bool


class MoveRuleResponse(BaseModel):
    rank: int
    tier_delta: int
    label: str
    saturated_label: Optional[str] = None


class FormatResponse(BaseModel):
    id: str
    display_name: str
    labels: List[str]
    set_count: int
    pairings: List[PairingResponse]
    set_rule: str
    score_cap: Optional[int] = None
    base_points: List[int]
    tier_bonus: int
    elite: bool
    movement: Dict[str, List[MoveRuleResponse]]


def _to_response(spec: FormatSpec) -> FormatResponse:
    return FormatResponse(
        id=spec.id,
        display_name=spec.display_name,
        labels=list(spec.labels),
        set_count=spec.set_count,
        pairings=[
            PairingResponse(game=p.game, left=p.left, right=p.right, sets=p.sets, best_of=p.best_of)
            for p in spec.pairings
        ],
        set_rule=spec.set_rule.kind,
        score_cap=spec.set_rule.cap,
        base_points=list(spec.base_points),
        tier_bonus=spec.tier_bonus,
        elite=spec.elite,
        movement={
            variant: [
                MoveRuleResponse(
                    rank=i + 1, tier_delta=r.tier_delta, label=r.label, saturated_label=r.saturated_label
                )
                for i, r in enumerate(rules)
            ]
            for variant, rules in spec.movement.items()
        },
    )


@router.get("/formats", response_model=List[FormatResponse])
def get_formats():
    """All supported formats in display order."""
    return [_to_response(spec) for spec in list_formats()]


@router.get("/formats/{format_id}", response_model=FormatResponse)
def get_format(format_id: str):
    try:
        spec = resolve(format_id)
    except UnknownFormatError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _to_response(spec)
