"""Team name normalization for matching schedule names against the roster."""
import re
import unicodedata
from typing import Dict, Iterable, Optional, Tuple

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_name(name: Optional[str]) -> str:
    """Lowercase, strip accents, collapse everything but letters/digits to one space.

    "Café  Spikers!" -> "cafe spikers"
    """
    decomposed = unicodedata.normalize("NFKD", str(name or "").lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub(" ", stripped).strip()


def build_name_index(teams: Iterable[Tuple[int, str]]) -> Dict[str, int]:
    """{normalized name: team id}. The first team wins on a collision."""
    index: Dict[str, int] = {}
    for team_id, name in teams:
        index.setdefault(normalize_name(name), team_id)
    return index
