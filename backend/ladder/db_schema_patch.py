from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

# Columns added after the first release; older databases get them at startup.
# (name, sqlite_type, postgres_type, default)
REQUIRED_STANDING_COLUMNS: List[Tuple[str, str, str, str]] = [
    ("manual_wins_adj", "INTEGER", "INTEGER", "0"),
    ("manual_losses_adj", "INTEGER", "INTEGER", "0"),
    ("manual_points_adj", "INTEGER", "INTEGER", "0"),
    ("manual_diff_adj", "INTEGER", "INTEGER", "0"),
    ("current_position", "INTEGER", "INTEGER", "NULL"),
]

REQUIRED_TIER_SLOT_COLUMNS: List[Tuple[str, str, str, str]] = [
    ("no_games", "INTEGER", "BOOLEAN", "FALSE"),
    ("movement_week", "INTEGER", "BOOLEAN", "FALSE"),
    ("team_d_name", "TEXT", "TEXT", "NULL"),
    ("team_e_name", "TEXT", "TEXT", "NULL"),
    ("team_f_name", "TEXT", "TEXT", "NULL"),
    ("team_d_ranking", "INTEGER", "INTEGER", "NULL"),
    ("team_e_ranking", "INTEGER", "INTEGER", "NULL"),
    ("team_f_ranking", "INTEGER", "INTEGER", "NULL"),
]


def _is_sqlite(engine: Engine) -> bool:
    return engine.dialect.name.lower() == "sqlite"


def _get_existing_columns_sqlite(engine: Engine, table_name: str) -> Dict[str, str]:
    cols: Dict[str, str] = {}
    with engine.connect() as conn:
        res = conn.execute(text(f"PRAGMA table_info({table_name});")).fetchall()
        # PRAGMA table_info returns rows: (cid, name, type, notnull, dflt_value, pk)
        for row in res:
            cols[str(row[1])] = str(row[2])
    return cols


def _get_existing_columns_postgres(engine: Engine, table_name: str) -> Dict[str, str]:
    cols: Dict[str, str] = {}
    sql = """
    SELECT column_name, data_type
    FROM information_schema.columns
    WHERE table_schema = 'public' AND table_name = :table_name;
    """
    with engine.connect() as conn:
        res = conn.execute(text(sql), {"table_name": table_name}).fetchall()
        for row in res:
            cols[str(row[0])] = str(row[1])
    return cols


def _table_exists(engine: Engine, table: str) -> bool:
    with engine.connect() as conn:
        if _is_sqlite(engine):
            result = conn.execute(
                text("SELECT name FROM sqlite_master WHERE type='table' AND name=:table_name"),
                {"table_name": table},
            ).fetchone()
            return bool(result)
        result = conn.execute(
            text("""
            SELECT EXISTS (
                SELECT FROM information_schema.tables
                WHERE table_schema = 'public' AND table_name = :table_name
            )
        """),
            {"table_name": table},
        ).fetchone()
        return bool(result and result[0])


def _ensure_columns(engine: Engine, table: str, required: List[Tuple[str, str, str, str]]) -> List[str]:
    """Add any missing *required* columns to *table*. Returns the names added."""
    if not _table_exists(engine, table):
        # create_all will build it with every column
        return []

    sqlite = _is_sqlite(engine)
    existing = _get_existing_columns_sqlite(engine, table) if sqlite else _get_existing_columns_postgres(engine, table)
    added: List[str] = []
    with engine.begin() as conn:
        for name, sqlite_type, pg_type, default in required:
            if name in existing:
                continue
            if sqlite:
                sqlite_default = "0" if default == "FALSE" else default
                conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {name} {sqlite_type} DEFAULT {sqlite_default};"))
            else:
                conn.execute(text(f"ALTER TABLE {table} ADD COLUMN IF NOT EXISTS {name} {pg_type} DEFAULT {default};"))
            added.append(name)
    return added


def ensure_standing_columns(engine: Engine) -> None:
    """
    Idempotently adds the manual-adjustment columns to the 'standing' table.
    Safe to run at every startup.
    """
    from ladder.models.standing import Standing

    table = Standing.__table__.name
    try:
        added = _ensure_columns(engine, table, REQUIRED_STANDING_COLUMNS)
    except SQLAlchemyError as e:
        logger.warning(f"Failed to ensure standing columns (this is OK if table doesn't exist yet): {e}")
        return
    if added:
        logger.info("Added columns to %s: %s", table, ", ".join(added))


def ensure_tier_slot_columns(engine: Engine) -> None:
    """
    Idempotently adds the no-games/movement-week flags and D-F position
    columns to the 'tierslot' table.
    """
    from ladder.models.tier_slot import TierSlot

    table = TierSlot.__table__.name
    try:
        added = _ensure_columns(engine, table, REQUIRED_TIER_SLOT_COLUMNS)
    except SQLAlchemyError as e:
        logger.warning(f"Failed to ensure tier slot columns (this is OK if table doesn't exist yet): {e}")
        return
    if added:
        logger.info("Added columns to %s: %s", table, ", ".join(added))
