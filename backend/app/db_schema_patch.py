from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Columns we must ensure exist in the "user" table.
# (name, sqlite_type, postgres_type)
REQUIRED_USER_COLUMNS: List[Tuple[str, str, str]] = [
    ("twilio_account_sid", "TEXT", "TEXT"),
    ("twilio_auth_token", "TEXT", "TEXT"),
    ("twilio_phone_number", "TEXT", "TEXT"),
    ("master_code", "TEXT", "TEXT"),
]

# Columns we must ensure exist in the "sms_message" table.
# Older databases predate manager attribution and the Twilio correlation id.
REQUIRED_SMS_MESSAGE_COLUMNS: List[Tuple[str, str, str]] = [
    ("manager_email", "VARCHAR DEFAULT ''", "VARCHAR DEFAULT ''"),
    ("twilio_sid", "VARCHAR DEFAULT ''", "VARCHAR DEFAULT ''"),
]

# String columns on sms_message that must never hold NULL.
SMS_MESSAGE_TEXT_COLUMNS: List[str] = [
    "body",
    "from_number",
    "to_number",
    "manager_email",
    "twilio_sid",
]


def _is_sqlite(engine: Engine) -> bool:
    return engine.dialect.name.lower() == "sqlite"


def _get_existing_columns_sqlite(engine: Engine, table_name: str) -> Dict[str, str]:
    cols: Dict[str, str] = {}
    with engine.connect() as conn:
        res = conn.execute(text(f'PRAGMA table_info("{table_name}");')).fetchall()
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


def _ensure_columns(engine: Engine, table: str, required: List[Tuple[str, str, str]]) -> List[str]:
    """Add any missing columns to `table`. Returns the names that were added."""
    if not _table_exists(engine, table):
        # Table doesn't exist yet, skip (create_all should create it)
        return []

    added: List[str] = []
    if _is_sqlite(engine):
        existing = _get_existing_columns_sqlite(engine, table)
        with engine.begin() as conn:
            for name, sqlite_type, _pg_type in required:
                if name in existing:
                    continue
                # SQLite supports ADD COLUMN without IF NOT EXISTS
                conn.execute(text(f'ALTER TABLE "{table}" ADD COLUMN {name} {sqlite_type};'))
                added.append(name)
    else:
        existing = _get_existing_columns_postgres(engine, table)
        with engine.begin() as conn:
            for name, _sqlite_type, pg_type in required:
                if name in existing:
                    continue
                conn.execute(text(f'ALTER TABLE "{table}" ADD COLUMN IF NOT EXISTS {name} {pg_type};'))
                added.append(name)
    return added


def ensure_user_columns(engine: Engine) -> None:
    """
    Idempotently adds the Twilio credential and master code columns to 'user'.
    Safe to run at every startup.
    """
    try:
        from app.models.user import User

        added = _ensure_columns(engine, User.__table__.name, REQUIRED_USER_COLUMNS)
        if added:
            logger.info(f"Added user columns: {', '.join(added)}")
    except Exception as e:
        # Log error but don't crash the server
        logger.warning(f"Failed to ensure user columns (this is OK if table doesn't exist yet): {e}")


def ensure_sms_message_columns(engine: Engine) -> None:
    """
    Idempotently adds attribution columns to 'sms_message' if missing.
    Safe to run at every startup.
    """
    try:
        from app.models.sms_message import SmsMessage

        added = _ensure_columns(engine, SmsMessage.__table__.name, REQUIRED_SMS_MESSAGE_COLUMNS)
        if added:
            logger.info(f"Added sms_message columns: {', '.join(added)}")
    except Exception as e:
        logger.warning(f"Failed to ensure sms_message columns (this is OK if table doesn't exist yet): {e}")


def backfill_sms_message_blanks(engine: Engine) -> int:
    """
    Rewrite NULL string fields on historical sms_message rows to "".

    Rows written before the schema was made total may carry NULL for
    manager_email, twilio_sid and friends. Query paths assume "" only.

    Returns the number of cells updated.
    """
    from app.models.sms_message import SmsMessage

    table = SmsMessage.__table__.name
    if not _table_exists(engine, table):
        return 0

    updated = 0
    with engine.begin() as conn:
        for column in SMS_MESSAGE_TEXT_COLUMNS:
            result = conn.execute(
                text(f'UPDATE "{table}" SET {column} = \'\' WHERE {column} IS NULL')
            )
            updated += result.rowcount or 0
    if updated:
        logger.info(f"Backfilled {updated} NULL sms_message fields to ''")
    return updated
