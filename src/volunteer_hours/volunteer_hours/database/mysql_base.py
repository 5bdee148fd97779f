from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import time, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import mysql.connector

from ..core.exceptions import StoreUnavailable
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        logger.error("Record store connection failed: %s", e)
        raise StoreUnavailable("Record store is unavailable") from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.IntegrityError:
        conn.rollback()
        raise
    except mysql.connector.Error as e:
        conn.rollback()
        raise StoreUnavailable(f"Record store error: {e}") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def where_clause(
    conditions: Mapping[str, object],
    allowed: Iterable[str],
    *,
    prefix: str = "",
) -> Tuple[List[str], List[object]]:
    """Build `col=%s` / `col IS NULL` clauses for whitelisted column names."""

    allowed = set(allowed)
    clauses: list[str] = []
    params: list[object] = []
    for column, value in conditions.items():
        if column not in allowed:
            raise ValueError(f"Unsupported column: {column!r}")
        if value is None:
            clauses.append(f"{prefix}{column} IS NULL")
        else:
            clauses.append(f"{prefix}{column}=%s")
            params.append(getattr(value, "value", value))
    return clauses, params


def in_placeholders(values: Sequence[object]) -> str:
    return ",".join(["%s"] * len(values))


def normalize_mysql_time(value: Any) -> Optional[time]:
    """Coerce a TIME column to `datetime.time`.

    The pure-Python connector returns `timedelta`; the C extension and some
    drivers return `time` or an 'HH:MM[:SS]' string.
    """

    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        seconds = int(value.total_seconds()) % 86400
        return time(seconds // 3600, (seconds % 3600) // 60, seconds % 60)
    if isinstance(value, str):
        parts = [int(p) for p in value.strip().split(":") if p]
        if len(parts) < 2:
            raise ValueError(f"Invalid time string: {value!r}")
        return time(*parts[:3])
    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")
