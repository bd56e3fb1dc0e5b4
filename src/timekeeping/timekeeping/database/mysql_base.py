"""Cursor scope and value coercion shared by the MySQL repositories."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Iterator, Optional

from .connection import DatabaseConnection

Row = dict[str, Any]


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True) -> Iterator[tuple[Any, Any]]:
    """Yield ``(conn, cursor)``; commit on success, roll back on any error."""
    conn = conn_factory.connect()
    cur = conn.cursor(dictionary=dictionary)
    try:
        yield conn, cur
    except Exception:
        conn.rollback()
        raise
    else:
        conn.commit()
    finally:
        cur.close()
        conn.close()


def fetchone(cur) -> Optional[Row]:
    return cur.fetchone() or None


def fetchall(cur) -> list[Row]:
    return list(cur.fetchall() or ())


def in_clause(values: Iterable[Any]) -> tuple[str, tuple]:
    """Placeholders and params for ``col IN (...)``."""
    params = tuple(values)
    return ", ".join("%s" for _ in params), params


def normalize_mysql_time(value: Any) -> Optional[str]:
    """TIME column -> ``HH:MM``.

    The connector hands TIME back as ``timedelta``; ``time`` and strings
    show up from other drivers and from JSON payloads.
    """
    if value is None:
        return None
    if isinstance(value, timedelta):
        minutes = int(value.total_seconds()) // 60 % (24 * 60)
        return f"{minutes // 60:02d}:{minutes % 60:02d}"
    if isinstance(value, time):
        return f"{value.hour:02d}:{value.minute:02d}"
    if isinstance(value, str):
        hours, _, rest = value.strip().partition(":")
        if not rest:
            raise ValueError(f"Invalid time string: {value!r}")
        return f"{int(hours):02d}:{int(rest[:2]):02d}"
    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")


def normalize_mysql_date(value: Any) -> Optional[date]:
    if value is None or (isinstance(value, date) and not isinstance(value, datetime)):
        return value
    if isinstance(value, datetime):
        return value.date()
    return date.fromisoformat(str(value)[:10])
