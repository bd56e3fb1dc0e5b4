"""Create the database and apply ``database/schema.sql``.

Used by ``scripts/init_db.py`` and by ``create_app`` when ``AUTO_INIT_DB``
is set. Every statement in the schema is idempotent (``IF NOT EXISTS``).
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, Union

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

_DATABASE_DIRECTIVES = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b[^;]*;\s*$")
_QUOTES = "'\"`"


def split_sql_statements(sql: str) -> Iterator[str]:
    """Split a script on top-level ``;``.

    Quoted text (``'``, ``"``, backticks) is kept intact; ``--``, ``#`` and
    ``/* */`` comments are dropped.
    """
    statement: list[str] = []
    quote = None
    i, n = 0, len(sql)
    while i < n:
        ch = sql[i]
        if quote:
            statement.append(ch)
            if ch == "\\" and i + 1 < n:
                statement.append(sql[i + 1])
                i += 1
            elif ch == quote:
                quote = None
        elif ch in _QUOTES:
            quote = ch
            statement.append(ch)
        elif sql.startswith("--", i) or ch == "#":
            newline = sql.find("\n", i)
            i = n if newline == -1 else newline
            continue
        elif sql.startswith("/*", i):
            close = sql.find("*/", i + 2)
            i = n if close == -1 else close + 2
            continue
        elif ch == ";":
            text = "".join(statement).strip()
            statement.clear()
            if text:
                yield text
        else:
            statement.append(ch)
        i += 1

    text = "".join(statement).strip()
    if text:
        yield text


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = DatabaseConnection(target).connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        cur.close()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: Union[str, Path]) -> int:
    """Apply the schema and return the number of statements executed.

    ``CREATE DATABASE``/``USE`` lines are skipped so the same file works for
    any configured database name.
    """
    ensure_database_exists(db_config)
    target = DBConfig.from_dict(db_config)
    script = _DATABASE_DIRECTIVES.sub("", Path(schema_path).read_text(encoding="utf-8"))

    conn = DatabaseConnection(target).connect()
    try:
        cur = conn.cursor()
        executed = 0
        for statement in split_sql_statements(script):
            cur.execute(statement)
            executed += 1
        conn.commit()
        cur.close()
    finally:
        conn.close()

    logger.info("Applied %d schema statements to %s", executed, target.database)
    return executed


def list_tables(db_config: dict) -> list[str]:
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return sorted(row[0] for row in cur.fetchall())
    finally:
        conn.close()
