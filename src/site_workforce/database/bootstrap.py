"""Create the database and apply database/schema.sql at startup."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

REQUIRED_TABLES = (
    "project_geofences",
    "attendance_sessions",
    "location_logs",
    "overtime_requests",
    "worker_task_assignments",
    "task_dependencies",
)

# schema.sql never embeds ';' inside a literal, so a statement ends at ';' + end of line.
_STATEMENT_END = re.compile(r";[ \t]*$", re.MULTILINE)


def _server_connection(target: DBConfig, *, with_database: bool):
    return mysql.connector.connect(**target.connect_kwargs(with_database=with_database), use_pure=True)


def split_statements(sql: str) -> Iterator[str]:
    """Yield the non-empty statements of a schema script, comment lines dropped."""
    body = "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))
    for chunk in _STATEMENT_END.split(body):
        stmt = chunk.strip()
        if stmt and not re.match(r"(?i)(CREATE\s+DATABASE|USE)\b", stmt):
            yield stmt


def apply_schema(db_config: dict, *, schema_path: str | Path) -> int:
    target = DBConfig.from_dict(db_config)

    conn = _server_connection(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4")
        cur.execute(f"USE `{target.database}`")
        statements = list(split_statements(Path(schema_path).read_text(encoding="utf-8")))
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()

    logger.info("applied %d schema statements to %s", len(statements), target.database)
    return len(statements)


def missing_tables(db_config: dict) -> list[str]:
    target = DBConfig.from_dict(db_config)
    conn = _server_connection(target, with_database=True)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        present = {row[0] for row in cur.fetchall()}
    finally:
        conn.close()
    return [t for t in REQUIRED_TABLES if t not in present]
