from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from .connection import DatabaseConnection

Row = dict[str, Any]


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True) -> Iterator[tuple[Any, Any]]:
    """Run the block as one transaction: committed on a clean exit, rolled back on any error."""
    conn = conn_factory.connect()
    cur = conn.cursor(dictionary=dictionary)
    done = False
    try:
        yield conn, cur
        conn.commit()
        done = True
    finally:
        cur.close()
        if not done:
            conn.rollback()
        conn.close()


def first_row(cur) -> Optional[Row]:
    return cur.fetchone() or None


def all_rows(cur) -> list[Row]:
    return list(cur.fetchall() or ())


def is_duplicate_key(err: IntegrityError) -> bool:
    """True when a UNIQUE index rejected the write (a concurrent writer got there first)."""
    return getattr(err, "errno", None) == errorcode.ER_DUP_ENTRY
