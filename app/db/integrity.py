from __future__ import annotations

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

PG_UNIQUE_VIOLATION = "23505"


class DuplicateRowError(Exception):
    """A write hit a unique constraint."""


def is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code is not None:
        return str(code) == PG_UNIQUE_VIOLATION
    return "unique constraint" in str(orig).lower()


def insert_for(conn: Connection, table):
    """Dialect insert supporting ON CONFLICT (PostgreSQL in prod, SQLite in tests)."""
    dialect = conn.dialect.name
    if dialect == "postgresql":
        return pg_insert(table)
    if dialect == "sqlite":
        return sqlite_insert(table)
    raise RuntimeError(f"Upserts are not supported on dialect '{dialect}'")
