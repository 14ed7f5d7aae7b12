"""Dialect-aware INSERT .. ON CONFLICT helpers.

Both Postgres and SQLite support ``ON CONFLICT``; SQLAlchemy exposes it through
dialect-specific ``insert`` constructs, so the right one is picked from the
session's bind.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Sequence

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def _insert_for(db: Session, table):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"ON CONFLICT inserts are not supported for dialect {dialect!r}")


def insert_ignore_duplicates(
    db: Session,
    model,
    rows: Iterable[Dict[str, Any]],
    conflict_columns: Sequence[str],
) -> int:
    """Insert rows, silently skipping any that collide on ``conflict_columns``.

    Returns the number of rows actually inserted.
    """
    payload: List[Dict[str, Any]] = list(rows)
    if not payload:
        return 0
    inserted = 0
    for row in payload:
        stmt = _insert_for(db, model.__table__).values(**row).on_conflict_do_nothing(
            index_elements=list(conflict_columns)
        )
        result = db.execute(stmt)
        inserted += result.rowcount or 0
    return inserted


def upsert_row(
    db: Session,
    model,
    row: Dict[str, Any],
    conflict_columns: Sequence[str],
    update_columns: Sequence[str],
) -> None:
    """Insert ``row`` or replace ``update_columns`` on the existing conflicting row."""
    insert_stmt = _insert_for(db, model.__table__).values(**row)
    stmt = insert_stmt.on_conflict_do_update(
        index_elements=list(conflict_columns),
        set_={column: insert_stmt.excluded[column] for column in update_columns},
    )
    db.execute(stmt)
