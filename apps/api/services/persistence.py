"""Dialect-aware INSERT ... ON CONFLICT helpers."""

from typing import Any, Dict, List, Sequence

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def _dialect_insert(db: AsyncSession, model: Any):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise RuntimeError(f"ON CONFLICT inserts are not supported for dialect {dialect!r}")


def insert_ignoring_conflicts(
    db: AsyncSession,
    model: Any,
    rows: List[Dict[str, Any]],
    conflict_columns: Sequence[str],
):
    """INSERT rows, silently skipping any that collide on conflict_columns."""
    return _dialect_insert(db, model).values(rows).on_conflict_do_nothing(index_elements=list(conflict_columns))


def upsert(
    db: AsyncSession,
    model: Any,
    row: Dict[str, Any],
    conflict_columns: Sequence[str],
    update_values: Dict[str, Any],
):
    """INSERT a row or update update_values on the existing one."""
    stmt = _dialect_insert(db, model).values(**row)
    return stmt.on_conflict_do_update(index_elements=list(conflict_columns), set_=update_values)
