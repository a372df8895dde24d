"""
Idempotent row creation (INSERT ... ON CONFLICT DO NOTHING).

Replaces read-then-create, which races when two first requests for the same
key arrive together.
"""
import logging
from typing import Any, Dict, Sequence

from sqlalchemy import Table
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def insert_ignore(db: Session, table: Table, values: Dict[str, Any], conflict_columns: Sequence[str]) -> None:
    """
    Insert a row unless one with the same conflict key already exists.

    Runs inside the caller's transaction; nothing is committed here.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        _insert_with_savepoint(db, table, values)
        return

    stmt = insert(table).values(**values).on_conflict_do_nothing(index_elements=list(conflict_columns))
    db.execute(stmt)


def _insert_with_savepoint(db: Session, table: Table, values: Dict[str, Any]) -> None:
    """Portable path for dialects without ON CONFLICT."""
    try:
        with db.begin_nested():
            db.execute(table.insert().values(**values))
    except IntegrityError:
        logger.debug(f"Row already present in {table.name}, keeping existing")
