"""
Data access for the users table.

Every function receives the Session explicitly and leaves committing to the
caller's unit of work (see ``Database.session``).
"""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import insert, select
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from .models import User
from .schemas import UserCreate

logger = logging.getLogger(__name__)


def _dedupe(users: Iterable[UserCreate]) -> list[dict]:
    rows: list[dict] = []
    seen: set[str] = set()
    for user in users:
        email = user.email.strip().lower()
        if email in seen:
            continue
        seen.add(email)
        rows.append({"name": user.name, "email": email})
    return rows


def _insert_ignoring_conflicts(dialect: str, rows: list[dict]):
    if dialect == "postgresql":
        return pg_insert(User).values(rows).on_conflict_do_nothing(index_elements=[User.email])
    if dialect == "sqlite":
        return sqlite_insert(User).values(rows).on_conflict_do_nothing(index_elements=[User.email])
    if dialect in {"mysql", "mariadb"}:
        return mysql_insert(User).values(rows).prefix_with("IGNORE")
    return None


def create_many(db: Session, users: Iterable[UserCreate], *, skip_duplicates: bool = True) -> int:
    """Insert ``users`` in one statement and return how many rows were written.

    With ``skip_duplicates`` rows whose email already exists (in the table or
    earlier in the batch) are left out instead of failing the whole insert.
    """
    if skip_duplicates:
        rows = _dedupe(users)
    else:
        rows = [{"name": u.name, "email": u.email.strip().lower()} for u in users]
    if not rows:
        return 0

    if not skip_duplicates:
        db.execute(insert(User).values(rows))
        return len(rows)

    dialect = db.get_bind().dialect.name
    stmt = _insert_ignoring_conflicts(dialect, rows)
    if stmt is None:
        # Single writer assumed; a concurrent insert between the select and the insert is not covered.
        logger.debug("No native conflict-ignoring insert for dialect %s, pre-filtering batch", dialect)
        emails = [row["email"] for row in rows]
        existing = set(db.scalars(select(User.email).where(User.email.in_(emails))))
        rows = [row for row in rows if row["email"] not in existing]
        if not rows:
            return 0
        # rowcount for multi-row VALUES isn't reliable on every DBAPI; the insert is all-or-nothing here
        db.execute(insert(User).values(rows))
        return len(rows)

    result = db.execute(stmt)
    logger.debug("Inserted %s of %s users", result.rowcount, len(rows))
    return result.rowcount


def find_many(db: Session) -> list[User]:
    """Return every user, oldest first."""
    return list(db.scalars(select(User).order_by(User.id.asc())).all())
