from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import Iterable, TextIO

from .db import Database
from .errors import SeederError
from .repository import create_many, find_many
from .schemas import UserCreate, UserRead
from .settings import load_settings

logger = logging.getLogger(__name__)

DEFAULT_USERS: tuple[UserCreate, ...] = (
    UserCreate(name="Path", email="path@example.com"),
    UserCreate(name="John", email="john@example.com"),
    UserCreate(name="Alice", email="alice@example.com"),
    UserCreate(name="Bob", email="bob@example.com"),
)


@dataclass
class SeedResult:
    inserted: int
    users: list[UserRead] = field(default_factory=list)


def insert_users(database: Database, users: Iterable[UserCreate] = DEFAULT_USERS) -> int:
    with database.session() as db:
        return create_many(db, users, skip_duplicates=True)


def fetch_users(database: Database) -> list[UserRead]:
    with database.session() as db:
        return [UserRead.model_validate(user) for user in find_many(db)]


def run(database: Database, users: Iterable[UserCreate] = DEFAULT_USERS, out: TextIO | None = None) -> SeedResult:
    """Insert ``users`` skipping known emails, then print the count and the whole table."""
    out = out or sys.stdout

    inserted = insert_users(database, users)
    print(f"Inserted count: {inserted}", file=out)

    rows = fetch_users(database)
    print(f"All users ({len(rows)}):", file=out)
    for row in rows:
        print(f"  {row}", file=out)

    return SeedResult(inserted=inserted, users=rows)


def _configure_logging(level: str = "INFO", sql_echo: bool = False) -> None:
    # The root logger's level is never touched; it only gets a stderr handler if it has none.
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("user_seeder").setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if sql_echo else logging.WARNING)


def main() -> int:
    _configure_logging()

    database: Database | None = None
    try:
        settings = load_settings()
        _configure_logging(settings.LOG_LEVEL, sql_echo=settings.SQL_ECHO)

        database = Database.from_settings(settings)
        database.ping()
        if settings.CREATE_SCHEMA:
            database.init_db()

        run(database)
    except SeederError as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 1
    except Exception:
        logger.exception("Unexpected error while seeding users")
        return 1
    finally:
        if database is not None:
            database.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
