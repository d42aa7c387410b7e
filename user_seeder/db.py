from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError, DBAPIError, NoSuchModuleError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .errors import ConfigurationError, DatabaseConnectionError, StorageError
from .settings import Settings

logger = logging.getLogger(__name__)


def _engine_kwargs(db_url: str) -> dict:
    if db_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {}


class Base(DeclarativeBase):
    pass


def _translate(e: SQLAlchemyError) -> Exception:
    if isinstance(e, DBAPIError) and e.connection_invalidated:
        return DatabaseConnectionError(str(e.orig or e))
    return StorageError(str(getattr(e, "orig", None) or e))


class Database:
    """A single engine plus its session factory.

    Built once by the caller and passed to whatever needs storage. ``close()``
    disposes of the connection pool; it is safe to call more than once but only
    the first call does anything.
    """

    def __init__(self, url: str):
        try:
            self.engine: Engine = create_engine(url, future=True, **_engine_kwargs(url))
        except (ArgumentError, NoSuchModuleError, ImportError) as e:
            raise ConfigurationError(f"Cannot create a database engine from DATABASE_URL: {e}") from e

        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, autocommit=False, future=True)
        self.closed = False

    @classmethod
    def from_settings(cls, settings: Settings) -> Database:
        return cls(settings.DATABASE_URL)

    def ping(self) -> None:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except DBAPIError as e:
            raise DatabaseConnectionError(f"Cannot connect to {self.engine.url!r}: {e.orig or e}") from e
        except SQLAlchemyError as e:
            raise _translate(e) from e
        logger.debug("Connected to %r", self.engine.url)

    def init_db(self) -> None:
        from . import models  # noqa: F401  registers the tables on Base.metadata

        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            raise _translate(e) from e

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session scoped to one unit of work: committed on success, rolled back on error."""
        db = self.SessionLocal()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise _translate(e) from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.engine.dispose()
        logger.debug("Database connection released")

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
