import pytest

from user_seeder.db import Database


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{(tmp_path / 'seed.db').as_posix()}"


@pytest.fixture
def database(database_url):
    db = Database(database_url)
    db.init_db()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def seeder_env(monkeypatch, database_url) -> str:
    """Point the seeder at a fresh SQLite file through the environment."""
    monkeypatch.setenv("DATABASE_URL", database_url)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("SQL_ECHO", raising=False)
    monkeypatch.delenv("CREATE_SCHEMA", raising=False)
    return database_url
