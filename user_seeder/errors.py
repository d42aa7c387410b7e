from __future__ import annotations


class SeederError(Exception):
    """Base exception for the user seeder."""


class ConfigurationError(SeederError):
    """DATABASE_URL is missing, malformed or names a driver that isn't installed."""


class DatabaseConnectionError(SeederError, ConnectionError):
    """The database could not be reached."""


class StorageError(SeederError):
    """The database rejected or failed a statement."""
