"""SQLite persistence for projects and their file index."""

from zipindex.storage.store import IndexStoreSQLite

__all__ = ["IndexStoreSQLite"]
