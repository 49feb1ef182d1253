"""SQLite-backed index store."""

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from zipindex.errors import StoreError
from zipindex.models import IndexedEntry, NewEntry, Project, ProjectStatus
from zipindex.storage.schema import SCHEMA

# Directories first, then by name; id keeps ties in insertion order
_ENTRY_ORDER = "ORDER BY is_directory DESC, name ASC, id ASC"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_entry(row: sqlite3.Row) -> IndexedEntry:
    return IndexedEntry(
        id=row["id"],
        project_id=row["project_id"],
        path=row["path"],
        name=row["name"],
        is_directory=bool(row["is_directory"]),
        parent_directory=row["parent_directory"],
        extension=row["extension"],
        size_bytes=row["size_bytes"],
        preview=row["preview"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _row_to_project(row: sqlite3.Row) -> Project:
    return Project(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        description=row["description"],
        original_filename=row["original_filename"],
        archive_path=row["archive_path"],
        archive_size=row["archive_size"],
        status=ProjectStatus(row["status"]),
        error_count=row["error_count"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class IndexStoreSQLite:
    """SQLite-backed storage for projects and their indexed entries.

    Every operation opens its own connection, so one store instance can be
    shared by concurrent ingestion threads.
    """

    def __init__(self, path: Path | str, timeout: float = 30.0):
        self.path = Path(path)
        self.timeout = timeout

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections.

        Raises:
            StoreError: On any sqlite error, after rolling back
        """
        try:
            conn = sqlite3.connect(self.path, timeout=self.timeout)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open index database {self.path}: {e}") from e
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create schema if not exists."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.connection() as conn:
            conn.executescript(SCHEMA)

    # Projects

    def create_project(
        self,
        user_id: int,
        name: str,
        original_filename: str,
        archive_path: str,
        archive_size: int,
        description: Optional[str] = None,
    ) -> Project:
        """Create a project in the 'uploaded' state."""
        now = _now()
        with self.connection() as conn:
            cursor = conn.execute(
                """INSERT INTO projects
                   (user_id, name, description, original_filename, archive_path,
                    archive_size, status, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    user_id,
                    name,
                    description,
                    original_filename,
                    archive_path,
                    archive_size,
                    ProjectStatus.UPLOADED.value,
                    now,
                    now,
                ),
            )
            row = conn.execute(
                "SELECT * FROM projects WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
        return _row_to_project(row)

    def get_project(self, project_id: int) -> Optional[Project]:
        with self.connection() as conn:
            row = conn.execute(
                "SELECT * FROM projects WHERE id = ?", (project_id,)
            ).fetchone()
        return _row_to_project(row) if row else None

    def list_projects(
        self, user_id: Optional[int], limit: int, offset: int = 0
    ) -> list[Project]:
        """List projects newest first, optionally for a single user."""
        with self.connection() as conn:
            if user_id is None:
                cursor = conn.execute(
                    """SELECT * FROM projects ORDER BY created_at DESC, id DESC
                       LIMIT ? OFFSET ?""",
                    (limit, offset),
                )
            else:
                cursor = conn.execute(
                    """SELECT * FROM projects WHERE user_id = ?
                       ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?""",
                    (user_id, limit, offset),
                )
            return [_row_to_project(row) for row in cursor]

    def count_projects(self, user_id: Optional[int] = None) -> int:
        with self.connection() as conn:
            if user_id is None:
                row = conn.execute("SELECT COUNT(*) FROM projects").fetchone()
            else:
                row = conn.execute(
                    "SELECT COUNT(*) FROM projects WHERE user_id = ?", (user_id,)
                ).fetchone()
        return row[0]

    def update_status(self, project_id: int, status: ProjectStatus) -> bool:
        """Write a status unconditionally. Returns False if no such project."""
        with self.connection() as conn:
            cursor = conn.execute(
                "UPDATE projects SET status = ?, updated_at = ? WHERE id = ?",
                (status.value, _now(), project_id),
            )
            return cursor.rowcount > 0

    def set_error_count(self, project_id: int, error_count: int) -> None:
        with self.connection() as conn:
            conn.execute(
                "UPDATE projects SET error_count = ?, updated_at = ? WHERE id = ?",
                (error_count, _now(), project_id),
            )

    def delete_project(self, project_id: int) -> bool:
        with self.connection() as conn:
            cursor = conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
            return cursor.rowcount > 0

    # Indexed entries

    def insert(self, entry: NewEntry) -> IndexedEntry:
        """Store one indexed entry and return it with its id."""
        with self.connection() as conn:
            cursor = conn.execute(
                """INSERT INTO indexed_entries
                   (project_id, path, name, extension, size_bytes, preview,
                    is_directory, parent_directory, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    entry.project_id,
                    entry.path,
                    entry.name,
                    entry.extension,
                    entry.size_bytes,
                    entry.preview,
                    1 if entry.is_directory else 0,
                    entry.parent_directory,
                    _now(),
                ),
            )
            row = conn.execute(
                "SELECT * FROM indexed_entries WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
        return _row_to_entry(row)

    def list_by_project(
        self, project_id: int, limit: int, offset: int = 0
    ) -> list[IndexedEntry]:
        """List a project's entries across all directory levels."""
        with self.connection() as conn:
            cursor = conn.execute(
                f"""SELECT * FROM indexed_entries WHERE project_id = ?
                    {_ENTRY_ORDER} LIMIT ? OFFSET ?""",
                (project_id, limit, offset),
            )
            return [_row_to_entry(row) for row in cursor]

    def list_by_project_and_parent(
        self,
        project_id: int,
        parent_directory: Optional[str],
        limit: int,
        offset: int = 0,
    ) -> list[IndexedEntry]:
        """List one directory level. None selects top-level entries."""
        with self.connection() as conn:
            cursor = conn.execute(
                f"""SELECT * FROM indexed_entries
                    WHERE project_id = ? AND parent_directory IS ?
                    {_ENTRY_ORDER} LIMIT ? OFFSET ?""",
                (project_id, parent_directory, limit, offset),
            )
            return [_row_to_entry(row) for row in cursor]

    def list_all_by_project(self, project_id: int) -> list[IndexedEntry]:
        """Every entry of a project in insertion (walk) order."""
        with self.connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM indexed_entries WHERE project_id = ? ORDER BY id",
                (project_id,),
            )
            return [_row_to_entry(row) for row in cursor]

    def count_by_project(self, project_id: int) -> int:
        with self.connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM indexed_entries WHERE project_id = ?",
                (project_id,),
            ).fetchone()
        return row[0]

    def count_by_project_and_parent(
        self, project_id: int, parent_directory: Optional[str]
    ) -> int:
        with self.connection() as conn:
            row = conn.execute(
                """SELECT COUNT(*) FROM indexed_entries
                   WHERE project_id = ? AND parent_directory IS ?""",
                (project_id, parent_directory),
            ).fetchone()
        return row[0]

    def sample_paths(self, project_id: int, limit: int = 20) -> list[str]:
        with self.connection() as conn:
            cursor = conn.execute(
                """SELECT path FROM indexed_entries WHERE project_id = ?
                   ORDER BY path LIMIT ?""",
                (project_id, limit),
            )
            return [row["path"] for row in cursor]

    def list_directories(self, project_id: int) -> list[str]:
        """Distinct parent directories that hold at least one entry."""
        with self.connection() as conn:
            cursor = conn.execute(
                """SELECT DISTINCT parent_directory FROM indexed_entries
                   WHERE project_id = ? AND parent_directory IS NOT NULL
                   ORDER BY parent_directory""",
                (project_id,),
            )
            return [row["parent_directory"] for row in cursor]

    def delete_all_by_project(self, project_id: int) -> int:
        """Delete every entry of a project. Returns the number removed."""
        with self.connection() as conn:
            cursor = conn.execute(
                "DELETE FROM indexed_entries WHERE project_id = ?", (project_id,)
            )
            return cursor.rowcount

    def find_by_project_and_path(
        self, project_id: int, path: str
    ) -> Optional[IndexedEntry]:
        """Look up an entry by logical path (first occurrence if repeated)."""
        with self.connection() as conn:
            row = conn.execute(
                """SELECT * FROM indexed_entries
                   WHERE project_id = ? AND path = ? ORDER BY id LIMIT 1""",
                (project_id, path),
            ).fetchone()
        return _row_to_entry(row) if row else None
