"""Protocol for the persistence boundary the ingestion engine writes to."""

from typing import Optional, Protocol, runtime_checkable

from zipindex.models import IndexedEntry, NewEntry


@runtime_checkable
class IndexStore(Protocol):
    """Append-only index of entries, scoped by project.

    Listings order directories before files, then by name ascending.
    """

    def insert(self, entry: NewEntry) -> IndexedEntry:
        """Store one entry. Raises StoreError."""
        ...

    def list_by_project(
        self, project_id: int, limit: int, offset: int = 0
    ) -> list[IndexedEntry]:
        ...

    def list_by_project_and_parent(
        self,
        project_id: int,
        parent_directory: Optional[str],
        limit: int,
        offset: int = 0,
    ) -> list[IndexedEntry]:
        ...

    def count_by_project(self, project_id: int) -> int:
        ...

    def delete_all_by_project(self, project_id: int) -> int:
        ...

    def find_by_project_and_path(
        self, project_id: int, path: str
    ) -> Optional[IndexedEntry]:
        ...
