"""Models for entries discovered while walking an archive."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class ResolvedPath:
    """Logical location of an entry, including any nested-container prefix."""

    path: str
    name: str
    parent_directory: Optional[str]
    extension: Optional[str]  # None for directories and suffix-less files


@dataclass(frozen=True)
class NewEntry:
    """An index record about to be written."""

    project_id: int
    path: str
    name: str
    is_directory: bool
    parent_directory: Optional[str] = None
    extension: Optional[str] = None
    size_bytes: Optional[int] = None
    preview: Optional[str] = None


@dataclass(frozen=True)
class IndexedEntry:
    """A stored index record. Never updated after creation."""

    id: int
    project_id: int
    path: str
    name: str
    is_directory: bool
    parent_directory: Optional[str]
    extension: Optional[str]
    size_bytes: Optional[int]
    preview: Optional[str]
    created_at: datetime

    @property
    def has_preview(self) -> bool:
        return self.preview is not None
