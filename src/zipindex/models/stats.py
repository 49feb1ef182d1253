"""Counters collected during a walk."""

from dataclasses import dataclass

from zipindex.models.project import ProjectStatus


@dataclass
class WalkStats:
    """Statistics tracked while ingesting one archive."""

    entries_indexed: int = 0
    directories: int = 0
    files: int = 0
    previews: int = 0
    nested_archives: int = 0
    errors: int = 0
    bytes_declared: int = 0

    def copy(self) -> "WalkStats":
        """Create a copy of the stats."""
        return WalkStats(**vars(self))


@dataclass(frozen=True)
class IngestionResult:
    """Outcome of one ingestion run."""

    project_id: int
    status: ProjectStatus
    stats: WalkStats
