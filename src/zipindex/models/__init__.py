"""Data models for zipindex."""

from zipindex.models.entry import IndexedEntry, NewEntry, ResolvedPath
from zipindex.models.page import Page
from zipindex.models.project import Project, ProjectStatus
from zipindex.models.stats import IngestionResult, WalkStats

__all__ = [
    "IndexedEntry",
    "IngestionResult",
    "NewEntry",
    "Page",
    "Project",
    "ProjectStatus",
    "ResolvedPath",
    "WalkStats",
]
