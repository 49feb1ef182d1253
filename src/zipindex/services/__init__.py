"""Application services over the index store and ingestion engine."""

from zipindex.services.projects import EntryContent, ProjectService, ProjectSummary

__all__ = ["EntryContent", "ProjectService", "ProjectSummary"]
