"""Archive ingestion: the recursive walk, lifecycle tracking and background runs."""

from zipindex.ingest.engine import IngestionEngine, WalkLimits
from zipindex.ingest.lifecycle import LifecycleTracker
from zipindex.ingest.runner import IngestionRunner

__all__ = ["IngestionEngine", "IngestionRunner", "LifecycleTracker", "WalkLimits"]
