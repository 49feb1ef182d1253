"""Project lifecycle and index queries, independent of any transport."""

import logging
import shutil
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from zipindex import config
from zipindex.errors import ProjectAccessError, ProjectNotFoundError
from zipindex.ingest import IngestionEngine, IngestionRunner, LifecycleTracker, WalkLimits
from zipindex.ingest.runner import RunningJob
from zipindex.models import IndexedEntry, IngestionResult, Page, Project
from zipindex.models.page import page_offset
from zipindex.storage import IndexStoreSQLite
from zipindex.utils.preview import PREVIEW_BYTES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntryContent:
    """The stored preview of one file."""

    path: str
    name: str
    extension: Optional[str]
    content: Optional[str]
    truncated: bool


@dataclass(frozen=True)
class ProjectSummary:
    """Overview of a project's index."""

    project: Project
    total_entries: int
    directories: list[str] = field(default_factory=list)
    sample_paths: list[str] = field(default_factory=list)


def normalize_directory(directory: Optional[str]) -> tuple[bool, Optional[str]]:
    """Interpret a directory filter.

    Returns:
        (scoped, parent): scoped is False when no filter was given at all;
        parent is None for the top level
    """
    if directory is None:
        return False, None
    parent = directory.strip().strip("/")
    return True, parent or None


class ProjectService:
    """Creates, ingests, queries and deletes projects."""

    def __init__(
        self,
        store: IndexStoreSQLite,
        archive_dir: Path | str | None = None,
        limits: Optional[WalkLimits] = None,
    ):
        self.store = store
        self.archive_dir = Path(archive_dir if archive_dir is not None else config.ARCHIVE_DIR)
        self.tracker = LifecycleTracker(store)
        self.engine = IngestionEngine(store, self.tracker, limits)
        self.runner = IngestionRunner(self.engine)

    # Lifecycle

    def import_archive(
        self,
        source: Path | str,
        name: str,
        user_id: int,
        description: Optional[str] = None,
    ) -> Project:
        """Copy an archive into managed storage and register it as a project.

        Args:
            source: Archive to import
            name: Display name of the project
            user_id: Owning user
            description: Optional free text

        Returns:
            The new project, in the 'uploaded' state

        Raises:
            FileNotFoundError: If the source archive does not exist
        """
        source_path = Path(source)
        if not source_path.is_file():
            raise FileNotFoundError(f"Archive not found: {source}")

        self.archive_dir.mkdir(parents=True, exist_ok=True)
        stored_path = self.archive_dir / f"{uuid.uuid4().hex}{source_path.suffix.lower()}"
        shutil.copyfile(source_path, stored_path)

        project = self.store.create_project(
            user_id=user_id,
            name=name,
            description=description,
            original_filename=source_path.name,
            archive_path=str(stored_path),
            archive_size=stored_path.stat().st_size,
        )
        logger.info(f"Project created with ID {project.id}: {name} ({source_path.name})")
        return project

    def ingest(self, project_id: int) -> IngestionResult:
        """Run the ingestion of a project in the calling thread."""
        project = self.get_project(project_id)
        return self.engine.ingest(project.id, project.archive_path)

    def submit(self, project_id: int, on_entry=None) -> RunningJob:
        """Start the ingestion of a project in the background."""
        project = self.get_project(project_id)
        return self.runner.submit(project.id, project.archive_path, on_entry=on_entry)

    def delete_project(self, project_id: int, user_id: Optional[int] = None) -> None:
        """Remove a project, its index and its stored archive."""
        project = self.get_project(project_id, user_id)

        if self.runner.cancel(project.id):
            self.runner.wait(project.id)

        removed = self.store.delete_all_by_project(project.id)
        self.store.delete_project(project.id)

        archive = Path(project.archive_path)
        if archive.exists():
            archive.unlink()
        logger.info(f"Deleted project {project.id} and {removed} indexed entries")

    # Queries

    def get_project(self, project_id: int, user_id: Optional[int] = None) -> Project:
        """Fetch a project, checking ownership when a user id is given.

        Raises:
            ProjectNotFoundError: If the project does not exist
            ProjectAccessError: If it belongs to another user
        """
        project = self.store.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        if user_id is not None and project.user_id != user_id:
            raise ProjectAccessError(f"Access denied to project {project_id}")
        return project

    def list_projects(
        self, user_id: Optional[int] = None, page: int = 1, limit: int = 10
    ) -> Page[Project]:
        offset = page_offset(page, limit)
        return Page(
            items=self.store.list_projects(user_id, limit, offset),
            page=page,
            limit=limit,
            total=self.store.count_projects(user_id),
        )

    def list_entries(
        self,
        project_id: int,
        directory: Optional[str] = None,
        page: int = 1,
        limit: int = config.PAGE_SIZE,
        user_id: Optional[int] = None,
    ) -> Page[IndexedEntry]:
        """List a project's index, optionally one directory level at a time.

        Args:
            project_id: Project to list
            directory: None for every entry, "" for the top level, or a
                logical directory path
            page: 1-based page number
            limit: Entries per page
            user_id: Requesting user, for the ownership check

        Returns:
            A page of entries, directories first, then by name
        """
        project = self.get_project(project_id, user_id)
        offset = page_offset(page, limit)
        scoped, parent = normalize_directory(directory)

        if scoped:
            items = self.store.list_by_project_and_parent(project.id, parent, limit, offset)
            total = self.store.count_by_project_and_parent(project.id, parent)
        else:
            items = self.store.list_by_project(project.id, limit, offset)
            total = self.store.count_by_project(project.id)

        return Page(items=items, page=page, limit=limit, total=total)

    def find_entry(
        self, project_id: int, path: str, user_id: Optional[int] = None
    ) -> Optional[IndexedEntry]:
        project = self.get_project(project_id, user_id)
        return self.store.find_by_project_and_path(project.id, path.strip("/"))

    def read_entry(
        self, project_id: int, path: str, user_id: Optional[int] = None
    ) -> Optional[EntryContent]:
        """Return the stored preview of a file, or None if no such entry."""
        entry = self.find_entry(project_id, path, user_id)
        if entry is None:
            return None
        return EntryContent(
            path=entry.path,
            name=entry.name,
            extension=entry.extension,
            content=entry.preview,
            truncated=entry.preview is not None and len(entry.preview) >= PREVIEW_BYTES,
        )

    def summary(
        self, project_id: int, sample: int = 20, user_id: Optional[int] = None
    ) -> ProjectSummary:
        project = self.get_project(project_id, user_id)
        return ProjectSummary(
            project=project,
            total_entries=self.store.count_by_project(project.id),
            directories=self.store.list_directories(project.id),
            sample_paths=self.store.sample_paths(project.id, sample),
        )
