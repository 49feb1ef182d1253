"""Recursive ingestion of an archive into the file index.

The walk visits entries in stored order. Directories and plain files become
one index record each; entries with a nested-container extension (.jar) are
opened from memory and walked in turn, with the container's own logical path
as the prefix for everything inside it. Nothing is extracted to disk.

Failure isolation:
- ArchiveOpenError on the top-level archive fails the whole ingestion.
- A nested container that cannot be opened, read, or that exceeds the
  depth/byte budget is logged and skipped; its siblings are still indexed.
- StoreError on a single insert is logged and that record is skipped.
- Unreadable preview bytes leave the entry indexed without a preview.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from zipindex import config
from zipindex.errors import (
    ArchiveOpenError,
    EntryReadError,
    IngestionCancelled,
    NestingLimitError,
    ProjectNotFoundError,
    StoreError,
)
from zipindex.ingest.lifecycle import LifecycleTracker
from zipindex.models import (
    IndexedEntry,
    IngestionResult,
    NewEntry,
    ProjectStatus,
    ResolvedPath,
    WalkStats,
)
from zipindex.protocols import ArchiveEntry, IndexStore
from zipindex.readers import ArchiveSource, ZipArchiveReader, is_nested_container, open_archive
from zipindex.utils.paths import resolve
from zipindex.utils.preview import PREVIEW_BYTES, is_previewable, preview

logger = logging.getLogger(__name__)

EntryCallback = Callable[[IndexedEntry], None]


@dataclass(frozen=True)
class WalkLimits:
    """Policy for expanding nested containers.

    max_depth: how many container levels below the uploaded archive may be
        opened (0 disables nested expansion, None means unlimited).
    max_nested_bytes: total decompressed bytes all nested containers of one
        ingestion may materialize (None means unlimited).
    """

    max_depth: Optional[int] = None
    max_nested_bytes: Optional[int] = None

    @classmethod
    def from_config(cls) -> "WalkLimits":
        return cls(
            max_depth=config.MAX_NESTING_DEPTH,
            max_nested_bytes=config.MAX_NESTED_BYTES,
        )


@dataclass
class WalkState:
    """Mutable state shared by every level of one walk."""

    project_id: int
    remaining_bytes: Optional[int] = None
    cancel_event: Optional[threading.Event] = None
    on_entry: Optional[EntryCallback] = None
    stats: WalkStats = field(default_factory=WalkStats)

    def check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise IngestionCancelled(f"Ingestion of project {self.project_id} cancelled")


class IngestionEngine:
    """Walks archives and writes one IndexedEntry per file or directory."""

    def __init__(
        self,
        store: IndexStore,
        tracker: LifecycleTracker,
        limits: Optional[WalkLimits] = None,
    ):
        self.store = store
        self.tracker = tracker
        self.limits = limits if limits is not None else WalkLimits.from_config()

    def ingest(
        self,
        project_id: int,
        source: ArchiveSource,
        cancel_event: Optional[threading.Event] = None,
        on_entry: Optional[EntryCallback] = None,
    ) -> IngestionResult:
        """Index an archive for a project and settle the project's status.

        Args:
            project_id: Project that owns the resulting entries
            source: Path to the archive, or its raw bytes
            cancel_event: Set it to stop the walk before the next entry
            on_entry: Called with every entry written to the index

        Returns:
            The final status and the walk's statistics
        """
        self.tracker.set_status(project_id, ProjectStatus.PROCESSING)
        state = WalkState(
            project_id=project_id,
            remaining_bytes=self.limits.max_nested_bytes,
            cancel_event=cancel_event,
            on_entry=on_entry,
        )

        status = ProjectStatus.FAILED
        logger.info(f"Starting to process archive for project {project_id}")
        try:
            with open_archive(source) as reader:
                logger.info(f"Found {len(reader)} entries in archive {reader.label}")
                self.walk(project_id, reader.entries(), state=state)
            status = ProjectStatus.COMPLETED
        except ArchiveOpenError as e:
            logger.error(f"Project {project_id}: {e}")
        except IngestionCancelled as e:
            logger.warning(f"{e} after {state.stats.entries_indexed} entries")
        except Exception:
            logger.exception(f"Unexpected error while processing project {project_id}")

        self._finish(project_id, status, state.stats)
        return IngestionResult(project_id=project_id, status=status, stats=state.stats)

    def walk(
        self,
        project_id: int,
        entries: Iterable[ArchiveEntry],
        base_path: str = "",
        depth: int = 0,
        state: Optional[WalkState] = None,
    ) -> WalkStats:
        """Index a sequence of entries, recursing into nested containers.

        Args:
            project_id: Project that owns the resulting entries
            entries: Entries of one container, in stored order
            base_path: Logical path of that container ("" for the upload itself)
            depth: Nesting level of the container (0 for the upload itself)
            state: Shared state of the enclosing walk, if any

        Returns:
            Statistics accumulated so far across the whole walk
        """
        if state is None:
            state = WalkState(
                project_id=project_id, remaining_bytes=self.limits.max_nested_bytes
            )

        for entry in entries:
            state.check_cancelled()
            if entry.is_dir:
                self._index_directory(state, entry, base_path)
            else:
                self._index_file(state, entry, base_path, depth)

        return state.stats

    def _index_directory(
        self, state: WalkState, entry: ArchiveEntry, base_path: str
    ) -> None:
        try:
            resolved = resolve(entry.name, base_path, is_directory=True)
        except ValueError:
            # A bare "/" entry names nothing
            return

        self._write(
            state,
            NewEntry(
                project_id=state.project_id,
                path=resolved.path,
                name=resolved.name,
                is_directory=True,
                parent_directory=resolved.parent_directory,
            ),
        )

    def _index_file(
        self, state: WalkState, entry: ArchiveEntry, base_path: str, depth: int
    ) -> None:
        try:
            resolved = resolve(entry.name, base_path, is_directory=False)
        except ValueError:
            logger.warning(f"Skipping file entry with empty name in {base_path or 'archive root'}")
            state.stats.errors += 1
            return

        if is_nested_container(resolved.extension):
            self._expand_nested(state, entry, resolved, depth)
            return

        content_preview = None
        if is_previewable(resolved.extension):
            try:
                head = entry.read_head(PREVIEW_BYTES)
            except EntryReadError as e:
                logger.warning(f"Indexing {resolved.path} without preview: {e.reason}")
                state.stats.errors += 1
            else:
                content_preview = preview(head, resolved.extension)

        stored = self._write(
            state,
            NewEntry(
                project_id=state.project_id,
                path=resolved.path,
                name=resolved.name,
                is_directory=False,
                parent_directory=resolved.parent_directory,
                extension=resolved.extension,
                size_bytes=entry.size,
                preview=content_preview,
            ),
        )
        if stored is not None:
            state.stats.bytes_declared += entry.size
            if stored.has_preview:
                state.stats.previews += 1

    def _expand_nested(
        self,
        state: WalkState,
        entry: ArchiveEntry,
        resolved: ResolvedPath,
        depth: int,
    ) -> None:
        """Open a nested container from memory and walk it under its own path."""
        try:
            self._reserve(state, entry, resolved, depth)
            data = entry.read_bytes()
            if state.remaining_bytes is not None:
                # The declared size may understate what was actually inflated
                state.remaining_bytes -= max(len(data) - entry.size, 0)
                if state.remaining_bytes < 0:
                    raise NestingLimitError(
                        f"{resolved.path} inflated past the nested byte budget"
                    )

            with ZipArchiveReader.from_bytes(data, label=resolved.path) as nested:
                logger.info(f"Processing nested archive {resolved.path}: {len(nested)} entries")
                state.stats.nested_archives += 1
                self.walk(
                    state.project_id,
                    nested.entries(),
                    base_path=resolved.path,
                    depth=depth + 1,
                    state=state,
                )
        except (ArchiveOpenError, EntryReadError, NestingLimitError) as e:
            logger.error(f"Error processing nested archive {resolved.path}: {e}")
            state.stats.errors += 1

    def _reserve(
        self, state: WalkState, entry: ArchiveEntry, resolved: ResolvedPath, depth: int
    ) -> None:
        max_depth = self.limits.max_depth
        if max_depth is not None and depth >= max_depth:
            raise NestingLimitError(
                f"{resolved.path} is nested deeper than {max_depth} levels"
            )
        if state.remaining_bytes is not None:
            if entry.size > state.remaining_bytes:
                raise NestingLimitError(
                    f"{resolved.path} ({entry.size} bytes) exceeds the remaining "
                    f"nested byte budget ({state.remaining_bytes} bytes)"
                )
            state.remaining_bytes -= entry.size

    def _write(self, state: WalkState, new: NewEntry) -> Optional[IndexedEntry]:
        try:
            stored = self.store.insert(new)
        except StoreError as e:
            kind = "directory" if new.is_directory else "file"
            logger.error(f"Error saving {kind} {new.path}: {e}")
            state.stats.errors += 1
            return None

        state.stats.entries_indexed += 1
        if new.is_directory:
            state.stats.directories += 1
        else:
            state.stats.files += 1
        if state.on_entry is not None:
            state.on_entry(stored)
        return stored

    def _finish(self, project_id: int, status: ProjectStatus, stats: WalkStats) -> None:
        try:
            self.tracker.set_status(project_id, status)
        except ProjectNotFoundError:
            logger.warning(f"Project {project_id} was deleted while it was being processed")
            return
        try:
            self.tracker.record_errors(project_id, stats.errors)
        except StoreError as e:
            logger.error(f"Error saving error count for project {project_id}: {e}")
        logger.info(
            f"Finished project {project_id} ({status.value}): "
            f"{stats.entries_indexed} entries indexed, "
            f"{stats.nested_archives} nested archives, {stats.errors} errors"
        )
