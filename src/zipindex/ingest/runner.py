"""Background ingestion: one thread per project, cancellable by project id."""

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

from zipindex.ingest.engine import EntryCallback, IngestionEngine
from zipindex.models import IngestionResult
from zipindex.readers import ArchiveSource

logger = logging.getLogger(__name__)


@dataclass
class RunningJob:
    """A walk in flight and the handles needed to stop or join it."""

    project_id: int
    thread: threading.Thread
    cancel_event: threading.Event = field(default_factory=threading.Event)
    result: Optional[IngestionResult] = None


class IngestionRunner:
    """Runs ingestions decoupled from the caller that requested them.

    The caller learns the outcome only through the project's status. Walks
    run to completion unless cancel() is called for their project.
    """

    def __init__(self, engine: IngestionEngine):
        self.engine = engine
        self._jobs: dict[int, RunningJob] = {}
        self._lock = threading.Lock()

    def submit(
        self,
        project_id: int,
        source: ArchiveSource,
        on_entry: Optional[EntryCallback] = None,
    ) -> RunningJob:
        """Start ingesting a project's archive in a background thread.

        Raises:
            ValueError: If the project is already being ingested
        """
        with self._lock:
            if project_id in self._jobs:
                raise ValueError(f"Project {project_id} is already being processed")
            thread = threading.Thread(
                target=self._run,
                args=(project_id, source, on_entry),
                name=f"ingest-{project_id}",
                daemon=True,
            )
            job = RunningJob(project_id=project_id, thread=thread)
            self._jobs[project_id] = job
        thread.start()
        return job

    def _run(
        self, project_id: int, source: ArchiveSource, on_entry: Optional[EntryCallback]
    ) -> None:
        job = self._jobs[project_id]
        try:
            job.result = self.engine.ingest(
                project_id, source, cancel_event=job.cancel_event, on_entry=on_entry
            )
        except Exception:
            logger.exception(f"Error in background processing of project {project_id}")
        finally:
            with self._lock:
                self._jobs.pop(project_id, None)

    def is_running(self, project_id: int) -> bool:
        with self._lock:
            return project_id in self._jobs

    def cancel(self, project_id: int) -> bool:
        """Ask a running walk to stop before its next entry.

        Returns:
            True if a running walk was signalled
        """
        with self._lock:
            job = self._jobs.get(project_id)
        if job is None:
            return False
        job.cancel_event.set()
        logger.warning(f"Cancellation requested for project {project_id}")
        return True

    def wait(self, project_id: int, timeout: Optional[float] = None) -> bool:
        """Block until a project's walk finishes.

        Returns:
            True if no walk for the project is running any more
        """
        with self._lock:
            job = self._jobs.get(project_id)
        if job is None:
            return True
        job.thread.join(timeout)
        return not job.thread.is_alive()
