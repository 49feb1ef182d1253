"""Forward-only project status transitions."""

import logging

from zipindex.errors import ProjectNotFoundError, StatusTransitionError
from zipindex.models import ProjectStatus
from zipindex.storage import IndexStoreSQLite

logger = logging.getLogger(__name__)

_ALLOWED = {
    ProjectStatus.UPLOADED: {ProjectStatus.PROCESSING, ProjectStatus.FAILED},
    ProjectStatus.PROCESSING: {ProjectStatus.COMPLETED, ProjectStatus.FAILED},
    ProjectStatus.COMPLETED: set(),
    ProjectStatus.FAILED: set(),
}


class LifecycleTracker:
    """Owns the status state machine of each project.

    uploaded -> processing -> {completed, failed}; a project whose archive
    cannot be found before its walk starts may go straight to failed.
    """

    def __init__(self, store: IndexStoreSQLite):
        self.store = store

    def can_transition(self, current: ProjectStatus, target: ProjectStatus) -> bool:
        return target in _ALLOWED[current]

    def set_status(self, project_id: int, status: ProjectStatus | str) -> ProjectStatus:
        """Move a project to a new status.

        Args:
            project_id: Project to update
            status: Target status

        Returns:
            The status now stored

        Raises:
            ProjectNotFoundError: If the project does not exist
            StatusTransitionError: If the move is not forward along the lifecycle
        """
        target = ProjectStatus(status)
        project = self.store.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)

        current = project.status
        if current == target and not current.is_terminal:
            return current
        if not self.can_transition(current, target):
            raise StatusTransitionError(
                f"Project {project_id}: cannot move from {current.value} to {target.value}"
            )

        if not self.store.update_status(project_id, target):
            raise ProjectNotFoundError(project_id)
        logger.info(f"Project {project_id}: {current.value} -> {target.value}")
        return target

    def record_errors(self, project_id: int, error_count: int) -> None:
        """Store how many entries a walk had to skip or index without preview."""
        self.store.set_error_count(project_id, error_count)
