"""Project (ingestion job) model."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class ProjectStatus(str, Enum):
    """Lifecycle of one ingestion job."""

    UPLOADED = "uploaded"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ProjectStatus.COMPLETED, ProjectStatus.FAILED)


@dataclass(frozen=True)
class Project:
    """An uploaded archive and the state of its ingestion."""

    id: int
    user_id: int
    name: str
    description: Optional[str]
    original_filename: str
    archive_path: str
    archive_size: int
    status: ProjectStatus
    error_count: int
    created_at: datetime
    updated_at: datetime
