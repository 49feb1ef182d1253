"""Exception taxonomy for zipindex."""


class ZipIndexError(Exception):
    """Base class for all zipindex errors."""


class ArchiveOpenError(ZipIndexError):
    """The byte source is not a readable ZIP container. Fatal to a walk."""


class EntryReadError(ZipIndexError):
    """A single entry's bytes could not be decompressed."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Cannot read entry {name!r}: {reason}")


class StoreError(ZipIndexError):
    """The index store rejected or failed a write or read."""


class PreviewDecodeError(ZipIndexError):
    """Preview bytes are not valid text. Never escapes the preview extractor."""


class NestingLimitError(ZipIndexError):
    """A nested container exceeds the remaining depth or byte budget."""


class IngestionCancelled(ZipIndexError):
    """A running walk was asked to stop."""


class ProjectNotFoundError(ZipIndexError):
    """No project exists with the given identifier."""

    def __init__(self, project_id: int):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class ProjectAccessError(ZipIndexError):
    """The requesting user does not own the project."""


class StatusTransitionError(ZipIndexError):
    """A lifecycle status change that would move a project backwards."""
