"""Protocols for archive readers and the entries they yield."""

from typing import Iterator, Protocol, runtime_checkable


@runtime_checkable
class ArchiveEntry(Protocol):
    """One file or directory inside a container.

    Content is materialized lazily: most entries never have their bytes read.
    """

    @property
    def name(self) -> str:
        """Raw name as stored, forward-slash separated, directories end in '/'."""
        ...

    @property
    def is_dir(self) -> bool:
        ...

    @property
    def size(self) -> int:
        """Declared uncompressed size."""
        ...

    def read_bytes(self) -> bytes:
        """Decompress the full content. Raises EntryReadError."""
        ...

    def read_head(self, n: int) -> bytes:
        """Decompress at most the first n bytes. Raises EntryReadError."""
        ...


@runtime_checkable
class ArchiveReader(Protocol):
    """An opened container. Uses structural subtyping - no inheritance required."""

    def entries(self) -> Iterator[ArchiveEntry]:
        """Yield entries in stored order. The iterator is not restartable."""
        ...

    def close(self) -> None:
        ...
