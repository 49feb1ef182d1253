"""Protocol definitions for swappable components."""

from zipindex.protocols.archive import ArchiveEntry, ArchiveReader
from zipindex.protocols.index_store import IndexStore

__all__ = ["ArchiveEntry", "ArchiveReader", "IndexStore"]
