"""Archive readers for zipindex."""

from pathlib import Path
from typing import Union

from zipindex.readers.zip_reader import (
    NESTED_CONTAINER_EXTENSIONS,
    ZipArchiveReader,
    ZipEntry,
    is_nested_container,
)

ArchiveSource = Union[Path, str, bytes]


def open_archive(source: ArchiveSource) -> ZipArchiveReader:
    """Open a ZIP container from a filesystem path or an in-memory buffer.

    Args:
        source: Path to the archive, or its raw bytes

    Returns:
        An opened reader; use it as a context manager

    Raises:
        ArchiveOpenError: If the source is not a valid ZIP structure
    """
    if isinstance(source, (bytes, bytearray)):
        return ZipArchiveReader.from_bytes(bytes(source))
    return ZipArchiveReader.from_path(source)


__all__ = [
    "ArchiveSource",
    "NESTED_CONTAINER_EXTENSIONS",
    "ZipArchiveReader",
    "ZipEntry",
    "is_nested_container",
    "open_archive",
]
