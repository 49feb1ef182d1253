"""Reader for ZIP containers (and JARs, which are ZIP files)."""

import io
import logging
import zipfile
import zlib
from pathlib import Path
from typing import IO, Iterator, Optional, Union

from zipindex.errors import ArchiveOpenError, EntryReadError

logger = logging.getLogger(__name__)

# Entries with these suffixes are opened and walked as containers
NESTED_CONTAINER_EXTENSIONS = {".jar"}

# Everything zipfile/zlib raise for a damaged container or member stream
_ZIP_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    NotImplementedError,  # unsupported compression method or zip version
    RuntimeError,  # encrypted member
    EOFError,
    OSError,
    ValueError,  # archive already closed
)


def is_nested_container(extension: Optional[str]) -> bool:
    """Check if an extension marks an entry as a nested container."""
    return extension is not None and extension.lower() in NESTED_CONTAINER_EXTENSIONS


class ZipEntry:
    """A member of an open ZIP container.

    Bytes are only decompressed when read_bytes() or read_head() is called.
    """

    __slots__ = ("_archive", "_info")

    def __init__(self, archive: zipfile.ZipFile, info: zipfile.ZipInfo):
        self._archive = archive
        self._info = info

    @property
    def name(self) -> str:
        return self._info.filename

    @property
    def is_dir(self) -> bool:
        return self._info.is_dir()

    @property
    def size(self) -> int:
        return self._info.file_size

    def read_bytes(self) -> bytes:
        """Decompress the full content of the entry."""
        try:
            with self._archive.open(self._info) as stream:
                return stream.read()
        except _ZIP_ERRORS as e:
            raise EntryReadError(self.name, str(e)) from e

    def read_head(self, n: int) -> bytes:
        """Decompress at most the first n bytes of the entry."""
        try:
            with self._archive.open(self._info) as stream:
                return stream.read(n)
        except _ZIP_ERRORS as e:
            raise EntryReadError(self.name, str(e)) from e

    def __repr__(self) -> str:
        return f"ZipEntry({self.name!r}, size={self.size})"


class ZipArchiveReader:
    """An opened ZIP container yielding its entries in stored order."""

    def __init__(self, file: Union[str, Path, IO[bytes]], label: str):
        self.label = label
        try:
            self._archive = zipfile.ZipFile(file, "r")
        except _ZIP_ERRORS as e:
            raise ArchiveOpenError(f"Cannot open archive {label}: {e}") from e

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ZipArchiveReader":
        return cls(Path(path), label=str(path))

    @classmethod
    def from_bytes(cls, data: bytes, label: str = "<memory>") -> "ZipArchiveReader":
        return cls(io.BytesIO(data), label=label)

    def entries(self) -> Iterator[ZipEntry]:
        """Yield every member of the archive.

        Yields:
            ZipEntry objects in central-directory order
        """
        for info in self._archive.infolist():
            yield ZipEntry(self._archive, info)

    def __len__(self) -> int:
        return len(self._archive.infolist())

    def close(self) -> None:
        self._archive.close()

    def __enter__(self) -> "ZipArchiveReader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
