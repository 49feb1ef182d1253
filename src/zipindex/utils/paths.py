"""Logical path resolution across nested-container boundaries.

A logical path is the entry's raw name prefixed with the logical path of the
container it was found in, so ``outer.jar`` holding ``inner/readme.txt``
yields ``outer.jar/inner/readme.txt``. Paths are always '/'-separated and
never carry a trailing slash.
"""

import posixpath
from typing import Optional

from zipindex.models import ResolvedPath


def join_logical(base_path: str, relative: str) -> str:
    """Prefix a container-relative path with its container's logical path."""
    return f"{base_path}/{relative}" if base_path else relative


def resolve(
    raw_name: str, base_path: str = "", is_directory: Optional[bool] = None
) -> ResolvedPath:
    """Compute the logical location of an archive entry.

    Args:
        raw_name: Entry name as stored in its container (directories end in '/')
        base_path: Logical path of the enclosing container, "" at top level
        is_directory: Override directory detection (defaults to trailing '/')

    Returns:
        ResolvedPath with path, base name, parent directory and extension

    Raises:
        ValueError: If the name is empty once trailing slashes are removed
    """
    if is_directory is None:
        is_directory = raw_name.endswith("/")

    relative = raw_name.rstrip("/")
    if not relative:
        raise ValueError(f"Entry name has no path segments: {raw_name!r}")

    head, _, name = relative.rpartition("/")

    if head:
        parent: Optional[str] = join_logical(base_path, head)
    else:
        # Top-level entry of a nested container hangs off the container itself
        parent = base_path or None

    extension = None
    if not is_directory:
        extension = posixpath.splitext(name)[1] or None

    return ResolvedPath(
        path=join_logical(base_path, relative),
        name=name,
        parent_directory=parent,
        extension=extension,
    )
