"""Bounded text previews for recognized text-like files."""

import codecs
from typing import Optional

from zipindex.errors import PreviewDecodeError

PREVIEW_BYTES = 500

# Extensions whose content is decoded for a preview (compared lower-cased)
PREVIEW_EXTENSIONS = {
    ".txt", ".xml", ".json", ".properties",
    ".html", ".css", ".js", ".ts",
    ".java", ".class", ".py",
}


def is_previewable(extension: Optional[str]) -> bool:
    """Check if an extension is eligible for a text preview."""
    return extension is not None and extension.lower() in PREVIEW_EXTENSIONS


def decode_head(data: bytes, limit: int = PREVIEW_BYTES) -> str:
    """Strictly decode the first ``limit`` bytes as UTF-8.

    When the data reaches the limit, a multi-byte character cut off at the
    boundary is dropped instead of being reported as invalid. Shorter data
    must decode completely.

    Raises:
        PreviewDecodeError: If the bytes are not valid UTF-8
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="strict")
    try:
        return decoder.decode(data[:limit], final=len(data) < limit)
    except UnicodeDecodeError as e:
        raise PreviewDecodeError(str(e)) from e


def preview(data: bytes, extension: Optional[str]) -> Optional[str]:
    """Extract a text preview, or None for unrecognized or undecodable content.

    Args:
        data: Leading bytes of the file (only the first PREVIEW_BYTES are used)
        extension: File extension including the dot, any case

    Returns:
        At most PREVIEW_BYTES characters of text, or None
    """
    if not is_previewable(extension):
        return None
    try:
        return decode_head(data)
    except PreviewDecodeError:
        return None
