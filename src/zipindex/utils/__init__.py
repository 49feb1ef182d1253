"""Utility functions for zipindex."""

from zipindex.utils.paths import join_logical, resolve
from zipindex.utils.preview import PREVIEW_BYTES, PREVIEW_EXTENSIONS, is_previewable, preview

__all__ = [
    "PREVIEW_BYTES",
    "PREVIEW_EXTENSIONS",
    "is_previewable",
    "join_logical",
    "preview",
    "resolve",
]
