"""Runtime configuration, read from the environment (and an optional .env)."""

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _optional_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    if raw.strip().lower() in {"none", "unlimited"}:
        return None
    return int(raw)


DATABASE_PATH = os.getenv("ZIPINDEX_DATABASE", "zipindex.db")
ARCHIVE_DIR = os.getenv("ZIPINDEX_ARCHIVE_DIR", "uploads")

# Nested .jar expansion policy
MAX_NESTING_DEPTH = _optional_int("ZIPINDEX_MAX_NESTING_DEPTH", 32)
MAX_NESTED_BYTES = _optional_int("ZIPINDEX_MAX_NESTED_BYTES", None)

PAGE_SIZE = int(os.getenv("ZIPINDEX_PAGE_SIZE", "50"))
LOG_LEVEL = os.getenv("ZIPINDEX_LOG_LEVEL", "INFO")
