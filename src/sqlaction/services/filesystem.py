"""Filesystem helpers for sqlaction."""

import glob
import logging
from pathlib import Path
from typing import List


class FileSystemService:
    """Encapsulates read-only file access."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def read_text(self, path: str) -> str:
        # utf-8-sig drops the BOM that SSMS writes into saved scripts.
        content = Path(path).read_text(encoding="utf-8-sig")
        self.logger.debug("Read %s characters from %s", len(content), path)
        return content

    def find_files(self, pattern: str) -> List[str]:
        if Path(pattern).is_file():
            return [pattern]
        if not any(char in pattern for char in "*?["):
            return []
        return sorted(match for match in glob.glob(pattern, recursive=True) if Path(match).is_file())
