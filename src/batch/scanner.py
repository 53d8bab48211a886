# src/batch/scanner.py — v2
"""Input discovery: find the files a batch job should run over.

File names are filtered with shell-style wildcards (``*``, ``?``,
``[abc]``), matched case-sensitively against the name only.
"""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class FileScanner:
    """Scan a directory tree for files whose name matches a pattern."""

    def __init__(self, skip_hidden: bool = True) -> None:
        self._skip_hidden = skip_hidden

    def scan(
        self,
        directory: Path,
        file_pattern: str = "*",
        recursive: bool = True,
    ) -> list[Path]:
        """Discover matching regular files, sorted by path.

        Args:
            directory: Root directory to scan.
            file_pattern: Wildcard applied to the file name.
            recursive: If True, scan subdirectories recursively.

        Raises:
            ValueError: If ``directory`` is not a directory.
        """
        if not directory.is_dir():
            msg = f"Scan root is not a directory: {directory}"
            raise ValueError(msg)

        walker = directory.rglob if recursive else directory.glob
        found: list[Path] = []
        for path in sorted(walker("*")):
            if not path.is_file():
                continue
            if self._skip_hidden and self._is_hidden(path.relative_to(directory)):
                continue
            if not fnmatch.fnmatchcase(path.name, file_pattern):
                continue
            found.append(path)

        logger.info(
            "Scanned %s: %d files match %r (recursive=%s)",
            directory, len(found), file_pattern, recursive,
        )
        return found

    @staticmethod
    def _is_hidden(relative: Path) -> bool:
        return any(part.startswith(".") for part in relative.parts)


def find_matching_files(
    directory: Path, file_pattern: str = "*", recursive: bool = True,
) -> list[Path]:
    """Shortcut for ``FileScanner().scan(...)``."""
    return FileScanner().scan(directory, file_pattern, recursive)
