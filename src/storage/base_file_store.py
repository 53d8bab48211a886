# src/storage/base_file_store.py — v1
"""Abstract file store: whole-file and line-streaming text I/O.

Lines are yielded without their terminator and written back with a single
``\\n`` whatever the source line-ending style was.
"""

from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator
from contextlib import AbstractContextManager
from pathlib import Path
from typing import TextIO


class LineWriter:
    """Thin wrapper over an open text handle that terminates every line."""

    def __init__(self, handle: TextIO) -> None:
        self._handle = handle
        self.lines_written = 0

    def write_line(self, line: str) -> None:
        self._handle.write(line)
        self._handle.write("\n")
        self.lines_written += 1

    def write_lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.write_line(line)

    def write(self, text: str) -> None:
        """Write raw text, no terminator added."""
        self._handle.write(text)


class BaseFileStore(ABC):
    """Unified interface for the storage the batch engine reads and writes."""

    @abstractmethod
    def exists(self, path: Path) -> bool:
        """Check if path exists."""

    @abstractmethod
    def is_dir(self, path: Path) -> bool:
        """Check if path is a directory."""

    @abstractmethod
    def is_writable_dir(self, path: Path) -> bool:
        """Check that path is an existing directory new files can be created in."""

    @abstractmethod
    def list_dir(self, path: Path) -> list[Path]:
        """List directory entries, sorted by name."""

    @abstractmethod
    def read_text(self, path: Path) -> str:
        """Read a whole file as one string."""

    @abstractmethod
    def iter_lines(self, path: Path) -> Iterator[str]:
        """Stream the lines of a file, terminators removed."""

    @abstractmethod
    def write_text(self, path: Path, content: str) -> None:
        """Create or truncate ``path`` and write ``content``."""

    @abstractmethod
    def append_text(self, path: Path, content: str) -> None:
        """Append ``content`` to ``path``, creating it if needed."""

    @abstractmethod
    def open_writer(self, path: Path, append: bool = False) -> AbstractContextManager[LineWriter]:
        """Open ``path`` for streaming line output."""

    # --- Helpers built on the primitives ---

    def read_lines(self, path: Path) -> list[str]:
        """Read every line of a file into a list."""
        return list(self.iter_lines(path))

    def write_lines(self, path: Path, lines: Iterable[str]) -> int:
        """Write ``lines`` to ``path``. Returns the number of lines written."""
        with self.open_writer(path) as writer:
            writer.write_lines(lines)
            return writer.lines_written

    def process_by_line(
        self,
        input_path: Path,
        output_path: Path,
        transform: Callable[[str], str],
    ) -> int:
        """Stream ``input_path`` through ``transform`` into ``output_path``.

        Each transformed line is written as soon as it is produced. The input
        is opened first, so an unreadable input leaves no output file behind.
        Returns the number of lines written.
        """
        lines = iter(self.iter_lines(input_path))
        first = next(lines, None)
        with self.open_writer(output_path) as writer:
            if first is not None:
                for line in itertools.chain([first], lines):
                    writer.write_line(transform(line))
            return writer.lines_written
