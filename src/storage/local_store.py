# src/storage/local_store.py — v1
"""Local filesystem file store (default backend)."""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from textflow.storage.base_file_store import BaseFileStore, LineWriter


class LocalFileStore(BaseFileStore):
    """Read and write text files on the local filesystem."""

    def __init__(self, encoding: str = "utf-8") -> None:
        """Initialize with the text encoding used for every read and write."""
        self._encoding = encoding

    @property
    def encoding(self) -> str:
        return self._encoding

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def is_dir(self, path: Path) -> bool:
        return Path(path).is_dir()

    def is_writable_dir(self, path: Path) -> bool:
        p = Path(path)
        return p.is_dir() and os.access(p, os.W_OK | os.X_OK)

    def list_dir(self, path: Path) -> list[Path]:
        p = Path(path)
        if not p.is_dir():
            return []
        return sorted(p.iterdir())

    def read_text(self, path: Path) -> str:
        # newline=None: universal newlines, every terminator becomes "\n"
        with open(path, encoding=self._encoding, newline=None) as fh:
            return fh.read()

    def iter_lines(self, path: Path) -> Iterator[str]:
        with open(path, encoding=self._encoding, newline=None) as fh:
            for line in fh:
                yield line[:-1] if line.endswith("\n") else line

    def write_text(self, path: Path, content: str) -> None:
        with open(path, "w", encoding=self._encoding, newline="\n") as fh:
            fh.write(content)

    def append_text(self, path: Path, content: str) -> None:
        with open(path, "a", encoding=self._encoding, newline="\n") as fh:
            fh.write(content)

    @contextmanager
    def open_writer(self, path: Path, append: bool = False) -> Iterator[LineWriter]:
        mode = "a" if append else "w"
        with open(path, mode, encoding=self._encoding, newline="\n") as fh:
            yield LineWriter(fh)
