# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides isolated settings, an output directory and a helper that writes
small text files. All I/O stays inside pytest's tmp_path.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from textflow.batch.models import ProgressSnapshot
from textflow.config.settings import Settings
from textflow.logging.context import clear_context


# === FIXTURES: Settings ===


@pytest.fixture
def settings() -> Settings:
    """Default settings, ignoring any .env file in the working directory."""
    return Settings(_env_file=None, batch_max_workers=4)


# === FIXTURES: Filesystem ===


@pytest.fixture
def input_dir(tmp_path: Path) -> Path:
    d = tmp_path / "input"
    d.mkdir()
    return d


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    d = tmp_path / "output"
    d.mkdir()
    return d


@pytest.fixture
def make_file(input_dir: Path) -> Callable[[str, str], Path]:
    """Write ``content`` to ``input_dir/name`` and return the path."""

    def _make(name: str, content: str) -> Path:
        path = input_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("utf-8"))
        return path

    return _make


# === FIXTURES: Progress ===


@pytest.fixture
def snapshots() -> list[ProgressSnapshot]:
    """List that collects delivered progress snapshots (use .append as observer)."""
    return []


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()
