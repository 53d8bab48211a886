# src/batch/operations/base_operation.py — v1
"""Abstract batch operation: how one unit of work turns an input file into outputs.

An operation is stateless across jobs. Per-job resources (compiled
pattern, shared merge output) live inside ``session()``, which yields the
per-unit callable the coordinator dispatches.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable
from contextlib import AbstractContextManager
from pathlib import Path
from typing import ClassVar

from textflow.batch.errors import InvalidFileNameError, JobConfigurationError
from textflow.batch.models import BatchJob, FileTask, OperationKind
from textflow.batch.progress import ProgressReporter
from textflow.config.settings import Settings, load_settings
from textflow.patterns.matcher import PatternSyntaxError, compile_pattern
from textflow.storage.base_file_store import BaseFileStore
from textflow.storage.local_store import LocalFileStore

UnitProcessor = Callable[[FileTask], list[Path]]


def base_name(path: Path) -> str:
    """File name up to its last dot.

    Raises:
        InvalidFileNameError: If the name has no dot at all.
    """
    name = Path(path).name
    dot = name.rfind(".")
    if dot == -1:
        raise InvalidFileNameError(f"File name has no extension: {name}", path)
    return name[:dot]


class BaseOperation(ABC):
    """Unified interface for batch transformations."""

    kind: ClassVar[OperationKind]
    requires_pattern: ClassVar[bool] = False
    parallel: ClassVar[bool] = False
    # False when output_target names a single file rather than a directory
    writes_directory: ClassVar[bool] = True

    def __init__(
        self,
        settings: Settings | None = None,
        store: BaseFileStore | None = None,
    ) -> None:
        self._settings = settings or load_settings()
        self._store = store or LocalFileStore(encoding=self._settings.file_encoding)

    @property
    def label(self) -> str:
        return self.kind.label

    @property
    def store(self) -> BaseFileStore:
        return self._store

    # --- Job-level checks (run before any file is touched) ---

    def validate(self, job: BatchJob) -> None:
        """Check operation parameters.

        A pattern given to an operation that does not use one is still
        compiled, so a bad pattern never reaches the files.

        Raises:
            JobConfigurationError: On a missing, empty or invalid pattern.
        """
        if self.requires_pattern or job.params.pattern:
            self.compile(job)

    def compile(self, job: BatchJob) -> re.Pattern[str]:
        pattern = job.params.pattern
        if not pattern:
            raise JobConfigurationError(f"{self.label} requires a non-empty pattern")
        try:
            return compile_pattern(pattern)
        except PatternSyntaxError as exc:
            raise JobConfigurationError(f"Invalid pattern: {exc}") from exc

    def check_output(self, job: BatchJob) -> None:
        """Check the output target is usable.

        Raises:
            JobConfigurationError: If the directory (or the parent directory
                of a single output file) is missing or not writable.
        """
        target = job.output_target
        if self.writes_directory:
            if not self._store.is_dir(target):
                raise JobConfigurationError(f"Output directory does not exist: {target}")
            if not self._store.is_writable_dir(target):
                raise JobConfigurationError(f"Output directory is not writable: {target}")
            self._check_output_collisions(job)
            return

        if self._store.is_dir(target):
            raise JobConfigurationError(f"Output target is a directory, expected a file: {target}")
        parent = target.parent
        if not self._store.is_writable_dir(parent):
            raise JobConfigurationError(f"Output directory is missing or not writable: {parent}")

    # --- Per-unit work ---

    @abstractmethod
    def session(
        self, job: BatchJob, reporter: ProgressReporter,
    ) -> AbstractContextManager[UnitProcessor]:
        """Acquire per-job resources and yield the per-unit callable."""

    def output_suffix(self) -> str | None:
        """Suffix of the one output file written per input, if any."""
        return None

    def output_path(self, job: BatchJob, input_path: Path, suffix: str) -> Path:
        """``<output dir>/<base><suffix><extension>`` for ``input_path``."""
        return job.output_target / f"{base_name(input_path)}{suffix}{self._settings.output_extension}"

    def _check_output_collisions(self, job: BatchJob) -> None:
        # Each worker must own its output file.
        suffix = self.output_suffix()
        if suffix is None:
            return
        owners: dict[Path, Path] = {}
        for input_path in job.input_files:
            try:
                output = self.output_path(job, input_path, suffix)
            except InvalidFileNameError:
                continue  # reported per file at dispatch
            if output in owners:
                raise JobConfigurationError(
                    f"{owners[output]} and {input_path} would both write {output.name}"
                )
            owners[output] = input_path
