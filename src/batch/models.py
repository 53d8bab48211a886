# src/batch/models.py — v2
"""Batch processing models: BatchJob, FileTask, FileOutcome, ProgressSnapshot, BatchResult."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator


class OperationKind(str, Enum):
    """The four batch transformations."""

    FIND_REPLACE = "find_replace"
    EXTRACT = "extract"
    MERGE = "merge"
    SPLIT = "split"

    @property
    def label(self) -> str:
        """Human-readable operation name used in results and progress."""
        return OPERATION_LABELS[self]


OPERATION_LABELS: dict[OperationKind, str] = {
    OperationKind.FIND_REPLACE: "Regex Find and Replace",
    OperationKind.EXTRACT: "Regex Extract",
    OperationKind.MERGE: "File Merge",
    OperationKind.SPLIT: "File Split",
}


class OperationParams(BaseModel):
    """Parameters shared by all operations; each one reads what it needs."""

    model_config = ConfigDict(frozen=True)

    pattern: str | None = None
    replacement: str = ""
    lines_per_chunk: int | None = None
    add_separators: bool = True


class ProgressSnapshot(BaseModel):
    """Point-in-time view of a job's progress counters."""

    model_config = ConfigDict(frozen=True)

    completed: int
    total: int
    errors: int
    message: str = ""

    @property
    def fraction(self) -> float:
        """Completed share in [0, 1]; 1.0 for an empty job."""
        return self.completed / self.total if self.total else 1.0


ProgressObserver = Callable[[ProgressSnapshot], None]


class BatchJob(BaseModel):
    """One submission to the batch engine. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    operation: OperationKind
    input_files: tuple[Path, ...] = ()
    output_target: Path
    params: OperationParams = Field(default_factory=OperationParams)
    on_progress: ProgressObserver | None = Field(default=None, exclude=True)
    job_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])

    @property
    def total(self) -> int:
        return len(self.input_files)


class FileTask(BaseModel):
    """One input file bound to a job."""

    model_config = ConfigDict(frozen=True)

    index: int
    input_path: Path
    job_id: str

    @property
    def name(self) -> str:
        return self.input_path.name


class FileOutcome(BaseModel):
    """Result of one attempted unit of work."""

    model_config = ConfigDict(frozen=True)

    input_path: Path
    success: bool
    outputs: list[Path] = Field(default_factory=list)
    error: str | None = None

    @classmethod
    def ok(cls, input_path: Path, outputs: list[Path]) -> FileOutcome:
        return cls(input_path=input_path, success=True, outputs=outputs)

    @classmethod
    def failed(cls, input_path: Path, error: BaseException | str) -> FileOutcome:
        detail = error if isinstance(error, str) else (str(error) or type(error).__name__)
        return cls(input_path=input_path, success=False, error=detail)


class BatchResult(BaseModel):
    """Aggregate result of a batch job, built once every unit has resolved."""

    model_config = ConfigDict(frozen=True)

    processed: int
    errors: int
    total: int
    operation: str
    outputs: list[Path] = Field(default_factory=list)
    outcomes: list[FileOutcome] = Field(default_factory=list)
    duration_seconds: float = 0.0

    @model_validator(mode="after")
    def validate_counts(self) -> BatchResult:
        if self.processed > self.total:
            raise ValueError("processed cannot exceed total")
        if self.errors > self.total:
            raise ValueError("errors cannot exceed total")
        if self.errors > self.processed:
            raise ValueError("errors cannot exceed processed")
        return self

    @property
    def success_count(self) -> int:
        return self.processed - self.errors

    @property
    def failures(self) -> list[FileOutcome]:
        return [o for o in self.outcomes if not o.success]

    @classmethod
    def empty(cls, operation: str) -> BatchResult:
        return cls(processed=0, errors=0, total=0, operation=operation)

    def __str__(self) -> str:
        return (
            f"{self.operation} completed: {self.processed}/{self.total} files processed, "
            f"{self.errors} errors"
        )
