# src/logging/context.py — v2
"""Contextual logging support: attach job and file identity to log records.

Worker threads do not inherit context variables on their own; the worker
pool copies the submitting context into every unit of work.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per job and per file.
_job_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_id", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)
_file: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "file", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    job_id: str | None = None
    operation: str | None = None
    file: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        job_id=_job_id.get(),
        operation=_operation.get(),
        file=_file.get(),
    )


def set_job_context(job_id: str, operation: str) -> None:
    """Set job-level context (called once per batch job)."""
    _job_id.set(job_id)
    _operation.set(operation)


def set_file_context(file: str | None) -> None:
    """Set file-level context (called per unit of work)."""
    _file.set(file)


def clear_context() -> None:
    """Reset all context variables."""
    _job_id.set(None)
    _operation.set(None)
    _file.set(None)
