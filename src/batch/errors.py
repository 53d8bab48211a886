# src/batch/errors.py — v1
"""Exception hierarchy for the batch engine.

Job-level errors are raised to the caller before any unit is dispatched.
Per-file errors are caught by the coordinator and counted.
"""

from __future__ import annotations


class TextflowError(Exception):
    """Base class for all textflow errors."""


class JobConfigurationError(TextflowError, ValueError):
    """Job cannot start: bad pattern, bad parameters or unusable output target."""


class FileTaskError(TextflowError):
    """A single unit of work failed."""

    def __init__(self, message: str, input_path: object | None = None) -> None:
        self.input_path = input_path
        super().__init__(message)


class InvalidFileNameError(FileTaskError):
    """File name cannot be split into base name and extension."""
