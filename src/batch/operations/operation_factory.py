# src/batch/operations/operation_factory.py — v1
"""Factory: instantiate a batch operation from its kind."""

from __future__ import annotations

from textflow.batch.models import OperationKind
from textflow.batch.operations.base_operation import BaseOperation
from textflow.batch.operations.extract import ExtractOperation
from textflow.batch.operations.find_replace import FindReplaceOperation
from textflow.batch.operations.merge import MergeOperation
from textflow.batch.operations.split import SplitOperation
from textflow.config.settings import Settings
from textflow.storage.base_file_store import BaseFileStore

# Registry maps kind → operation class.
_OPERATION_REGISTRY: dict[OperationKind, type[BaseOperation]] = {}


def _register_defaults() -> None:
    """Register built-in operations."""
    for cls in [FindReplaceOperation, ExtractOperation, MergeOperation, SplitOperation]:
        _OPERATION_REGISTRY[cls.kind] = cls


_register_defaults()


class UnsupportedOperationError(ValueError):
    """Raised when no operation is registered for a kind."""


def create_operation(
    kind: OperationKind | str,
    settings: Settings | None = None,
    store: BaseFileStore | None = None,
) -> BaseOperation:
    """Create the operation registered for ``kind``.

    Raises:
        UnsupportedOperationError: If nothing is registered for ``kind``.
    """
    try:
        key = OperationKind(kind)
    except ValueError:
        key = None
    cls = _OPERATION_REGISTRY.get(key) if key is not None else None
    if cls is None:
        raise UnsupportedOperationError(
            f"No operation for {kind!r}. "
            f"Supported: {', '.join(supported_operations())}"
        )
    return cls(settings=settings, store=store)


def register_operation(kind: OperationKind, cls: type[BaseOperation]) -> None:
    """Register a custom operation class for a kind."""
    _OPERATION_REGISTRY[kind] = cls


def supported_operations() -> list[str]:
    """Return the registered operation kinds."""
    return sorted(k.value for k in _OPERATION_REGISTRY)
