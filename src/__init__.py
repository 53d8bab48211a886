# src/__init__.py — v1
"""textflow: concurrent batch text transformation."""

from textflow.version import __version__

__all__ = ["__version__"]
