# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for batch engine defaults: worker count, output
naming, merge separators, split size and logging.
Every field can be overridden with a ``TEXTFLOW_`` environment variable.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TEXTFLOW_",
        extra="ignore",
    )

    # === Worker pool ===
    batch_max_workers: int | None = None

    # === Output naming ===
    processed_suffix: str = "_processed"
    extracted_suffix: str = "_extracted"
    part_suffix: str = "_part"
    output_extension: str = ".txt"

    # === Merge ===
    merge_add_separators: bool = True
    merge_separator_char: str = "="
    merge_separator_width: int = 50

    # === Split ===
    split_lines_per_chunk: int = 1000

    # === File I/O ===
    file_encoding: str = "utf-8"

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("batch_max_workers")
    @classmethod
    def validate_max_workers(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError("batch_max_workers must be >= 1")
        return v

    @field_validator("split_lines_per_chunk", "merge_separator_width")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("value must be >= 1")
        return v

    @field_validator("output_extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        if v and not v.startswith("."):
            return f".{v}"
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if len(self.merge_separator_char) != 1:
            errors.append("MERGE_SEPARATOR_CHAR must be a single character")

        suffixes = [self.processed_suffix, self.extracted_suffix, self.part_suffix]
        if any(not s for s in suffixes):
            errors.append("Output suffixes must not be empty")
        elif len(set(suffixes)) != len(suffixes):
            errors.append("PROCESSED_SUFFIX, EXTRACTED_SUFFIX and PART_SUFFIX must differ")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def separator_rule(self) -> str:
        """Horizontal rule used around merge file headers."""
        return self.merge_separator_char * self.merge_separator_width


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-job config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
