# src/patterns/models.py — v1
"""Pattern result models: Match, PatternStatistics, LineStatistics."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Match(BaseModel):
    """A single pattern match inside a text buffer.

    Offsets are character indices, half-open (``text[start:end]``).
    ``groups`` holds capture groups 1..n; a group that did not take part
    in the match is stored as an empty string.
    """

    model_config = ConfigDict(frozen=True)

    start: int
    end: int
    text: str
    groups: list[str] = Field(default_factory=list)

    def group(self, index: int) -> str:
        """Return capture group ``index`` (0 = whole match)."""
        if index == 0:
            return self.text
        return self.groups[index - 1]

    def __str__(self) -> str:
        return f"Match[{self.start}-{self.end}]: {self.text}"


class PatternStatistics(BaseModel):
    """Occurrence statistics for one pattern over one text."""

    model_config = ConfigDict(frozen=True)

    total_occurrences: int = 0
    unique_occurrences: int = 0
    examples: list[str] = Field(default_factory=list)
    top_frequencies: dict[str, int] = Field(default_factory=dict)

    def __str__(self) -> str:
        lines = [
            f"Total occurrences: {self.total_occurrences}",
            f"Unique occurrences: {self.unique_occurrences}",
        ]
        if self.examples:
            lines.append("Examples: " + ", ".join(self.examples[:5]))
        if self.top_frequencies:
            lines.append("")
            lines.append("Most frequent:")
            for match, count in self.top_frequencies.items():
                lines.append(f"{match}: {count} occurrences")
        return "\n".join(lines)


class LineStatistics(BaseModel):
    """Line-length statistics. ``distribution`` has ten buckets: 0-9 ... 90+."""

    model_config = ConfigDict(frozen=True)

    line_count: int
    average_length: float
    min_length: int
    max_length: int
    distribution: list[int]

    def __str__(self) -> str:
        lines = [
            "Line Statistics:",
            f"Total Lines: {self.line_count}",
            f"Average Length: {self.average_length:.2f} characters",
            f"Minimum Length: {self.min_length} characters",
            f"Maximum Length: {self.max_length} characters",
            "",
            "Length Distribution:",
        ]
        for i, count in enumerate(self.distribution[:9]):
            lines.append(f"{i * 10}-{i * 10 + 9} chars: {count} lines")
        lines.append(f"90+ chars: {self.distribution[9]} lines")
        return "\n".join(lines)
