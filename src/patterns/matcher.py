# src/patterns/matcher.py — v1
"""Pattern matching facade over the standard ``re`` engine.

All operations compile through :func:`compile_pattern`, so an invalid
pattern always surfaces as :class:`PatternSyntaxError`.

Replacement strings use the ``re`` template syntax (``\\1``, ``\\g<name>``).
Dollar references are accepted as well: ``$2``, ``${name}``, and ``\\$`` for
a literal dollar sign.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Callable

from textflow.batch.errors import TextflowError
from textflow.patterns.models import Match


class PatternSyntaxError(TextflowError, ValueError):
    """Raised when a pattern (or a replacement template) cannot be compiled."""

    def __init__(self, description: str, pattern: str, index: int | None = None) -> None:
        self.description = description
        self.pattern = pattern
        self.index = index
        super().__init__(self._render())

    def _render(self) -> str:
        if self.index is None:
            return f"{self.description}: {self.pattern!r}"
        return (
            f"{self.description} near index {self.index}\n"
            f"{self.pattern}\n"
            f"{' ' * self.index}^"
        )


@functools.lru_cache(maxsize=256)
def compile_pattern(pattern: str, flags: int = 0) -> re.Pattern[str]:
    """Compile ``pattern`` once and cache the result.

    Raises:
        PatternSyntaxError: If the pattern is not valid ``re`` syntax.
    """
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        raise PatternSyntaxError(exc.msg, pattern, exc.pos) from exc


def validate(pattern: str) -> bool:
    """Return True if ``pattern`` compiles."""
    return pattern_error(pattern) is None


def pattern_error(pattern: str) -> str | None:
    """Human-readable compile error for ``pattern``, or None if it is valid."""
    try:
        compile_pattern(pattern)
    except PatternSyntaxError as exc:
        return str(exc)
    return None


def to_match(m: re.Match[str]) -> Match:
    """Convert an ``re`` match into a :class:`Match`."""
    return Match(
        start=m.start(),
        end=m.end(),
        text=m.group(),
        groups=[g if g is not None else "" for g in m.groups()],
    )


def find_all(text: str, pattern: str | re.Pattern[str]) -> list[Match]:
    """All leftmost, non-overlapping matches, left to right."""
    compiled = _ensure_compiled(pattern)
    return [to_match(m) for m in compiled.finditer(text)]


def replace_all(text: str, pattern: str | re.Pattern[str], replacement: str) -> str:
    """Replace every match of ``pattern`` in ``text``."""
    compiled = _ensure_compiled(pattern)
    return compiled.sub(translate_replacement(replacement, compiled), text)


def replace_first(text: str, pattern: str | re.Pattern[str], replacement: str) -> str:
    """Replace the first match of ``pattern`` in ``text``."""
    compiled = _ensure_compiled(pattern)
    return compiled.sub(translate_replacement(replacement, compiled), text, count=1)


def replacer(
    pattern: str | re.Pattern[str], replacement: str, count: int = 0,
) -> Callable[[str], str]:
    """Build a reusable ``text -> text`` substitution function.

    The template is translated and checked once, so the returned function
    can be applied line by line. ``count=0`` replaces every match.
    """
    compiled = _ensure_compiled(pattern)
    template = translate_replacement(replacement, compiled)
    return functools.partial(compiled.sub, template, count=count)


def split(text: str, pattern: str | re.Pattern[str]) -> list[str]:
    """Split ``text`` around matches of ``pattern``.

    Capture groups are not included in the result. Trailing empty segments
    are dropped, and a zero-width match at offset 0 does not produce a
    leading empty segment. Without any match the result is ``[text]``.
    """
    compiled = _ensure_compiled(pattern)
    segments: list[str] = []
    index = 0
    for m in compiled.finditer(text):
        if m.end() == 0:
            continue
        segments.append(text[index:m.start()])
        index = m.end()

    if not segments:
        return [text]

    segments.append(text[index:])
    while segments and segments[-1] == "":
        segments.pop()
    return segments


def matches(text: str, pattern: str | re.Pattern[str]) -> bool:
    """True if the whole of ``text`` matches ``pattern``."""
    return _ensure_compiled(pattern).fullmatch(text) is not None


# --- Replacement templates ---

_TEMPLATE_REF_RE = re.compile(r"\\(?:g<([^>]*)>|([1-9]\d?)|(.))", re.DOTALL)
# Letter escapes ``re`` accepts in a template; any other ASCII letter is an error.
_TEMPLATE_LETTER_ESCAPES = frozenset("abfnrtv")


def translate_replacement(replacement: str, compiled: re.Pattern[str]) -> str:
    """Turn dollar references into ``re`` template syntax and check group refs.

    A ``$`` followed by digits takes the first digit, then keeps adding
    digits while the number still names an existing group.

    Raises:
        PatternSyntaxError: If the template names a group the pattern lacks.
    """
    out: list[str] = []
    i = 0
    n = len(replacement)
    while i < n:
        ch = replacement[i]
        if ch == "\\" and i + 1 < n:
            if replacement[i + 1] == "$":
                out.append("$")
            else:
                out.append(replacement[i:i + 2])
            i += 2
            continue
        if ch == "$" and i + 1 < n:
            nxt = replacement[i + 1]
            if nxt.isdigit():
                j = i + 2
                number = int(nxt)
                while j < n and replacement[j].isdigit():
                    candidate = number * 10 + int(replacement[j])
                    if candidate > compiled.groups:
                        break
                    number = candidate
                    j += 1
                out.append(f"\\g<{number}>")
                i = j
                continue
            if nxt == "{":
                close = replacement.find("}", i + 2)
                if close == -1:
                    raise PatternSyntaxError(
                        "Unclosed group reference in replacement", replacement, i,
                    )
                out.append(f"\\g<{replacement[i + 2:close]}>")
                i = close + 1
                continue
        out.append(ch)
        i += 1

    template = "".join(out)
    _check_group_refs(template, compiled)
    return template


def _check_group_refs(template: str, compiled: re.Pattern[str]) -> None:
    if re.search(r"(?<!\\)(?:\\\\)*\\$", template):
        raise PatternSyntaxError("Trailing backslash in replacement", template, len(template) - 1)
    for ref in _TEMPLATE_REF_RE.finditer(template):
        escaped = ref.group(3)
        if escaped is not None:
            if escaped.isascii() and escaped.isalpha() and escaped not in _TEMPLATE_LETTER_ESCAPES:
                raise PatternSyntaxError(
                    f"Bad escape \\{escaped} in replacement", template, ref.start(),
                )
            continue
        name = ref.group(1) if ref.group(1) is not None else ref.group(2)
        if name.isdigit():
            if int(name) > compiled.groups:
                raise PatternSyntaxError(
                    f"No group {name} in pattern", template, ref.start(),
                )
        elif name not in compiled.groupindex:
            raise PatternSyntaxError(
                f"No group named {name!r} in pattern", template, ref.start(),
            )


def _ensure_compiled(pattern: str | re.Pattern[str]) -> re.Pattern[str]:
    if isinstance(pattern, re.Pattern):
        return pattern
    return compile_pattern(pattern)
