"""Source file representation and span tracking for diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Span:
    """A range within a source file."""

    file: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def __str__(self) -> str:
        return f"{self.file}:{self.start_line}:{self.start_col}"


def position_at(source: str, offset: int) -> tuple[int, int]:
    """Return the 1-indexed (line, column) of a character offset."""
    offset = max(0, min(offset, len(source)))
    line = source.count("\n", 0, offset) + 1
    line_start = source.rfind("\n", 0, offset) + 1
    return line, offset - line_start + 1


def span_at(source: str, offset: int, length: int = 1, filename: str = "<stdin>") -> Span:
    """Build a single-line Span covering ``length`` characters at ``offset``.

    The span is clipped to the end of its line so carets never wrap.
    """
    line, col = position_at(source, offset)
    line_end = source.find("\n", offset)
    if line_end == -1:
        line_end = len(source)
    length = max(1, min(length, line_end - offset))
    return Span(filename, line, col, line, col + length - 1)


class SourceFile:
    """Program text under a display name, with 1-indexed line access.

    The name is what spans refer to: a path for files on disk, or a
    pseudo-name such as ``<stdin>`` or an editor URI.
    """

    def __init__(self, name: str, content: str) -> None:
        self.name = name
        self.content = content
        self.lines = content.splitlines()

    @classmethod
    def load(cls, path: Path) -> SourceFile:
        return cls(str(path), path.read_text())

    def line_at(self, n: int) -> str | None:
        """Return the 1-indexed line, or None if out of range."""
        if 1 <= n <= len(self.lines):
            return self.lines[n - 1]
        return None

    def span_at(self, offset: int, length: int = 1) -> Span:
        return span_at(self.content, offset, length, self.name)
