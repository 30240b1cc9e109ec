"""Parse errors and Rust-style colored diagnostic rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pivot.source import SourceFile, Span


# ── Parse errors ─────────────────────────────────────────────────


class ParseErrorKind(Enum):
    NO_MATCH = "no-match"    # recoverable: try the next alternative
    MALFORMED = "malformed"  # fatal: aborts the whole parse


class ParseError(Exception):
    """Failure of a single production.

    ``remaining`` is the unconsumed input at the point of failure; for
    MALFORMED errors it starts at the offending text.
    """

    def __init__(self, kind: ParseErrorKind, remaining: str, expected: str) -> None:
        self.kind = kind
        self.remaining = remaining
        self.expected = expected
        super().__init__(f"{kind.value}: expected {expected} at {remaining[:20]!r}")

    @property
    def is_fatal(self) -> bool:
        return self.kind is ParseErrorKind.MALFORMED


# ── Diagnostics ──────────────────────────────────────────────────


class Severity(Enum):
    ERROR = "error"


# ANSI color codes
_COLORS = {
    Severity.ERROR: "\033[1;31m",  # bold red
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


@dataclass(frozen=True)
class DiagnosticLabel:
    """Points to a specific source location."""

    span: Span
    message: str


@dataclass(frozen=True)
class Suggestion:
    """A suggested fix."""

    message: str
    replacement: str


@dataclass
class Diagnostic:
    """A single diagnostic message with optional labels and suggestions."""

    severity: Severity
    code: str
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    suggestions: list[Suggestion] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


class DiagnosticRenderer:
    """Renders diagnostics in Rust-style format with colors."""

    def __init__(self, *, color: bool = True) -> None:
        self.color = color
        self._sources: dict[str, SourceFile | None] = {}

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def register_source(self, source: SourceFile) -> None:
        """Provide text for a name that is not a file on disk (e.g. <stdin>), or that is already loaded."""
        self._sources[source.name] = source

    def _get_source_line(self, filename: str, line_num: int) -> str | None:
        """Load and cache the named source, return the 1-indexed line."""
        if filename not in self._sources:
            path = Path(filename)
            try:
                self._sources[filename] = SourceFile.load(path) if path.is_file() else None
            except OSError:
                self._sources[filename] = None
        source = self._sources[filename]
        return source.line_at(line_num) if source is not None else None

    def render(self, diag: Diagnostic) -> str:
        lines: list[str] = []
        sev = diag.severity
        color = _COLORS[sev]

        # Header: error[E100]: message
        lines.append(
            f"{self._c(color)}{sev.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        )

        for label in diag.labels:
            span = label.span
            lines.append(f"  {self._c(_BLUE)}-->{self._c(_RESET)} {span}")
            gutter = f"{span.start_line:>4}"
            lines.append(f"  {self._c(_BLUE)}   |{self._c(_RESET)}")

            source_line = self._get_source_line(span.file, span.start_line)
            if source_line is not None:
                lines.append(
                    f"  {self._c(_BLUE)}{gutter} |{self._c(_RESET)} {source_line}"
                )
                # Carets only make sense under a line we could show
                if span.start_line == span.end_line:
                    caret_len = max(1, span.end_col - span.start_col + 1)
                    padding = " " * (span.start_col - 1)
                    lines.append(
                        f"  {self._c(_BLUE)}   |{self._c(_RESET)} "
                        f"{padding}{self._c(color)}{'^' * caret_len}{self._c(_RESET)}"
                    )

            if label.message:
                lines.append(
                    f"  {self._c(_BLUE)}   |{self._c(_RESET)}   "
                    f"{self._c(color)}{label.message}{self._c(_RESET)}"
                )

        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")

        for suggestion in diag.suggestions:
            lines.append(
                f"  {self._c(_BLUE)}help:{self._c(_RESET)} {suggestion.message}"
            )
            if suggestion.replacement:
                lines.append(
                    f"  {self._c(_BLUE)}try:{self._c(_RESET)} {suggestion.replacement}"
                )

        return "\n".join(lines)


class CompileError(Exception):
    """Batch error carrying one or more diagnostics."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        messages = [d.message for d in diagnostics]
        super().__init__(f"{len(diagnostics)} error(s): {'; '.join(messages)}")
