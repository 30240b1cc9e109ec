"""Parser for the Pivot transformation language.

Recursive descent directly over source text. Each grammar production is
a function ``text -> (remaining, value)`` that raises ParseError on
failure; productions compose by sequencing and by ordered alternation
in ``atom``. Grammar::

    expression   := atom (';' expression)?
    atom         := translation | rotation | iterate | either_or
    translation  := 'translation' '(' float ',' float ')'
    rotation     := 'rotation' '(' float ',' float ',' float ')'
    iterate      := 'iter' '(' expression ')'
    either_or    := leaf 'or' leaf
    leaf         := '{' expression '}'

Alternation only backtracks on NO_MATCH. A MALFORMED error (a complete
atom followed by something that is neither ';' nor a closer) aborts the
whole parse.
"""

from __future__ import annotations

import math
import re
from typing import Callable, TypeVar

from pivot.ast_nodes import (
    Chained,
    EitherOr,
    Expression,
    Iterate,
    Point,
    Program,
    Rotation,
    Translation,
)
from pivot.errors import (
    CompileError,
    Diagnostic,
    DiagnosticLabel,
    ParseError,
    ParseErrorKind,
    Severity,
    Suggestion,
)
from pivot.source import SourceFile
from pivot.tokens import (
    CLOSERS,
    COMMA,
    ITER,
    LBRACE,
    LPAREN,
    OR,
    RBRACE,
    ROTATION,
    RPAREN,
    SEMICOLON,
    TRANSLATION,
    WHITESPACE,
)

T = TypeVar("T")

_FLOAT_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

# Used only to size diagnostic carets
_TOKEN_RE = re.compile(r"[A-Za-z_]\w*|[+-]?[\d.]+(?:[eE][+-]?\d+)?|\S")

# Leading words that start an atom, for "missing ';'" hints
_ATOM_STARTS = (TRANSLATION, ROTATION, ITER, LBRACE)


# ── Lexical helpers ──────────────────────────────────────────────


def _skip_whitespace(text: str) -> str:
    return text.lstrip(WHITESPACE)


def _no_match(text: str, expected: str) -> ParseError:
    return ParseError(ParseErrorKind.NO_MATCH, text, expected)


def _tag(text: str, word: str) -> str:
    if text.startswith(word):
        return text[len(word):]
    raise _no_match(text, repr(word))


def _padded(text: str, symbol: str) -> str:
    """Consume ``symbol`` with optional whitespace on both sides."""
    return _skip_whitespace(_tag(_skip_whitespace(text), symbol))


def _parenthesized(text: str, inner: Callable[[str], tuple[str, T]]) -> tuple[str, T]:
    text = _skip_whitespace(_tag(text, LPAREN))
    text, value = inner(text)
    text = _tag(_skip_whitespace(text), RPAREN)
    return text, value


# ── Separators and literals ──────────────────────────────────────


def comma_separator(text: str) -> tuple[str, None]:
    return _padded(text, COMMA), None


def semicolon_separator(text: str) -> tuple[str, None]:
    return _padded(text, SEMICOLON), None


def float_literal(text: str) -> tuple[str, float]:
    """Decimal number with optional sign, fraction and exponent."""
    m = _FLOAT_RE.match(text)
    if m is None:
        raise _no_match(text, "a number")
    value = float(m.group())
    if not math.isfinite(value):
        # e.g. 1e400 overflows to inf
        raise _no_match(text, "a finite number")
    return text[m.end():], value


def float_pair(text: str) -> tuple[str, tuple[float, float]]:
    text, u = float_literal(text)
    text, _ = comma_separator(text)
    text, v = float_literal(text)
    return text, (u, v)


def float_triple(text: str) -> tuple[str, tuple[float, float, float]]:
    text, (u, v) = float_pair(text)
    text, _ = comma_separator(text)
    text, theta = float_literal(text)
    return text, (u, v, theta)


def parenthesized_float_pair(text: str) -> tuple[str, tuple[float, float]]:
    return _parenthesized(text, float_pair)


def parenthesized_float_triple(text: str) -> tuple[str, tuple[float, float, float]]:
    return _parenthesized(text, float_triple)


# ── Atoms ────────────────────────────────────────────────────────


def translation(text: str) -> tuple[str, Translation]:
    text = _skip_whitespace(_tag(text, TRANSLATION))
    text, (u, v) = parenthesized_float_pair(text)
    return text, Translation(u, v)


def rotation(text: str) -> tuple[str, Rotation]:
    text = _skip_whitespace(_tag(text, ROTATION))
    text, (u, v, theta) = parenthesized_float_triple(text)
    return text, Rotation(u, v, theta)


def iterate(text: str) -> tuple[str, Iterate]:
    text = _skip_whitespace(_tag(text, ITER))
    text, body = _parenthesized(text, expression)
    return text, Iterate(body)


def either_or_leaf(text: str) -> tuple[str, Expression]:
    """A braced branch: ``{ expression }``."""
    text = _skip_whitespace(_tag(text, LBRACE))
    text, expr = expression(text)
    text = _tag(_skip_whitespace(text), RBRACE)
    return text, expr


def either_or(text: str) -> tuple[str, EitherOr]:
    text, left = either_or_leaf(text)
    text = _padded(text, OR)
    text, right = either_or_leaf(text)
    return text, EitherOr(left, right)


# Order is significant: first match wins
_ATOMS: tuple[Callable[[str], tuple[str, Expression]], ...] = (
    translation,
    rotation,
    iterate,
    either_or,
)


def atom(text: str) -> tuple[str, Expression]:
    """Try each atom production in order.

    MALFORMED errors propagate at once. If every alternative fails with
    NO_MATCH, the error that got furthest into the input is raised.
    """
    furthest = _no_match(text, "an expression")
    for production in _ATOMS:
        try:
            return production(text)
        except ParseError as e:
            if e.is_fatal:
                raise
            if e.remaining != text and len(e.remaining) <= len(furthest.remaining):
                furthest = e
    raise furthest


# ── Expressions ──────────────────────────────────────────────────


def expression(text: str) -> tuple[str, Expression]:
    """Parse a ``;``-chained sequence of atoms, folded to the right.

    Returns the remaining text positioned right after the last atom.
    """
    atoms: list[Expression] = []
    while True:
        remaining, node = atom(_skip_whitespace(text))
        atoms.append(node)
        try:
            text, _ = semicolon_separator(remaining)
        except ParseError as e:
            follower = e.remaining
            if follower and follower[0] not in CLOSERS:
                raise ParseError(
                    ParseErrorKind.MALFORMED, follower, "';' or the end of the expression",
                ) from None
            break

    result = atoms.pop()
    while atoms:
        result = Chained(atoms.pop(), result)
    return remaining, result


parse_expression = expression


# ── Front doors ──────────────────────────────────────────────────


def _token_at(text: str) -> str:
    m = _TOKEN_RE.match(text)
    return m.group() if m else ""


def _diagnostic_for(source: SourceFile, error: ParseError) -> Diagnostic:
    """Turn a ParseError into a located Diagnostic."""
    offset = len(source.content) - len(error.remaining)
    token = _token_at(error.remaining)
    span = source.span_at(offset, len(token) or 1)
    found = f"found {token!r}" if token else "found end of input"

    if error.is_fatal:
        suggestions = []
        if token.startswith(_ATOM_STARTS):
            suggestions.append(Suggestion(
                message="separate consecutive transformations with ';'",
                replacement=f"; {token}",
            ))
        return Diagnostic(
            severity=Severity.ERROR,
            code="E100",
            message=f"unexpected {token!r} after expression",
            labels=[DiagnosticLabel(span=span, message=f"expected {error.expected}")],
            suggestions=suggestions,
            notes=["an expression may only be followed by ';', ')', '}' or the end of input"],
        )

    return Diagnostic(
        severity=Severity.ERROR,
        code="E101",
        message=f"expected {error.expected}, {found}",
        labels=[DiagnosticLabel(span=span, message="")],
    )


def parse_source(source: str | SourceFile, filename: str = "<stdin>") -> Expression:
    """Parse a complete program body. Raises CompileError.

    ``source`` is either raw text (named by ``filename``) or a SourceFile,
    whose own name is used in diagnostics.
    """
    if isinstance(source, str):
        source = SourceFile(filename, source)
    try:
        remaining, expr = expression(source.content)
    except ParseError as e:
        raise CompileError([_diagnostic_for(source, e)]) from None
    except RecursionError:
        raise CompileError([Diagnostic(
            severity=Severity.ERROR,
            code="E103",
            message="expression is nested too deeply",
            labels=[DiagnosticLabel(span=source.span_at(0), message="")],
            notes=["nesting depth is bounded by the interpreter's recursion limit"],
        )]) from None

    trailing = _skip_whitespace(remaining)
    if trailing:
        offset = len(source.content) - len(trailing)
        raise CompileError([Diagnostic(
            severity=Severity.ERROR,
            code="E102",
            message=f"unmatched {trailing[0]!r}",
            labels=[DiagnosticLabel(
                span=source.span_at(offset),
                message="no open group to close",
            )],
        )])
    return expr


def parse_program(source: str | SourceFile, init: Point, filename: str = "<stdin>") -> Program:
    """Parse a program body and pair it with its initial point."""
    return Program(init=init, body=parse_source(source, filename))
