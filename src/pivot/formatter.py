"""AST-walking pretty-printer for Pivot source code.

Produces canonical formatting for .pvt files. Chains are printed one
atom per line; ``iter`` bodies and ``or`` branches stay inline when they
are a single translation or rotation and are indented otherwise.

Limitation: chains are always printed flat, so a left-nested Chained
(which the parser never produces) re-parses as the right-nested form.
"""

from __future__ import annotations

import math

from pivot.ast_nodes import (
    Chained,
    EitherOr,
    Expression,
    Iterate,
    Rotation,
    Translation,
)
from pivot.tokens import (
    ITER,
    LBRACE,
    OR,
    RBRACE,
    ROTATION,
    SEMICOLON,
    TRANSLATION,
)


def _num(value: float) -> str:
    if not math.isfinite(value):
        raise ValueError(f"cannot format non-finite number {value!r}")
    return repr(float(value))


class PivotFormatter:
    """Format a parsed Pivot expression back to canonical source text."""

    def __init__(self, indent: int = 4) -> None:
        self.indent = indent

    # ── Public API ─────────────────────────────────────────────

    def format(self, expr: Expression) -> str:
        """Format an expression as a complete source file."""
        return self.format_expression(expr) + "\n"

    def format_expression(self, expr: Expression, depth: int = 0) -> str:
        """Format ``expr`` assuming the cursor already sits at ``depth``."""
        if isinstance(expr, Translation):
            return f"{TRANSLATION}({_num(expr.u)}, {_num(expr.v)})"
        if isinstance(expr, Rotation):
            return f"{ROTATION}({_num(expr.u)}, {_num(expr.v)}, {_num(expr.theta)})"
        if isinstance(expr, Chained):
            sep = f"{SEMICOLON}\n{self._pad(depth)}"
            return sep.join(self.format_expression(part, depth) for part in _flatten(expr))
        if isinstance(expr, Iterate):
            return f"{ITER}({self._block(expr.body, depth)})"
        if isinstance(expr, EitherOr):
            left = f"{LBRACE}{self._block(expr.left, depth)}{RBRACE}"
            right = f"{LBRACE}{self._block(expr.right, depth)}{RBRACE}"
            return f"{left} {OR} {right}"
        raise TypeError(f"not a Pivot expression: {type(expr).__name__}")

    # ── Helpers ────────────────────────────────────────────────

    def _pad(self, depth: int) -> str:
        return " " * (self.indent * depth)

    def _block(self, expr: Expression, depth: int) -> str:
        """Body of a group: inline if simple, indented on its own lines otherwise."""
        if isinstance(expr, (Translation, Rotation)):
            return self.format_expression(expr, depth)
        inner = self.format_expression(expr, depth + 1)
        return f"\n{self._pad(depth + 1)}{inner}\n{self._pad(depth)}"


def _flatten(expr: Expression) -> list[Expression]:
    """Collect the atoms of a chain in execution order."""
    parts: list[Expression] = []
    while isinstance(expr, Chained):
        parts.extend(_flatten(expr.left) if isinstance(expr.left, Chained) else [expr.left])
        expr = expr.right
    parts.append(expr)
    return parts
