"""AST node definitions for the Pivot language."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

# ── Points ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Point:
    x: float
    y: float


# ── Expressions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class Translation:
    """Shift by (u, v)."""

    u: float
    v: float


@dataclass(frozen=True)
class Rotation:
    """Rotate by theta about the pivot (u, v)."""

    u: float
    v: float
    theta: float


@dataclass(frozen=True)
class Chained:
    """Apply ``left``, then ``right``."""

    left: Expression
    right: Expression


@dataclass(frozen=True)
class EitherOr:
    """One of two branches; the parser does not pick one."""

    left: Expression
    right: Expression


@dataclass(frozen=True)
class Iterate:
    body: Expression


Expression = Union[Translation, Rotation, Chained, EitherOr, Iterate]

# Closed set of expression variants, for exhaustive isinstance dispatch
EXPRESSION_TYPES = (Translation, Rotation, Chained, EitherOr, Iterate)


# ── Programs ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Program:
    init: Point
    body: Expression
