"""Keywords and punctuation of the Pivot surface syntax."""

from __future__ import annotations

# Whitespace accepted around every token and separator
WHITESPACE = " \t\r\n"

TRANSLATION = "translation"
ROTATION = "rotation"
ITER = "iter"
OR = "or"

LPAREN = "("
RPAREN = ")"
LBRACE = "{"
RBRACE = "}"
COMMA = ","
SEMICOLON = ";"

# Characters that may legally follow a complete expression
CLOSERS = frozenset({RPAREN, RBRACE})

# Keyword -> short description (used for hover and completion)
KEYWORDS: dict[str, str] = {
    TRANSLATION: "translation(u, v): shift every point by (u, v)",
    ROTATION: "rotation(u, v, theta): rotate by theta radians about the pivot (u, v)",
    ITER: "iter(body): repeat body an implementation-defined number of times",
    OR: "{left} or {right}: one of two branches, chosen by the consumer",
}
