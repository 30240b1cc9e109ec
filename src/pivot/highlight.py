"""Pygments lexer for the Pivot transformation language."""

from pygments.lexer import RegexLexer, words
from pygments.token import Error, Keyword, Number, Operator, Punctuation, Text


class PivotLexer(RegexLexer):
    """Pygments lexer for the Pivot transformation language."""

    name = "Pivot"
    aliases = ["pivot"]
    filenames = ["*.pvt"]
    mimetypes = ["text/x-pivot"]

    tokens = {
        "root": [
            (r"\s+", Text),
            # Transformations
            (
                words(("translation", "rotation"), prefix=r"\b", suffix=r"\b"),
                Keyword.Declaration,
            ),
            (words(("iter",), prefix=r"\b", suffix=r"\b"), Keyword),
            (words(("or",), prefix=r"\b", suffix=r"\b"), Operator.Word),
            # Numbers (optionally signed, optional exponent)
            (r"[+-]?(\d+\.\d*|\.\d+)([eE][+-]?\d+)?", Number.Float),
            (r"[+-]?\d+[eE][+-]?\d+", Number.Float),
            (r"[+-]?\d+", Number.Integer),
            (r";", Operator),
            (r"[(),{}]", Punctuation),
            # Anything else is not part of the language
            (r".", Error),
        ],
    }
