"""Pivot Language Server: pygls-based LSP for .pvt files.

Provides parse diagnostics, keyword hover and completion, and
whole-document formatting via stdio transport.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from lsprotocol import types as lsp
from pygls import uris
from pygls.lsp.server import LanguageServer

from pivot import __version__
from pivot.ast_nodes import Expression
from pivot.config import find_config, load_config
from pivot.errors import CompileError, Diagnostic, Severity
from pivot.formatter import PivotFormatter
from pivot.parser import parse_source
from pivot.source import SourceFile, Span
from pivot.tokens import KEYWORDS

# ── Conversion helpers ────────────────────────────────────────────

_SEVERITY_MAP = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
}

_KEYWORD_COMPLETIONS = sorted(KEYWORDS)

# Insert-text templates for the keyword completions
_SNIPPETS = {
    "translation": "translation(${1:u}, ${2:v})",
    "rotation": "rotation(${1:u}, ${2:v}, ${3:theta})",
    "iter": "iter(${1})",
    "or": "or {${1}}",
}


def span_to_range(span: Span) -> lsp.Range:
    """Convert a 1-indexed Pivot Span to a 0-indexed LSP Range."""
    return lsp.Range(
        start=lsp.Position(line=span.start_line - 1, character=span.start_col - 1),
        end=lsp.Position(line=span.end_line - 1, character=span.end_col),
    )


def _compile_diag(d: Diagnostic) -> lsp.Diagnostic:
    """Convert a pivot Diagnostic to an LSP Diagnostic."""
    span_range = lsp.Range(start=lsp.Position(0, 0), end=lsp.Position(0, 0))
    if d.labels:
        span_range = span_to_range(d.labels[0].span)
    return lsp.Diagnostic(
        range=span_range,
        severity=_SEVERITY_MAP.get(d.severity, lsp.DiagnosticSeverity.Error),
        source="pivot",
        code=d.code,
        message=f"[{d.code}] {d.message}",
    )


# ── Per-document state ────────────────────────────────────────────


@dataclass
class DocumentState:
    """Cached analysis results for a single open document."""

    source: str = ""
    expression: Expression | None = None
    diagnostics: list[lsp.Diagnostic] = field(default_factory=list)


# ── Server ────────────────────────────────────────────────────────

server = LanguageServer(
    "pivot-lsp", __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)
_state: dict[str, DocumentState] = {}


def _analyze(uri: str, source: str) -> DocumentState:
    """Parse the document, cache results, return state."""
    ds = DocumentState(source=source)
    try:
        ds.expression = parse_source(SourceFile(uri, source))
    except CompileError as e:
        ds.diagnostics = [_compile_diag(d) for d in e.diagnostics]
    _state[uri] = ds
    return ds


def _get_word_at(source: str, line: int, character: int) -> str:
    """Extract the word at the given 0-indexed position."""
    lines = source.splitlines()
    if line < 0 or line >= len(lines):
        return ""
    text = lines[line]
    if character < 0 or character > len(text):
        return ""
    # Cursor right after a word still counts as on it
    if character == len(text) or not (text[character].isalnum() or text[character] == "_"):
        if character > 0 and (text[character - 1].isalnum() or text[character - 1] == "_"):
            character -= 1
        else:
            return ""

    start = character
    while start > 0 and (text[start - 1].isalnum() or text[start - 1] == "_"):
        start -= 1
    end = character
    while end < len(text) and (text[end].isalnum() or text[end] == "_"):
        end += 1
    return text[start:end]


# ── LSP Feature Handlers ─────────────────────────────────────────


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    ds = _analyze(uri, params.text_document.text)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    # Full sync: take last content change
    source = params.content_changes[-1].text if params.content_changes else ""
    ds = _analyze(uri, source)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    uri = params.text_document.uri
    _state.pop(uri, None)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=[],
    ))


def _hover_for(source: str, line: int, character: int) -> lsp.Hover | None:
    word = _get_word_at(source, line, character)
    doc = KEYWORDS.get(word)
    if doc is None:
        return None
    return lsp.Hover(contents=lsp.MarkupContent(
        kind=lsp.MarkupKind.Markdown,
        value=f"**keyword** `{word}`\n\n{doc}",
    ))


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def hover(params: lsp.HoverParams) -> lsp.Hover | None:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return None
    return _hover_for(ds.source, params.position.line, params.position.character)


def _keyword_items() -> list[lsp.CompletionItem]:
    return [
        lsp.CompletionItem(
            label=kw,
            kind=lsp.CompletionItemKind.Keyword,
            detail=KEYWORDS[kw],
            insert_text=_SNIPPETS[kw],
            insert_text_format=lsp.InsertTextFormat.Snippet,
        )
        for kw in _KEYWORD_COMPLETIONS
    ]


@server.feature(
    lsp.TEXT_DOCUMENT_COMPLETION,
    lsp.CompletionOptions(trigger_characters=[";", "(", "{"]),
)
def completion(params: lsp.CompletionParams) -> lsp.CompletionList:
    return lsp.CompletionList(is_incomplete=False, items=_keyword_items())


def _format_edits(ds: DocumentState, indent: int = 4) -> list[lsp.TextEdit] | None:
    if ds.expression is None:
        return None
    formatted = PivotFormatter(indent=indent).format(ds.expression)
    if formatted == ds.source:
        return None

    # Replace entire document
    end_line = len(ds.source.splitlines()) + 1
    return [lsp.TextEdit(
        range=lsp.Range(
            start=lsp.Position(0, 0),
            end=lsp.Position(end_line, 0),
        ),
        new_text=formatted,
    )]


def _indent_for(uri: str, fallback: int) -> int:
    """Indent width from the document's pivot.toml, matching `pivot format`.

    Documents outside a project, or under an unreadable pivot.toml, use
    ``fallback`` (the editor's setting).
    """
    path = uris.to_fs_path(uri)
    if path is None:
        return fallback
    try:
        return load_config(find_config(Path(path))).style.indent
    except (FileNotFoundError, tomllib.TOMLDecodeError, ValueError):
        return fallback


@server.feature(lsp.TEXT_DOCUMENT_FORMATTING)
def formatting(params: lsp.DocumentFormattingParams) -> list[lsp.TextEdit] | None:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return None
    editor_indent = params.options.tab_size if params.options.insert_spaces else 4
    return _format_edits(ds, _indent_for(params.text_document.uri, editor_indent))


# ── Entry point ──────────────────────────────────────────────────


def main() -> None:
    """Start the Pivot language server on stdio."""
    server.start_io()
