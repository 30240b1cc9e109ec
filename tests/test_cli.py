"""Tests for the Pivot CLI, config, and error rendering."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from pivot.ast_nodes import Point
from pivot.cli import main
from pivot.config import find_config, load_config
from pivot.errors import (
    CompileError,
    Diagnostic,
    DiagnosticLabel,
    DiagnosticRenderer,
    Severity,
    Suggestion,
)
from pivot.parser import parse_source
from pivot.source import SourceFile, Span, position_at, span_at


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def tmp_project(tmp_path):
    """Create a minimal pivot project in a temp dir."""
    toml = tmp_path / "pivot.toml"
    toml.write_text(
        '[package]\nname = "testproj"\nversion = "1.0.0"\n'
        "[program]\nstart = [1.5, -2.0]\n"
        "[style]\nindent = 2\n"
    )
    src = tmp_path / "src"
    src.mkdir()
    (src / "main.pvt").write_text("translation(1.0, 2.0)\n")
    return tmp_path


# --- CLI tests ---


class TestCLI:
    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Pivot" in result.output
        for command in ("check", "format", "new", "lsp", "view"):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_new_creates_project(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(main, ["new", "hello"])
            assert result.exit_code == 0
            assert "created project 'hello'" in result.output

            project = Path("hello")
            assert (project / "pivot.toml").exists()
            assert (project / ".gitignore").exists()
            assert 'name = "hello"' in (project / "pivot.toml").read_text()
            assert "# hello" in (project / "README.md").read_text()

            # The generated program must be valid
            parse_source((project / "src" / "main.pvt").read_text())

    def test_new_existing_dir_fails(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            Path("hello").mkdir()
            result = runner.invoke(main, ["new", "hello"])
            assert result.exit_code == 1
            assert "already exists" in result.output

    def test_new_project_checks_clean(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            runner.invoke(main, ["new", "hello"])
            result = runner.invoke(main, ["check", "hello"])
            assert result.exit_code == 0
            assert "no errors" in result.output

    def test_check_with_project(self, runner, tmp_project):
        result = runner.invoke(main, ["check", str(tmp_project)])
        assert result.exit_code == 0
        assert "checking testproj" in result.output
        assert "1 file(s), no errors" in result.output

    def test_check_reports_errors(self, runner, tmp_project):
        (tmp_project / "src" / "bad.pvt").write_text("translation(1, 2) garbage\n")
        result = runner.invoke(main, ["check", str(tmp_project)])
        assert result.exit_code == 1
        assert "E100" in result.output
        assert "bad.pvt:1:19" in result.output

    def test_check_single_file(self, runner, tmp_project):
        bad = tmp_project / "src" / "bad.pvt"
        bad.write_text("iter(translation(1, 2)\n")
        result = runner.invoke(main, ["check", str(bad)])
        assert result.exit_code == 1
        assert "E101" in result.output

    def test_check_without_config(self, runner, tmp_path):
        result = runner.invoke(main, ["check", str(tmp_path)])
        assert result.exit_code == 1
        assert "no pivot.toml found" in result.output

    def test_check_invalid_config(self, runner, tmp_project):
        (tmp_project / "pivot.toml").write_text("[program]\nstart = [1.0]\n")
        result = runner.invoke(main, ["check", str(tmp_project)])
        assert result.exit_code == 1
        assert "program.start" in result.output

    def test_format_rewrites_file(self, runner, tmp_project):
        main_pvt = tmp_project / "src" / "main.pvt"
        main_pvt.write_text("iter(translation( 1 , 2 );translation(3,4))")
        result = runner.invoke(main, ["format", str(tmp_project)])
        assert result.exit_code == 0
        assert "formatted" in result.output
        # indent comes from [style] in pivot.toml
        assert main_pvt.read_text() == (
            "iter(\n  translation(1.0, 2.0);\n  translation(3.0, 4.0)\n)\n"
        )

    def test_format_check(self, runner, tmp_project):
        main_pvt = tmp_project / "src" / "main.pvt"
        main_pvt.write_text("translation( 1 , 2 )")
        result = runner.invoke(main, ["format", "--check", str(tmp_project)])
        assert result.exit_code == 1
        assert "would reformat" in result.output
        assert main_pvt.read_text() == "translation( 1 , 2 )"

    def test_format_check_clean(self, runner, tmp_project):
        result = runner.invoke(main, ["format", "--check", str(tmp_project)])
        assert result.exit_code == 0

    def test_format_stdin(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(
                main, ["format", "--stdin"], input="iter(translation(1,2);rotation(0,0,1))",
            )
        assert result.exit_code == 0
        assert result.output == (
            "iter(\n    translation(1.0, 2.0);\n    rotation(0.0, 0.0, 1.0)\n)\n"
        )

    def test_format_stdin_error(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(main, ["format", "--stdin"], input="translation(1,2) x")
        assert result.exit_code == 1
        assert "E100" in result.output

    def test_format_keeps_file_with_overflowing_literal(self, runner, tmp_project):
        main_pvt = tmp_project / "src" / "main.pvt"
        main_pvt.write_text("translation(1e400, 0)\n")
        result = runner.invoke(main, ["format", str(tmp_project)])
        assert result.exit_code == 1
        assert "E101" in result.output
        assert main_pvt.read_text() == "translation(1e400, 0)\n"

    def test_format_help(self, runner):
        result = runner.invoke(main, ["format", "--help"])
        assert result.exit_code == 0
        assert "--check" in result.output
        assert "--stdin" in result.output

    def test_lsp_help(self, runner):
        result = runner.invoke(main, ["lsp", "--help"])
        assert result.exit_code == 0

    def test_view_command(self, runner, tmp_project):
        pvt_file = tmp_project / "src" / "main.pvt"
        result = runner.invoke(main, ["view", str(pvt_file)])
        assert result.exit_code == 0
        assert "Program" in result.output
        assert "x: 1.5" in result.output
        assert "y: -2.0" in result.output
        assert "Translation" in result.output

    def test_view_error(self, runner, tmp_project):
        pvt_file = tmp_project / "src" / "main.pvt"
        pvt_file.write_text("translation(1, 2))\n")
        result = runner.invoke(main, ["view", str(pvt_file)])
        assert result.exit_code == 1
        assert "E102" in result.output


# --- Config tests ---


class TestConfig:
    def test_load_config(self, tmp_project):
        config = load_config(tmp_project / "pivot.toml")
        assert config.package.name == "testproj"
        assert config.package.version == "1.0.0"
        assert config.program.start == Point(1.5, -2.0)
        assert config.style.indent == 2

    def test_load_config_defaults(self, tmp_path):
        toml = tmp_path / "pivot.toml"
        toml.write_text("[package]\n")
        config = load_config(toml)
        assert config.package.name == "untitled"
        assert config.program.start == Point(0.0, 0.0)
        assert config.style.indent == 4

    def test_integer_start(self, tmp_path):
        toml = tmp_path / "pivot.toml"
        toml.write_text("[program]\nstart = [3, 4]\n")
        assert load_config(toml).program.start == Point(3.0, 4.0)

    @pytest.mark.parametrize("value", ["[1.0]", '["a", "b"]', "[true, false]", "1.0"])
    def test_invalid_start(self, tmp_path, value):
        toml = tmp_path / "pivot.toml"
        toml.write_text(f"[program]\nstart = {value}\n")
        with pytest.raises(ValueError, match="program.start"):
            load_config(toml)

    def test_invalid_indent(self, tmp_path):
        toml = tmp_path / "pivot.toml"
        toml.write_text("[style]\nindent = -1\n")
        with pytest.raises(ValueError, match="style.indent"):
            load_config(toml)

    def test_find_config(self, tmp_project):
        # find_config from a subdirectory should find pivot.toml in parent
        found = find_config(tmp_project / "src")
        assert found == tmp_project / "pivot.toml"

    def test_find_config_from_file(self, tmp_project):
        found = find_config(tmp_project / "src" / "main.pvt")
        assert found == tmp_project / "pivot.toml"

    def test_find_config_not_found(self, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        with pytest.raises(FileNotFoundError, match="No pivot.toml found"):
            find_config(empty)


# --- Error rendering tests ---


class TestDiagnostics:
    def test_render_error(self):
        span = Span("main.pvt", 3, 5, 3, 12)
        diag = Diagnostic(
            severity=Severity.ERROR,
            code="E100",
            message="unexpected 'rotation' after expression",
            labels=[DiagnosticLabel(span=span, message="expected ';'")],
            notes=["chains are separated by ';'"],
            suggestions=[
                Suggestion(
                    message="separate consecutive transformations with ';'",
                    replacement="; rotation",
                )
            ],
        )

        output = DiagnosticRenderer(color=False).render(diag)

        assert "error[E100]" in output
        assert "unexpected 'rotation' after expression" in output
        assert "main.pvt:3:5" in output
        assert "note:" in output
        assert "help:" in output
        assert "try: ; rotation" in output
        assert "\033[" not in output

    def test_malformed_diagnostic_has_note(self):
        with pytest.raises(CompileError) as excinfo:
            parse_source("translation(1, 2) x")
        [diag] = excinfo.value.diagnostics
        assert diag.notes
        output = DiagnosticRenderer(color=False).render(diag)
        assert "note: an expression may only be followed by" in output

    def test_render_color(self):
        diag = Diagnostic(Severity.ERROR, "E101", "expected a number")
        assert "\033[1;31m" in DiagnosticRenderer(color=True).render(diag)

    def test_render_registered_source(self):
        source = "translation(1,2) garbage"
        with pytest.raises(CompileError) as excinfo:
            parse_source(source, "<stdin>")
        renderer = DiagnosticRenderer(color=False)
        renderer.register_source(SourceFile("<stdin>", source))
        output = renderer.render(excinfo.value.diagnostics[0])
        assert "<stdin>:1:18" in output
        assert source in output
        assert " " * 17 + "^" * 7 in output

    def test_render_source_line_from_file(self, tmp_path):
        pvt = tmp_path / "main.pvt"
        pvt.write_text("translation(1, 2);\nrotation(1, 2)\n")
        with pytest.raises(CompileError) as excinfo:
            parse_source(pvt.read_text(), str(pvt))
        output = DiagnosticRenderer(color=False).render(excinfo.value.diagnostics[0])
        assert "rotation(1, 2)" in output
        assert "^" in output

    def test_compile_error(self):
        diags = [
            Diagnostic(Severity.ERROR, "E100", "first error"),
            Diagnostic(Severity.ERROR, "E101", "second error"),
        ]
        err = CompileError(diags)
        assert len(err.diagnostics) == 2
        assert "2 error(s)" in str(err)


# --- Source tests ---


class TestSource:
    def test_load(self, tmp_path):
        f = tmp_path / "test.pvt"
        f.write_text("line one\nline two\n")
        sf = SourceFile.load(f)
        assert sf.name == str(f)
        assert sf.content == "line one\nline two\n"
        assert sf.line_at(1) == "line one"
        assert sf.line_at(2) == "line two"
        assert sf.line_at(0) is None
        assert sf.line_at(99) is None

    def test_span_at_uses_name(self):
        sf = SourceFile("main.pvt", "iter(\n  translation(1, 2)\n)")
        assert sf.span_at(8, 11) == Span("main.pvt", 2, 3, 2, 13)

    def test_parse_source_file_names_diagnostics(self):
        with pytest.raises(CompileError) as excinfo:
            parse_source(SourceFile("named.pvt", "translation(1, 2) x"), "ignored.pvt")
        assert excinfo.value.diagnostics[0].labels[0].span.file == "named.pvt"

    def test_renderer_registered_source_wins_over_disk(self, tmp_path):
        f = tmp_path / "main.pvt"
        f.write_text("on disk\n")
        renderer = DiagnosticRenderer(color=False)
        renderer.register_source(SourceFile(str(f), "in memory\n"))
        diag = Diagnostic(
            Severity.ERROR, "E101", "expected a number",
            labels=[DiagnosticLabel(span=Span(str(f), 1, 1, 1, 2), message="")],
        )
        output = renderer.render(diag)
        assert "in memory" in output
        assert "on disk" not in output

    def test_span_str(self):
        assert str(Span("file.pvt", 10, 5, 10, 20)) == "file.pvt:10:5"

    def test_position_at(self):
        source = "ab\ncd\n"
        assert position_at(source, 0) == (1, 1)
        assert position_at(source, 4) == (2, 2)
        assert position_at(source, len(source)) == (3, 1)

    def test_span_at_clips_to_line(self):
        span = span_at("ab\ncd", 1, 10, "f.pvt")
        assert span == Span("f.pvt", 1, 2, 1, 2)

    def test_span_at_end_of_input(self):
        span = span_at("ab", 2, 1)
        assert (span.start_line, span.start_col, span.end_col) == (1, 3, 3)
