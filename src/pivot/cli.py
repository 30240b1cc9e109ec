"""Pivot command line interface."""

from __future__ import annotations

import tomllib
from pathlib import Path

import click

from pivot import __version__
from pivot.ast_nodes import Expression
from pivot.config import PivotConfig, find_config, load_config
from pivot.errors import CompileError, DiagnosticRenderer
from pivot.formatter import PivotFormatter
from pivot.parser import parse_program, parse_source
from pivot.source import SourceFile


def _source_files(target: Path) -> list[Path]:
    """All .pvt files under a project (preferring src/) or the file itself."""
    if target.is_file():
        return [target]
    src_dir = target / "src"
    if not src_dir.is_dir():
        src_dir = target  # fallback to project root
    return sorted(src_dir.rglob("*.pvt"))


def _load_project(path: str) -> tuple[PivotConfig, Path]:
    """Find and load pivot.toml, exiting with status 1 on failure."""
    try:
        config_path = find_config(Path(path))
    except FileNotFoundError:
        click.echo("error: no pivot.toml found", err=True)
        raise SystemExit(1)
    try:
        return load_config(config_path), config_path.parent
    except (tomllib.TOMLDecodeError, ValueError) as e:
        click.echo(f"error: invalid {config_path}: {e}", err=True)
        raise SystemExit(1)


def _config_or_default(path: Path) -> PivotConfig:
    """Load the nearest pivot.toml if there is one, else defaults."""
    try:
        return load_config(find_config(path))
    except FileNotFoundError:
        return PivotConfig()
    except (tomllib.TOMLDecodeError, ValueError) as e:
        click.echo(f"error: invalid pivot.toml: {e}", err=True)
        raise SystemExit(1)


def _report(renderer: DiagnosticRenderer, error: CompileError) -> None:
    for diag in error.diagnostics:
        click.echo(renderer.render(diag), err=True)


def _parse(renderer: DiagnosticRenderer, source: SourceFile) -> Expression | None:
    """Parse one source, reporting diagnostics. Returns None on error."""
    renderer.register_source(source)
    try:
        return parse_source(source)
    except CompileError as e:
        _report(renderer, e)
        return None


@click.group()
@click.version_option(__version__, prog_name="pivot")
def main() -> None:
    """Pivot: parse and format 2-D transformation programs."""


@main.command()
@click.argument("path", default=".", type=click.Path(exists=True))
def check(path: str) -> None:
    """Parse every .pvt file of a Pivot project and report errors."""
    config, project_dir = _load_project(path)
    click.echo(f"checking {config.package.name}...")

    files = _source_files(Path(path) if Path(path).is_file() else project_dir)
    if not files:
        click.echo("warning: no .pvt files found", err=True)
        return

    renderer = DiagnosticRenderer(color=True)
    had_errors = False
    for pvt_file in files:
        if _parse(renderer, SourceFile.load(pvt_file)) is None:
            had_errors = True

    if had_errors:
        raise SystemExit(1)
    click.echo(f"checked {config.package.name}: {len(files)} file(s), no errors")


@main.command(name="format")
@click.argument("path", default=".", type=click.Path(exists=True))
@click.option("--check", is_flag=True, help="Check formatting without modifying files.")
@click.option("--stdin", "use_stdin", is_flag=True, help="Read from stdin, write to stdout.")
def format_cmd(path: str, check: bool, use_stdin: bool) -> None:
    """Format Pivot source files."""
    import sys

    config = _config_or_default(Path(path))
    formatter = PivotFormatter(indent=config.style.indent)
    renderer = DiagnosticRenderer(color=True)

    if use_stdin:
        source = SourceFile("<stdin>", sys.stdin.read())
        expr = _parse(renderer, source)
        if expr is None:
            raise SystemExit(1)
        formatted = formatter.format(expr)
        if check:
            if formatted != source.content:
                raise SystemExit(1)
        else:
            sys.stdout.write(formatted)
        return

    files = _source_files(Path(path))
    if not files:
        click.echo("no .pvt files found", err=True)
        return

    needs_formatting = False
    had_errors = False
    for pvt_file in files:
        source = SourceFile.load(pvt_file)
        filename = source.name
        expr = _parse(renderer, source)
        if expr is None:
            had_errors = True
            continue

        formatted = formatter.format(expr)
        if formatted != source.content:
            if check:
                click.echo(f"would reformat {filename}")
                needs_formatting = True
            else:
                pvt_file.write_text(formatted)
                click.echo(f"formatted {filename}")

    if had_errors or (check and needs_formatting):
        raise SystemExit(1)


@main.command()
@click.argument("name")
def new(name: str) -> None:
    """Create a new Pivot project."""
    from pivot.project import scaffold

    try:
        project_dir = scaffold(name)
        click.echo(f"created project '{name}' at {project_dir}")
    except FileExistsError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)


@main.command()
def lsp() -> None:
    """Start the Pivot language server."""
    from pivot.lsp import main as lsp_main

    lsp_main()


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def view(file: str) -> None:
    """View the AST of a Pivot source file."""
    config = _config_or_default(Path(file))
    source = SourceFile.load(Path(file))
    renderer = DiagnosticRenderer(color=True)
    renderer.register_source(source)

    try:
        program = parse_program(source, config.program.start)
    except CompileError as e:
        _report(renderer, e)
        raise SystemExit(1)

    _dump_ast(program, 0)


def _dump_ast(node: object, depth: int) -> None:
    """Print a readable AST dump."""
    indent = "  " * depth
    name = type(node).__name__

    if hasattr(node, "__dataclass_fields__"):
        fields = node.__dataclass_fields__  # type: ignore[union-attr]
        click.echo(f"{indent}{name}")
        for field_name in fields:
            value = getattr(node, field_name)
            if hasattr(value, "__dataclass_fields__"):
                click.echo(f"{indent}  {field_name}:")
                _dump_ast(value, depth + 2)
            else:
                click.echo(f"{indent}  {field_name}: {value!r}")
    else:
        click.echo(f"{indent}{name}: {node!r}")
