"""TOML config loading for pivot.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from pivot.ast_nodes import Point

CONFIG_NAME = "pivot.toml"


@dataclass
class PackageConfig:
    name: str = "untitled"
    version: str = "0.0.0"
    authors: list[str] = field(default_factory=list)
    license: str = ""


@dataclass
class ProgramConfig:
    start: Point = field(default_factory=lambda: Point(0.0, 0.0))


@dataclass
class StyleConfig:
    indent: int = 4


@dataclass
class PivotConfig:
    package: PackageConfig = field(default_factory=PackageConfig)
    program: ProgramConfig = field(default_factory=ProgramConfig)
    style: StyleConfig = field(default_factory=StyleConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find pivot.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_NAME} found in any parent directory")
        path = parent


def _parse_point(value: object) -> Point:
    if (
        not isinstance(value, list)
        or len(value) != 2
        or not all(isinstance(c, (int, float)) and not isinstance(c, bool) for c in value)
    ):
        raise ValueError(f"program.start must be a pair of numbers, got {value!r}")
    return Point(float(value[0]), float(value[1]))


def load_config(path: Path) -> PivotConfig:
    """Parse a pivot.toml file into a PivotConfig.

    Raises tomllib.TOMLDecodeError on invalid TOML and ValueError on
    values of the wrong shape.
    """
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = PivotConfig()

    if "package" in data:
        pkg = data["package"]
        config.package = PackageConfig(
            name=pkg.get("name", "untitled"),
            version=pkg.get("version", "0.0.0"),
            authors=pkg.get("authors", []),
            license=pkg.get("license", ""),
        )

    if "program" in data:
        prog = data["program"]
        if "start" in prog:
            config.program = ProgramConfig(start=_parse_point(prog["start"]))

    if "style" in data:
        indent = data["style"].get("indent", 4)
        if not isinstance(indent, int) or isinstance(indent, bool) or indent < 0:
            raise ValueError(f"style.indent must be a non-negative integer, got {indent!r}")
        config.style = StyleConfig(indent=indent)

    return config
