"""Project scaffolding for `pivot new`."""

from __future__ import annotations

from pathlib import Path

_PIVOT_TOML_TEMPLATE = """\
[package]
name = "{name}"
version = "0.1.0"
authors = []
license = ""

[program]
start = [0.0, 0.0]

[style]
indent = 4
"""

_MAIN_PVT_TEMPLATE = """\
iter(
    translation(1.0, 0.0);
    rotation(0.0, 0.0, 0.5)
);
{translation(0.0, 1.0)} or {rotation(1.0, 1.0, -0.5)}
"""

_GITIGNORE = """\
__pycache__/
.pivot/
"""

_README_TEMPLATE = """\
# {name}

A Pivot transformation program.

## Check

```bash
pivot check
```

## Format

```bash
pivot format
```
"""


def scaffold(name: str, parent: Path | None = None) -> Path:
    """Create a new Pivot project directory. Returns the project path."""
    base = parent or Path.cwd()
    project_dir = base / name

    if project_dir.exists():
        raise FileExistsError(f"Directory '{name}' already exists")

    src_dir = project_dir / "src"
    src_dir.mkdir(parents=True)

    (project_dir / "pivot.toml").write_text(_PIVOT_TOML_TEMPLATE.format(name=name))
    (src_dir / "main.pvt").write_text(_MAIN_PVT_TEMPLATE)
    (project_dir / ".gitignore").write_text(_GITIGNORE)
    (project_dir / "README.md").write_text(_README_TEMPLATE.format(name=name))

    return project_dir
