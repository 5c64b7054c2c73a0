"""
renderer.py

Responsibility: Render component templates (controller, model, ...) into a Boson project.

Rules:
- One Jinja2 template per component type: `<templates_dir>/<type>/<type>.hpp.j2`.
- Rendering is strict: an undefined variable is an error, not an empty string.
- Existing files are never overwritten.

This module intentionally does NOT know about CLI parsing or console output.
"""

from __future__ import annotations

import datetime
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError

from boson_cli.project import is_boson_project

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


class RenderError(RuntimeError):
    pass


@dataclass(frozen=True)
class ComponentKind:
    subdir: str
    suffix: str


COMPONENTS: dict[str, ComponentKind] = {
    "controller": ComponentKind(subdir="src/controllers", suffix="_controller"),
    "model": ComponentKind(subdir="src/models", suffix=""),
    "middleware": ComponentKind(subdir="src/middleware", suffix="_middleware"),
    "service": ComponentKind(subdir="src/services", suffix="_service"),
    "router": ComponentKind(subdir="src/routers", suffix="_router"),
}


@dataclass(frozen=True)
class RenderResult:
    component_type: str
    class_name: str
    path: Path


def to_snake_case(name: str) -> str:
    return name.strip().lower().replace(" ", "_").replace("-", "_")


def to_pascal_case(name: str) -> str:
    parts = [p for p in re.split(r"[ _-]+", name.strip()) if p]
    return "".join(p[:1].upper() + p[1:].lower() for p in parts)


def template_path(component_type: str, templates_dir: str | Path | None = None) -> Path:
    root = Path(templates_dir) if templates_dir else TEMPLATES_DIR
    return root / component_type / f"{component_type}.hpp.j2"


def component_path(project_dir: str | Path, component_type: str, name: str) -> Path:
    """
    Return where a component of this type and name is written inside the project.
    """
    kind = COMPONENTS.get(component_type)
    if kind is None:
        raise RenderError(
            f"unsupported component type: {component_type} (expected one of: {', '.join(COMPONENTS)})"
        )
    return Path(project_dir) / kind.subdir / f"{to_snake_case(name)}{kind.suffix}.hpp"


def _build_context(name: str, year: int | None) -> dict[str, Any]:
    class_name = to_pascal_case(name)
    return {
        "name": class_name,
        "lower_name": class_name.lower(),
        "file_name": to_snake_case(name),
        "year": year if year is not None else datetime.date.today().year,
    }


def render_component(
    *,
    component_type: str,
    name: str,
    project_dir: str | Path,
    templates_dir: str | Path | None = None,
    year: int | None = None,
) -> RenderResult:
    """
    Render one component template into `project_dir`.

    - Creates the component directory as needed.
    - Refuses to run outside a Boson project or to overwrite an existing file.
    """
    component_type = component_type.strip().lower()
    if not to_snake_case(name):
        raise RenderError("component name must not be empty")

    root = Path(project_dir).resolve()
    if not is_boson_project(root):
        raise RenderError(f"not in a Boson project directory: {root}")

    dst_path = component_path(root, component_type, name)
    if dst_path.exists():
        raise RenderError(f"file already exists: {dst_path}")

    tpl_path = template_path(component_type, templates_dir)
    if not tpl_path.is_file():
        raise RenderError(f"template not found: {tpl_path}")

    env = Environment(
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    context = _build_context(name, year)
    try:
        out = env.from_string(tpl_path.read_text(encoding="utf-8")).render(**context)
    except TemplateError as e:
        raise RenderError(f"failed rendering template {tpl_path.name}: {e}") from e

    dst_path.parent.mkdir(parents=True, exist_ok=True)
    dst_path.write_text(out, encoding="utf-8", newline="\n")
    return RenderResult(component_type=component_type, class_name=context["name"], path=dst_path)
