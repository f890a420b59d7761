"""Project configuration loader.

Reads ``buildwatch.toml`` from the project root, falling back to the
``[tool.buildwatch]`` table of ``pyproject.toml``.  The read is synchronous
and cheap; the pipeline repeats it at the start of every run so edits to the
bundler customizer take effect without restarting the watcher.

Dotted references use the ``"module:attr"`` form, e.g.
``bundler_customizer = "tools.build:customize"``.
"""

from __future__ import annotations

import importlib
import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from buildwatch.models.config import ProjectConfig

logger = logging.getLogger(__name__)

PYPROJECT_FILE = "pyproject.toml"
PYPROJECT_TABLE = ("tool", "buildwatch")


class ProjectConfigError(RuntimeError):
    """Raised when the project config cannot be read or a reference cannot be resolved."""


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ProjectConfigError(f"Could not read {path}: {exc}") from exc


def load_project_config(
    root: Path | str = ".",
    config_file: Path | str = "buildwatch.toml",
) -> ProjectConfig:
    """Load the project configuration below *root*.

    Returns an empty ``ProjectConfig`` when neither file declares one.

    Raises
    ------
    ProjectConfigError
        If a config file exists but is malformed or fails validation.
    """
    root = Path(root)
    candidate = Path(config_file)
    if not candidate.is_absolute():
        candidate = root / candidate

    data: dict[str, Any] | None = None
    source = candidate
    if candidate.is_file():
        data = _read_toml(candidate)
    else:
        pyproject = root / PYPROJECT_FILE
        if pyproject.is_file():
            table: Any = _read_toml(pyproject)
            for key in PYPROJECT_TABLE:
                table = table.get(key) if isinstance(table, dict) else None
            if table is not None:
                data = table
                source = pyproject

    if data is None:
        return ProjectConfig()

    try:
        config = ProjectConfig.model_validate(data)
    except ValidationError as exc:
        raise ProjectConfigError(f"Invalid project config in {source}: {exc}") from exc

    logger.debug("Loaded project config from %s", source)
    return config


def resolve_reference(reference: str) -> Any:
    """Import and return the object named by a ``"module:attr"`` reference.

    Nested attributes are allowed after the colon (``"pkg.mod:Outer.inner"``).
    """
    module_name, sep, attr_path = reference.partition(":")
    if not sep or not module_name or not attr_path:
        raise ProjectConfigError(
            f"Invalid reference {reference!r}: expected 'module:attribute'."
        )

    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise ProjectConfigError(f"Cannot import {module_name!r}: {exc}") from exc

    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as exc:
            raise ProjectConfigError(
                f"{module_name!r} has no attribute {attr_path!r}."
            ) from exc
    return obj


def load_customizer(
    root: Path | str = ".",
    config_file: Path | str = "buildwatch.toml",
) -> Any:
    """Return the project's bundler customizer callable, or None."""
    project = load_project_config(root, config_file)
    if not project.bundler_customizer:
        return None
    customizer = resolve_reference(project.bundler_customizer)
    if not callable(customizer):
        raise ProjectConfigError(
            f"bundler_customizer {project.bundler_customizer!r} is not callable."
        )
    return customizer
