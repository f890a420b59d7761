"""Watch invocation and project configuration models."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WatchConfig(BaseModel):
    """Immutable input for one ``watch`` or ``build`` invocation.

    ``build_options`` is passed through to the bundler untouched.
    """

    model_config = ConfigDict(frozen=True)

    src: Path
    dist: Path
    outfile_name: str | None = None
    run_manifest_check: bool = False
    run_eval: bool = False
    run_serve: bool = False
    build_options: dict[str, Any] = Field(default_factory=dict)


class ProjectConfig(BaseModel):
    """Project-level customization, loaded from buildwatch.toml or
    pyproject.toml [tool.buildwatch].

    Collaborator fields hold dotted ``"module:attr"`` references.  A
    reference to a class is instantiated with no arguments.
    """

    model_config = ConfigDict(frozen=True)

    bundler_customizer: str | None = None
    bundler: str | None = None
    manifest_checker: str | None = None
    evaluator: str | None = None
    server: str | None = None
    options: dict[str, Any] = Field(default_factory=dict)
