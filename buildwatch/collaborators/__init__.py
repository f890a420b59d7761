"""Collaborator protocols and the default implementations.

The watch orchestrator never bundles, validates, evaluates or serves
anything itself.  It calls four collaborators through these Protocols:

1. **Bundler**: ``bundle(src, outfile, config, customizer)``
2. **ManifestChecker**: ``check_manifest(config)``
3. **Evaluator**: ``evaluate(config, bundle)``
4. **DevServer**: ``serve(config)`` / ``close()``

Priority chain for each collaborator:

1. An explicit object passed to ``BuildCollaborators``.
2. A ``"module:attr"`` reference in the project config.
3. The lightweight default shipped in this package.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from buildwatch.config import WatchSettings
from buildwatch.core.project_config import ProjectConfigError, resolve_reference

if TYPE_CHECKING:
    from buildwatch.models.config import ProjectConfig, WatchConfig

# A customizer receives the mutable bundle options dict and edits it in place.
BundlerCustomizer = Callable[[dict[str, Any]], Any]


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class Bundler(Protocol):
    """Packages the source entry file into a single artifact at *outfile*."""

    async def bundle(
        self,
        src: Path,
        outfile: Path,
        config: WatchConfig,
        customizer: BundlerCustomizer | None = None,
    ) -> None: ...


@runtime_checkable
class ManifestChecker(Protocol):
    """Checks project metadata against the build output."""

    async def check_manifest(self, config: WatchConfig) -> None: ...


@runtime_checkable
class Evaluator(Protocol):
    """Executes or inspects the built artifact to catch runtime problems."""

    async def evaluate(self, config: WatchConfig, bundle: Path) -> None: ...


@runtime_checkable
class DevServer(Protocol):
    """Serves the build output locally."""

    async def serve(self, config: WatchConfig) -> None: ...

    async def close(self) -> None: ...


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


@dataclass
class BuildCollaborators:
    """The four collaborators a pipeline and session work with."""

    bundler: Bundler
    manifest_checker: ManifestChecker
    evaluator: Evaluator
    server: DevServer


def _instantiate(reference: str, protocol: type) -> Any:
    obj = resolve_reference(reference)
    if isinstance(obj, type):
        obj = obj()
    if not isinstance(obj, protocol):
        raise ProjectConfigError(
            f"{reference!r} does not implement {protocol.__name__}."
        )
    return obj


def default_collaborators(
    settings: WatchSettings | None = None,
    project: ProjectConfig | None = None,
) -> BuildCollaborators:
    """Build the collaborator set from project overrides and defaults.

    Raises
    ------
    ProjectConfigError
        If a project override cannot be imported or has the wrong shape.
    """
    from buildwatch.collaborators.bundler import CopyBundler
    from buildwatch.collaborators.evaluator import CommandEvaluator
    from buildwatch.collaborators.manifest import JsonManifestChecker
    from buildwatch.collaborators.server import StaticDevServer

    settings = settings or WatchSettings()
    default_options = dict(project.options) if project else {}

    bundler: Bundler = CopyBundler(default_options=default_options)
    manifest_checker: ManifestChecker = JsonManifestChecker(
        manifest_path=settings.manifest_path,
        default_outfile_name=settings.default_outfile_name,
    )
    evaluator: Evaluator = CommandEvaluator(command=settings.eval_command)
    server: DevServer = StaticDevServer(
        host=settings.serve_host, port=settings.serve_port
    )

    if project is not None:
        if project.bundler:
            bundler = _instantiate(project.bundler, Bundler)
        if project.manifest_checker:
            manifest_checker = _instantiate(project.manifest_checker, ManifestChecker)
        if project.evaluator:
            evaluator = _instantiate(project.evaluator, Evaluator)
        if project.server:
            server = _instantiate(project.server, DevServer)

    return BuildCollaborators(
        bundler=bundler,
        manifest_checker=manifest_checker,
        evaluator=evaluator,
        server=server,
    )


__all__ = [
    "Bundler",
    "BundlerCustomizer",
    "ManifestChecker",
    "Evaluator",
    "DevServer",
    "BuildCollaborators",
    "default_collaborators",
]
