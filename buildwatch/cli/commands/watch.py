"""``buildwatch watch``: rebuild whenever the source tree changes.

Runs until interrupted.  Startup validation failures exit with code 1;
everything after startup is logged and the watcher keeps running.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console

from buildwatch.cli.commands._common import make_config, make_settings
from buildwatch.config import WatchSettings
from buildwatch.core.paths import PathValidationError
from buildwatch.core.project_config import ProjectConfigError
from buildwatch.core.session import WatcherError, start_watching
from buildwatch.models.config import WatchConfig

console = Console()


async def _watch(config: WatchConfig, settings: WatchSettings, project_root: Path) -> None:
    session = await start_watching(config, settings=settings, project_root=project_root)
    try:
        await session.wait_stopped()
    finally:
        await session.stop()


def watch_cmd(
    src: Path = typer.Option(
        Path("src/index.js"),
        "--src",
        "-s",
        help="Entry file to bundle. Its directory is watched.",
    ),
    dist: Path = typer.Option(
        Path("dist"),
        "--dist",
        "-d",
        help="Output directory (created if missing).",
    ),
    outfile_name: str = typer.Option(
        None,
        "--outfile-name",
        "-n",
        help="Output file name (default from BUILDWATCH_DEFAULT_OUTFILE_NAME).",
    ),
    manifest: bool = typer.Option(
        True,
        "--manifest/--no-manifest",
        help="Check the manifest after each build.",
    ),
    evaluate: bool = typer.Option(
        True,
        "--eval/--no-eval",
        help="Evaluate the bundle after the manifest check.",
    ),
    serve: bool = typer.Option(
        False,
        "--serve/--no-serve",
        help="Start the dev server once, after the initial build.",
    ),
    port: int = typer.Option(
        None,
        "--port",
        "-p",
        help="Dev server port (default from BUILDWATCH_SERVE_PORT).",
    ),
    option: list[str] = typer.Option(
        None,
        "--option",
        "-o",
        help="Build option KEY=VALUE passed to the bundler. Repeatable.",
    ),
    project_root: Path = typer.Option(
        Path("."),
        "--project-root",
        help="Directory containing buildwatch.toml or pyproject.toml.",
    ),
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Log level (default from BUILDWATCH_LOG_LEVEL).",
    ),
) -> None:
    """Watch the source tree and rebuild on every change.

    The initial build runs once the watcher is ready.  Changes under the
    output directory, node_modules, test directories, *.test.js/ts files
    and dotfiles are ignored.
    """
    settings = make_settings(port=port, log_level=log_level)
    config = make_config(src, dist, outfile_name, manifest, evaluate, serve, option)

    try:
        asyncio.run(_watch(config, settings, project_root))
    except (PathValidationError, ProjectConfigError, WatcherError) as exc:
        console.print(f"[bold red]Cannot start watching:[/bold red] {exc}")
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")
