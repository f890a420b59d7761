"""``buildwatch build``: run the pipeline once and report the result.

Uses the same validation, collaborators and pipeline as ``watch``; exits
with code 1 if validation or any pipeline step fails.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from buildwatch.collaborators import default_collaborators
from buildwatch.cli.commands._common import make_config, make_settings
from buildwatch.config import WatchSettings
from buildwatch.core.paths import PathValidationError
from buildwatch.core.pipeline import RebuildPipeline
from buildwatch.core.project_config import (
    ProjectConfigError,
    load_customizer,
    load_project_config,
)
from buildwatch.core.session import WatchPlan, prepare_watch
from buildwatch.models.config import WatchConfig
from buildwatch.models.results import BuildResult

console = Console()


async def run_build(
    config: WatchConfig, settings: WatchSettings, project_root: Path
) -> tuple[WatchPlan, BuildResult]:
    """Validate *config* and execute one pipeline run.

    Returns the derived plan alongside the result so callers report the
    same output path the pipeline wrote.
    """
    plan = prepare_watch(config, settings)
    project = load_project_config(project_root, settings.project_config_file)
    pipeline = RebuildPipeline(
        config,
        plan.outfile_path,
        default_collaborators(settings, project),
        customizer_loader=lambda: load_customizer(project_root, settings.project_config_file),
    )
    return plan, await pipeline.run()


def _render(result: BuildResult, outfile: Path) -> Panel:
    steps = ", ".join(step.value for step in result.completed_steps) or "none"
    if result.succeeded:
        lines = [
            "[bold green]Build succeeded[/bold green]",
            "",
            f"[bold]Output:[/bold]    {outfile}",
            f"[bold]Steps:[/bold]     {steps}",
            f"[bold]Duration:[/bold]  {result.duration_seconds:.2f}s",
        ]
        border = "green"
    else:
        failed = result.failed_step.value if result.failed_step else "unknown"
        lines = [
            "[bold red]Build failed[/bold red]",
            "",
            f"[bold]Failed step:[/bold] {failed}",
            f"[bold]Completed:[/bold]   {steps}",
            f"[bold]Error:[/bold]       {result.error}",
        ]
        border = "red"
    return Panel(
        "\n".join(lines),
        title="[bold]buildwatch[/bold]",
        border_style=border,
        padding=(1, 2),
    )


def build_cmd(
    src: Path = typer.Option(
        Path("src/index.js"),
        "--src",
        "-s",
        help="Entry file to bundle.",
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
        help="Check the manifest after the build.",
    ),
    evaluate: bool = typer.Option(
        True,
        "--eval/--no-eval",
        help="Evaluate the bundle after the manifest check.",
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
    """Run bundle -> manifest -> eval once."""
    settings = make_settings(log_level=log_level)
    config = make_config(src, dist, outfile_name, manifest, evaluate, False, option)

    try:
        plan, result = asyncio.run(run_build(config, settings, project_root))
    except (PathValidationError, ProjectConfigError) as exc:
        console.print(f"[bold red]Cannot build:[/bold red] {exc}")
        raise typer.Exit(code=1)

    console.print(_render(result, plan.outfile_path))
    if not result.succeeded:
        raise typer.Exit(code=1)
