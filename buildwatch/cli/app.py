"""Main Typer application: imports and registers all CLI commands.

Entry point: ``buildwatch`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import typer

from buildwatch.cli.commands.build import build_cmd
from buildwatch.cli.commands.watch import watch_cmd

app = typer.Typer(
    name="buildwatch",
    help="buildwatch: bundle a project and rebuild it whenever its sources change.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="watch", help="Watch the source tree and rebuild on changes.")(watch_cmd)
app.command(name="build", help="Run the build pipeline once.")(build_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
