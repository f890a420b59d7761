"""Helpers shared by the ``watch`` and ``build`` commands."""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import typer

from buildwatch.config import WatchSettings
from buildwatch.models.config import WatchConfig
from buildwatch.reporting import parse_level, setup_logging


def parse_build_options(pairs: Iterable[str] | None) -> dict[str, Any]:
    """Turn repeated ``KEY=VALUE`` strings into a dict.

    Values are decoded as JSON when possible (``minify=true`` gives a bool,
    ``targets=["es2020"]`` a list) and kept as strings otherwise.
    """
    options: dict[str, Any] = {}
    for pair in pairs or ():
        key, sep, raw = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise typer.BadParameter(
                f"Expected KEY=VALUE, got {pair!r}", param_hint="--option"
            )
        try:
            options[key] = json.loads(raw)
        except json.JSONDecodeError:
            options[key] = raw
    return options


def make_config(
    src: Path,
    dist: Path,
    outfile_name: str | None,
    manifest: bool,
    evaluate: bool,
    serve: bool,
    option: Iterable[str] | None,
) -> WatchConfig:
    return WatchConfig(
        src=src,
        dist=dist,
        outfile_name=outfile_name or None,
        run_manifest_check=manifest,
        run_eval=evaluate,
        run_serve=serve,
        build_options=parse_build_options(option),
    )


def make_settings(port: int | None = None, log_level: str | None = None) -> WatchSettings:
    """Load settings, apply CLI overrides, and configure logging."""
    settings = WatchSettings()
    updates: dict[str, Any] = {}
    if port is not None:
        updates["serve_port"] = port
    if log_level:
        try:
            parse_level(log_level)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--log-level") from exc
        updates["log_level"] = log_level
    if updates:
        settings = settings.model_copy(update=updates)
    setup_logging(settings.log_level)
    return settings
