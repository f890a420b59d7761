"""Shared test fixtures for buildwatch."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from buildwatch.config import WatchSettings
from buildwatch.models.config import WatchConfig
from tests.fakes import ManualEventSource, Recorder


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _propagate_buildwatch_logs():
    """Undo CLI logging setup so caplog sees buildwatch records."""
    logger = logging.getLogger("buildwatch")
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A minimal project in a temp directory, used as the working directory."""
    src = tmp_path / "src"
    src.mkdir()
    (src / "index.js").write_text("console.log('hello');\n", encoding="utf-8")
    (src / "helpers.js").write_text("export const x = 1;\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def settings() -> WatchSettings:
    """Settings with defaults, isolated from the environment."""
    return WatchSettings(_env_file=None)


@pytest.fixture
def config(project: Path) -> WatchConfig:
    return WatchConfig(src=Path("src/index.js"), dist=Path("dist"))


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def event_source() -> ManualEventSource:
    return ManualEventSource()
