"""Tests for runtime settings: env-driven defaults."""

from __future__ import annotations

from pathlib import Path

import pytest

from buildwatch.config import WatchSettings


class TestWatchSettings:
    def test_defaults(self):
        settings = WatchSettings(_env_file=None)
        assert settings.log_level == "INFO"
        assert settings.default_outfile_name == "bundle.js"
        assert settings.serve_host == "localhost"
        assert settings.serve_port == 8081
        assert settings.max_history == 50
        assert settings.use_polling is False

    def test_default_paths(self):
        settings = WatchSettings(_env_file=None)
        assert settings.project_config_file == Path("buildwatch.toml")
        assert settings.manifest_path == Path("manifest.json")

    def test_eval_command_defaults_to_empty(self):
        assert WatchSettings(_env_file=None).eval_command == []

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("BUILDWATCH_SERVE_PORT", "9000")
        monkeypatch.setenv("BUILDWATCH_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("BUILDWATCH_USE_POLLING", "true")
        settings = WatchSettings(_env_file=None)
        assert settings.serve_port == 9000
        assert settings.log_level == "DEBUG"
        assert settings.use_polling is True

    def test_env_list_is_json(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("BUILDWATCH_EVAL_COMMAND", '["node", "{bundle}"]')
        assert WatchSettings(_env_file=None).eval_command == ["node", "{bundle}"]

    def test_env_file(self, tmp_path: Path):
        env_file = tmp_path / ".env"
        env_file.write_text("BUILDWATCH_DEFAULT_OUTFILE_NAME=app.js\n")
        assert WatchSettings(_env_file=env_file).default_outfile_name == "app.js"

    def test_unrelated_env_ignored(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("BUILDWATCH_NOT_A_SETTING", "x")
        WatchSettings(_env_file=None)
