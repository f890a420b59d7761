"""Runtime settings: env-driven defaults for the watch CLI.

Centralized config using pydantic-settings.  Reads from a ``.env`` file and
``BUILDWATCH_*`` environment variables.  Per-invocation options (source
path, output directory, flags) live on ``WatchConfig`` instead; these are
the defaults and collaborator knobs that rarely change between runs.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class WatchSettings(BaseSettings):
    """Process-wide settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export BUILDWATCH_LOG_LEVEL=DEBUG
        export BUILDWATCH_SERVE_PORT=9000
        export BUILDWATCH_EVAL_COMMAND='["node", "{bundle}"]'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BUILDWATCH_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    # Output naming
    default_outfile_name: str = "bundle.js"

    # Project-level configuration file (falls back to pyproject.toml)
    project_config_file: Path = Path("buildwatch.toml")

    # Default collaborators
    manifest_path: Path = Path("manifest.json")
    eval_command: list[str] = []
    serve_host: str = "localhost"
    serve_port: int = 8081

    # Number of BuildResults a watch session keeps
    max_history: int = 50

    # Use watchdog's polling observer instead of the native backend
    use_polling: bool = False
