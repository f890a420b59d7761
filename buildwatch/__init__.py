"""buildwatch: watch a source tree and rebuild on every change.

Each relevant filesystem event runs the rebuild pipeline
(bundle -> manifest check -> evaluation) with per-event error isolation:
  - Explicit ``WatchSession`` handle with ``start()`` / ``stop()``
  - Single-flight pipeline runner (no overlapping writes to the bundle)
  - One ordered list of ignore matchers (node_modules, output dir, tests, dotfiles)
  - Pluggable bundler, manifest checker, evaluator and dev server
  - Env-driven settings (``BUILDWATCH_*``) and project config (buildwatch.toml)
"""

__version__ = "0.1.0"
__description__ = "Watch a source tree and rebuild on every change"

from buildwatch.core.session import WatchSession, start_watching
from buildwatch.models.config import WatchConfig
from buildwatch.cli.app import app as cli

__all__ = ["WatchConfig", "WatchSession", "start_watching", "cli", "__version__"]
