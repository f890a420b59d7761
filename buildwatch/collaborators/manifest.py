"""Default manifest checker: a JSON metadata file next to the project.

Checks only what the watcher needs to report: the manifest parses as a
JSON object, names the project and its version, and (when it records a
``shasum``) matches the SHA-256 of the current bundle.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from pathlib import Path
from typing import Any

from buildwatch.core.paths import get_outfile_path
from buildwatch.models.config import WatchConfig

logger = logging.getLogger(__name__)

REQUIRED_KEYS: tuple[str, ...] = ("name", "version")


class ManifestError(RuntimeError):
    """Raised when the manifest is missing, malformed, or out of date."""


def bundle_shasum(path: Path) -> str:
    """SHA-256 hex digest of the bundle at *path*."""
    return hashlib.sha256(path.read_bytes()).hexdigest()


class JsonManifestChecker:
    """Validates ``manifest.json`` against the build output.

    Parameters
    ----------
    manifest_path:
        Manifest location, relative to the working directory.
    default_outfile_name:
        Bundle name used when the config has no ``outfile_name``.
    """

    def __init__(
        self,
        manifest_path: Path | str = "manifest.json",
        default_outfile_name: str = "bundle.js",
    ) -> None:
        self.manifest_path = Path(manifest_path)
        self._default_outfile_name = default_outfile_name

    async def check_manifest(self, config: WatchConfig) -> None:
        bundle = get_outfile_path(config.dist, config.outfile_name, self._default_outfile_name)
        await asyncio.to_thread(self._check, bundle)

    def _check(self, bundle: Path) -> None:
        try:
            raw = self.manifest_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ManifestError(f"Cannot read manifest {self.manifest_path}: {exc}") from exc

        try:
            manifest: Any = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ManifestError(f"Manifest {self.manifest_path} is not valid JSON: {exc}") from exc

        if not isinstance(manifest, dict):
            raise ManifestError(f"Manifest {self.manifest_path} must be a JSON object.")

        missing = [key for key in REQUIRED_KEYS if not manifest.get(key)]
        if missing:
            raise ManifestError(
                f"Manifest {self.manifest_path} is missing: {', '.join(missing)}"
            )

        expected = manifest.get("shasum")
        if expected:
            try:
                actual = bundle_shasum(bundle)
            except OSError as exc:
                raise ManifestError(f"Cannot read bundle {bundle}: {exc}") from exc
            if actual != expected:
                raise ManifestError(
                    f"Manifest shasum {expected} does not match bundle {bundle} ({actual})."
                )

        logger.debug("Manifest %s OK", self.manifest_path)
