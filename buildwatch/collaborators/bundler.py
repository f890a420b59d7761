"""Default bundler: copies the entry file into the output path.

No module resolution or transpilation happens here.  The bundle options
dict is assembled from three layers (project ``options``, the invocation's
``build_options``, then the customizer's in-place edits) and only the
``banner`` and ``footer`` keys affect the output.  Everything else is
carried for customizers and custom bundlers.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Any

from buildwatch.collaborators import BundlerCustomizer
from buildwatch.models.config import WatchConfig

logger = logging.getLogger(__name__)


class BundleError(RuntimeError):
    """Raised when the source cannot be read or the bundle cannot be written."""


class CopyBundler:
    """Writes the source text, wrapped in optional banner/footer, to *outfile*.

    Parameters
    ----------
    default_options:
        Options from the project config; invocation options override them.
    """

    def __init__(self, default_options: dict[str, Any] | None = None) -> None:
        self._default_options = dict(default_options or {})

    def build_options(
        self,
        src: Path,
        outfile: Path,
        config: WatchConfig,
        customizer: BundlerCustomizer | None = None,
    ) -> dict[str, Any]:
        """Assemble the bundle options for one run."""
        options: dict[str, Any] = {
            **self._default_options,
            **config.build_options,
            "entry": str(src),
            "outfile": str(outfile),
        }
        if customizer is not None:
            replaced = customizer(options)
            if isinstance(replaced, dict):
                options = replaced
        return options

    async def bundle(
        self,
        src: Path,
        outfile: Path,
        config: WatchConfig,
        customizer: BundlerCustomizer | None = None,
    ) -> None:
        options = self.build_options(src, outfile, config, customizer)
        await asyncio.to_thread(self._write, Path(src), Path(outfile), options)
        logger.debug("CopyBundler: wrote %s", outfile)

    @staticmethod
    def _write(src: Path, outfile: Path, options: dict[str, Any]) -> None:
        try:
            body = src.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise BundleError(f"Cannot read {src}: {exc}") from exc

        pieces = [options.get("banner"), body, options.get("footer")]
        text = "\n".join(str(p) for p in pieces if p)

        # Readers of outfile never observe a partially written bundle.
        tmp = outfile.with_name(f".{outfile.name}.tmp")
        try:
            outfile.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(text, encoding="utf-8")
            os.replace(tmp, outfile)
        except OSError as exc:
            raise BundleError(f"Cannot write {outfile}: {exc}") from exc
