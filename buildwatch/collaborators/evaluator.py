"""Default evaluator: runs an optional command against the bundle.

Without a command the evaluator only checks that the bundle exists, is
non-empty and decodes as UTF-8.  With one, every ``{bundle}`` argument is
replaced by the bundle path and a non-zero exit fails the run.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

from buildwatch.models.config import WatchConfig

logger = logging.getLogger(__name__)

BUNDLE_PLACEHOLDER = "{bundle}"
MAX_OUTPUT_CHARS = 2000


class EvaluationError(RuntimeError):
    """Raised when the bundle fails evaluation."""


class CommandEvaluator:
    """Evaluates the bundle with an external command, or a basic sanity check."""

    def __init__(self, command: Sequence[str] = ()) -> None:
        self.command = list(command)

    def render_command(self, bundle: Path) -> list[str]:
        return [arg.replace(BUNDLE_PLACEHOLDER, str(bundle)) for arg in self.command]

    async def evaluate(self, config: WatchConfig, bundle: Path) -> None:
        bundle = Path(bundle)
        if not self.command:
            await asyncio.to_thread(self._sanity_check, bundle)
            return

        argv = self.render_command(bundle)
        logger.debug("Evaluating %s: %s", bundle, argv)
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as exc:
            raise EvaluationError(f"Cannot run {argv[0]!r}: {exc}") from exc

        output, _ = await proc.communicate()
        if proc.returncode != 0:
            text = output.decode("utf-8", errors="replace").strip()
            raise EvaluationError(
                f"Evaluation exited with code {proc.returncode}: {text[-MAX_OUTPUT_CHARS:]}"
            )

    @staticmethod
    def _sanity_check(bundle: Path) -> None:
        try:
            data = bundle.read_bytes()
        except OSError as exc:
            raise EvaluationError(f"Cannot read bundle {bundle}: {exc}") from exc
        if not data.strip():
            raise EvaluationError(f"Bundle {bundle} is empty.")
        try:
            data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EvaluationError(f"Bundle {bundle} is not valid UTF-8: {exc}") from exc
