"""Path validators and derived watch paths.

Validators run once during session setup and raise a ``PathValidationError``
subclass with a descriptive message.  They are the only startup failures
that terminate an invocation.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)

BUNDLE_SUFFIX = ".js"


class PathValidationError(ValueError):
    """Base class for invalid source, output directory, or output name."""


class InvalidOutputName(PathValidationError):
    """Raised when the output file name is not a bare ``*.js`` file name."""


class SourceNotFound(PathValidationError):
    """Raised when the source path does not reference a regular file."""


class OutputDirInvalid(PathValidationError):
    """Raised when the output directory is not a directory or cannot be created."""


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


def validate_outfile_name(name: str) -> str:
    """Ensure *name* is a legal output file name and return it.

    A legal name has no directory component and ends in ``.js``.
    """
    if (
        not name
        or "/" in name
        or "\\" in name
        or name in (".", "..")
        or not name.endswith(BUNDLE_SUFFIX)
        or name == BUNDLE_SUFFIX
    ):
        raise InvalidOutputName(f"Invalid outfile name: {name!r}. Must be a .js file name.")
    return name


def validate_file_path(path: Path | str) -> Path:
    """Ensure *path* exists and is a regular file."""
    p = Path(path)
    if not p.is_file():
        raise SourceNotFound(f"Invalid params: '{path}' is not a file or does not exist.")
    return p


def validate_dir_path(path: Path | str, create: bool = False) -> Path:
    """Ensure *path* is a directory, optionally creating it.

    Parameters
    ----------
    path:
        Directory to check.
    create:
        Create the directory (and parents) when it does not exist.
    """
    p = Path(path)
    if p.exists():
        if not p.is_dir():
            raise OutputDirInvalid(f"Invalid params: '{path}' is not a directory.")
        return p

    if not create:
        raise OutputDirInvalid(f"Invalid params: '{path}' does not exist.")

    try:
        p.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OutputDirInvalid(
            f"Invalid params: could not create directory '{path}': {exc}"
        ) from exc
    logger.info("Created output directory %s", p)
    return p


# ---------------------------------------------------------------------------
# Derived paths
# ---------------------------------------------------------------------------


def compute_root_dir(src: Path | str) -> str:
    """Directory to watch for a given entry file.

    Everything up to and including the last separator of *src*, or ``"."``
    when *src* has no directory component.
    """
    text = str(src)
    cut = max(text.rfind("/"), text.rfind(os.sep))
    if cut < 0:
        return "."
    return text[: cut + 1]


def get_outfile_path(dist: Path | str, outfile_name: str | None, default_name: str) -> Path:
    """Join the output directory with the output (or default) file name."""
    return Path(dist) / (outfile_name or default_name)


def normalize_event_path(path: str) -> str:
    """Normalize a watcher-reported path to a relative POSIX-style string.

    ``./src/a.js`` and ``src//a.js`` both become ``src/a.js``.
    """
    normalized = os.path.normpath(path).replace(os.sep, "/")
    return str(PurePosixPath(normalized))
