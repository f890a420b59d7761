"""Exclusion rules for watcher events.

An ``IgnoreRules`` instance is one ordered list of named matchers.  Each
matcher looks at a normalized event path and may veto dispatch on its own;
a path is excluded if any matcher matches.  Rules are computed once per
session and never mutated.
"""

from __future__ import annotations

import fnmatch
from collections.abc import Callable, Iterable
from pathlib import Path, PurePosixPath

from buildwatch.core.paths import normalize_event_path

PathMatcher = Callable[[PurePosixPath], bool]

DEPENDENCY_DIRS = frozenset({"node_modules"})
TEST_DIRS = frozenset({"test", "tests"})
TEST_FILE_PATTERNS: tuple[str, ...] = ("*.test.js", "*.test.ts")


def _contains_run(parts: tuple[str, ...], run: tuple[str, ...]) -> bool:
    """True if *run* appears as a contiguous subsequence of *parts*."""
    if not run or len(run) > len(parts):
        return False
    width = len(run)
    return any(parts[i : i + width] == run for i in range(len(parts) - width + 1))


def _relative_parts(path: PurePosixPath, root: PurePosixPath) -> tuple[str, ...]:
    if str(root) == ".":
        return path.parts
    try:
        return path.relative_to(root).parts
    except ValueError:
        return path.parts


# ---------------------------------------------------------------------------
# Matcher factories
# ---------------------------------------------------------------------------


def dependency_dir_matcher(names: Iterable[str] = DEPENDENCY_DIRS) -> PathMatcher:
    names = frozenset(names)

    def match(path: PurePosixPath) -> bool:
        return any(part in names for part in path.parts)

    return match


def output_dir_matcher(dist: Path | str) -> PathMatcher:
    """Match anything inside the output directory.

    Compares path segments first (``**/<dist>/**``) and falls back to
    resolved containment so an absolute *dist* is handled too.
    """
    dist_parts = PurePosixPath(normalize_event_path(str(dist))).parts
    resolved_dist = Path(dist).resolve()

    def match(path: PurePosixPath) -> bool:
        if _contains_run(path.parts[:-1], dist_parts):
            return True
        if path.parts == dist_parts:
            return True
        return Path(path).resolve().is_relative_to(resolved_dist)

    return match


def testing_dir_matcher(names: Iterable[str] = TEST_DIRS) -> PathMatcher:
    names = frozenset(names)

    def match(path: PurePosixPath) -> bool:
        return any(part in names for part in path.parts[:-1])

    return match


def testing_file_matcher(patterns: Iterable[str] = TEST_FILE_PATTERNS) -> PathMatcher:
    patterns = tuple(patterns)

    def match(path: PurePosixPath) -> bool:
        return any(fnmatch.fnmatchcase(path.name, pattern) for pattern in patterns)

    return match


def dotfile_matcher(root: str) -> PathMatcher:
    """Match dotfiles and anything inside a dot-directory below *root*.

    The root itself is never matched, nor are ``..`` segments leading to it.
    """
    root_path = PurePosixPath(normalize_event_path(root))

    def match(path: PurePosixPath) -> bool:
        if path == root_path or str(path) == ".":
            return False
        return any(
            part.startswith(".") and part not in (".", "..")
            for part in _relative_parts(path, root_path)
        )

    return match


# ---------------------------------------------------------------------------
# Rule set
# ---------------------------------------------------------------------------


class IgnoreRules:
    """Ordered list of ``(name, matcher)`` pairs.

    Usage
    -----
    >>> rules = IgnoreRules.default(root="src/", dist="dist")
    >>> rules.is_ignored("src/index.test.js")
    True
    >>> rules.match("src/node_modules/x.js")
    'node_modules'
    """

    def __init__(self, matchers: Iterable[tuple[str, PathMatcher]] = ()) -> None:
        self._matchers: list[tuple[str, PathMatcher]] = list(matchers)

    @classmethod
    def default(cls, root: str, dist: Path | str) -> IgnoreRules:
        return cls(
            [
                ("node_modules", dependency_dir_matcher()),
                ("output_dir", output_dir_matcher(dist)),
                ("test_dir", testing_dir_matcher()),
                ("test_file", testing_file_matcher()),
                ("dotfile", dotfile_matcher(root)),
            ]
        )

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self._matchers]

    def match(self, path: str) -> str | None:
        """Return the name of the first matcher that excludes *path*, if any."""
        normalized = PurePosixPath(normalize_event_path(path))
        for name, matcher in self._matchers:
            if matcher(normalized):
                return name
        return None

    def is_ignored(self, path: str) -> bool:
        return self.match(path) is not None

    def __repr__(self) -> str:
        return f"<IgnoreRules {self.names}>"
