"""Tests for the watcher exclusion rules."""

from __future__ import annotations

from pathlib import PurePosixPath

import pytest

from buildwatch.core.ignore import IgnoreRules, dotfile_matcher, output_dir_matcher
from buildwatch.core.paths import normalize_event_path



@pytest.fixture
def rules() -> IgnoreRules:
    return IgnoreRules.default(root="src/", dist="dist")


class TestDefaultRules:
    def test_rule_order(self, rules: IgnoreRules):
        assert rules.names == ["node_modules", "output_dir", "test_dir", "test_file", "dotfile"]

    @pytest.mark.parametrize(
        ("path", "reason"),
        [
            ("src/node_modules/lodash/index.js", "node_modules"),
            ("node_modules/x.js", "node_modules"),
            ("dist/bundle.js", "output_dir"),
            ("src/dist/chunk.js", "output_dir"),
            ("src/test/helpers.js", "test_dir"),
            ("src/tests/unit/a.js", "test_dir"),
            ("src/index.test.js", "test_file"),
            ("src/utils/math.test.ts", "test_file"),
            ("src/.eslintrc", "dotfile"),
            ("src/.cache/data.js", "dotfile"),
        ],
    )
    def test_excluded(self, rules: IgnoreRules, path: str, reason: str):
        assert rules.match(path) == reason
        assert rules.is_ignored(path)

    @pytest.mark.parametrize(
        "path",
        [
            "src/helpers.js",
            "src/index.js",
            "src/lib/testing.js",
            "src/contest/a.js",
            "src/index.spec.js",
            "src/testdata.test.json",
        ],
    )
    def test_not_excluded(self, rules: IgnoreRules, path: str):
        assert rules.match(path) is None

    def test_leading_dot_slash_is_normalized(self, rules: IgnoreRules):
        assert rules.match("./src/helpers.js") is None
        assert rules.match("./dist/bundle.js") == "output_dir"


class TestDotfiles:
    def test_current_dir_root_is_never_excluded(self):
        rules = IgnoreRules.default(root=".", dist="dist")
        assert not rules.is_ignored(".")
        assert rules.match("./.env") == "dotfile"
        assert rules.match("index.js") is None

    def test_parent_relative_root(self):
        match = dotfile_matcher("../project/")
        assert not match(PurePosixPath(normalize_event_path("../project/index.js")))
        assert match(PurePosixPath(normalize_event_path("../project/.git/HEAD")))

    def test_root_itself(self):
        match = dotfile_matcher("src/")
        assert not match(PurePosixPath("src"))


class TestOutputDir:
    def test_nested_output_dir(self):
        match = output_dir_matcher("build/out")
        assert match(PurePosixPath("build/out/bundle.js"))
        assert not match(PurePosixPath("build/bundle.js"))

    def test_absolute_output_dir(self, tmp_path):
        dist = tmp_path / "dist"
        match = output_dir_matcher(dist)
        assert match(PurePosixPath((dist / "bundle.js").as_posix()))
        assert not match(PurePosixPath((tmp_path / "src" / "a.js").as_posix()))
