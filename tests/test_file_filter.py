"""Tests for codebase_guide.services.file_filter."""

from __future__ import annotations

from conftest import blob

from codebase_guide.domain.entities import TreeEntry
from codebase_guide.services.file_filter import (
    filter_and_rank,
    is_candidate,
    is_noise_path,
    path_depth,
)


class TestIsCandidate:
    def test_keeps_source_outside_noise_dirs(self):
        assert is_candidate(blob("src/index.ts"))
        assert is_candidate(blob("cmd/server/main.go"))
        assert is_candidate(blob("README.md"))

    def test_rejects_directories(self):
        assert not is_candidate(TreeEntry(path="src.py", type="tree"))
        assert not is_candidate(TreeEntry(path="lib.py", type="commit"))

    def test_rejects_noise_dirs(self):
        for path in (
            "node_modules/pkg/index.js",
            "packages/web/node_modules/x/y.ts",
            ".git/hooks/pre-commit.py",
            "dist/bundle.js",
            "build/out.js",
            "vendor/lib/a.go",
            "assets/data.json",
            "images/meta.json",
            "public/manifest.json",
        ):
            assert not is_candidate(blob(path)), path

    def test_rejects_unknown_extensions(self):
        for path in ("logo.png", "Makefile", "setup.cfg", "main.rb", "index.html"):
            assert not is_candidate(blob(path)), path

    def test_noise_check_is_a_substring_test(self):
        assert is_noise_path("src/rebuild/tool.py")
        assert not is_noise_path("src/builder.py")


class TestFilterAndRank:
    def test_readme_first_then_shallow_paths(self):
        entries = [
            blob("src/deep/nested/mod.py"),
            blob("src/app.py"),
            blob("setup.json"),
            blob("docs/readme.md"),
        ]
        ranked = [e.path for e in filter_and_rank(entries, limit=10)]
        assert ranked == [
            "docs/readme.md",
            "setup.json",
            "src/app.py",
            "src/deep/nested/mod.py",
        ]

    def test_ties_keep_tree_order(self):
        entries = [blob("b.py"), blob("a.py"), blob("c.py")]
        assert [e.path for e in filter_and_rank(entries, limit=10)] == ["b.py", "a.py", "c.py"]

    def test_readmes_keep_tree_order_among_themselves(self):
        entries = [blob("pkg/sub/README.md"), blob("README.md"), blob("x.py")]
        ranked = [e.path for e in filter_and_rank(entries, limit=10)]
        assert ranked == ["pkg/sub/README.md", "README.md", "x.py"]

    def test_limit_caps_output_and_keeps_readme(self):
        entries = [blob(f"src/m{i}.py") for i in range(150)] + [blob("docs/ReadMe.md")]
        ranked = filter_and_rank(entries, limit=100)
        assert len(ranked) == 100
        assert ranked[0].path == "docs/ReadMe.md"

    def test_empty_tree(self):
        assert filter_and_rank([], limit=100) == []


def test_path_depth():
    assert path_depth("README.md") == 1
    assert path_depth("src/a/b.py") == 3
