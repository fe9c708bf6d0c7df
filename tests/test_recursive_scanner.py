"""Tests for recursive directory scanning."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from shed.recursive_scanner import (
    find_marked_directories,
    find_relevant_files,
    list_scan_roots,
    read_directory,
)


def make_repo(path: Path) -> Path:
    (path / ".git").mkdir(parents=True)
    return path


class TestReadDirectory:
    def test_splits_dirs_and_files(self, tmp_path):
        (tmp_path / "b").mkdir()
        (tmp_path / "a").mkdir()
        (tmp_path / "file.txt").write_text("x")

        listing = read_directory(tmp_path)
        assert listing.dirs == ("a", "b")
        assert listing.files == ("file.txt",)
        assert listing.names == {"a", "b", "file.txt"}

    def test_missing_directory_reads_empty(self, tmp_path):
        listing = read_directory(tmp_path / "missing")
        assert listing.names == frozenset()
        assert listing.dirs == ()

    def test_permission_error_reads_empty(self, tmp_path):
        with patch("shed.recursive_scanner.os.scandir", side_effect=PermissionError("denied")):
            assert read_directory(tmp_path).dirs == ()

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlinked_directory_is_not_a_dir(self, tmp_path):
        target = tmp_path / "target"
        target.mkdir()
        (tmp_path / "link").symlink_to(target)

        listing = read_directory(tmp_path)
        assert "link" in listing.names
        assert "link" not in listing.dirs


class TestFindMarkedDirectories:
    def test_finds_repository(self, tmp_path):
        repo = make_repo(tmp_path / "work" / "app")
        assert find_marked_directories(tmp_path, ".git") == [repo]

    def test_marker_at_depth_limit_found(self, tmp_path):
        repo = make_repo(tmp_path / "a" / "b" / "c")
        assert find_marked_directories(tmp_path, ".git", max_depth=3) == [repo]

    def test_marker_below_depth_limit_not_found(self, tmp_path):
        make_repo(tmp_path / "a" / "b" / "c" / "d")
        assert find_marked_directories(tmp_path, ".git", max_depth=3) == []

    def test_root_itself_can_be_a_hit(self, tmp_path):
        make_repo(tmp_path)
        assert find_marked_directories(tmp_path, ".git", max_depth=0) == [tmp_path]

    def test_no_descendants_after_hit(self, tmp_path):
        outer = make_repo(tmp_path / "outer")
        make_repo(outer / "packages" / "inner")
        make_repo(outer / "vendor-copy")

        assert find_marked_directories(tmp_path, ".git") == [outer]

    def test_continue_past_marker_scans_siblings(self, tmp_path):
        project = tmp_path / "web"
        (project / "node_modules" / "dep" / "node_modules").mkdir(parents=True)
        (project / "packages" / "ui" / "node_modules").mkdir(parents=True)

        hits = find_marked_directories(tmp_path, "node_modules", max_depth=4, stop_at_marker=False)
        assert hits == [project, project / "packages" / "ui"]

    def test_skip_set_not_descended(self, tmp_path):
        make_repo(tmp_path / "Library" / "thing")
        repo = make_repo(tmp_path / "code" / "thing")

        hits = find_marked_directories(tmp_path, ".git", skip=frozenset({"Library"}))
        assert hits == [repo]

    def test_hidden_directories_not_descended(self, tmp_path):
        make_repo(tmp_path / ".hidden" / "repo")
        assert find_marked_directories(tmp_path, ".git") == []

    def test_allowed_hidden_directory_descended(self, tmp_path):
        repo = make_repo(tmp_path / ".work" / "repo")
        hits = find_marked_directories(tmp_path, ".git", allowed_hidden=frozenset({".work"}))
        assert hits == [repo]

    def test_predicate_marker(self, tmp_path):
        (tmp_path / "apps" / "Tool.app").mkdir(parents=True)
        hits = find_marked_directories(tmp_path, lambda name: name.endswith(".app"))
        assert hits == [tmp_path / "apps"]

    def test_unreadable_root(self, tmp_path):
        assert find_marked_directories(tmp_path / "missing", ".git") == []


class TestFindRelevantFiles:
    def test_collects_matching_files(self, tmp_path):
        (tmp_path / "sub").mkdir()
        (tmp_path / "package.json").write_text("{}")
        (tmp_path / "sub" / "package.json").write_text("{}")
        (tmp_path / "README.md").write_text("hi")

        found = find_relevant_files(tmp_path, lambda n: n == "package.json")
        assert found == [tmp_path / "package.json", tmp_path / "sub" / "package.json"]

    def test_respects_depth(self, tmp_path):
        deep = tmp_path / "a" / "b"
        deep.mkdir(parents=True)
        (deep / "Makefile").write_text("all:")

        assert find_relevant_files(tmp_path, lambda n: n == "Makefile", max_depth=1) == []
        assert find_relevant_files(tmp_path, lambda n: n == "Makefile", max_depth=2) == [
            deep / "Makefile"
        ]


class TestListScanRoots:
    def test_excludes_hidden_and_skipped(self, tmp_path):
        for name in ["projects", "Library", ".config", "work"]:
            (tmp_path / name).mkdir()
        (tmp_path / "notes.txt").write_text("x")

        roots = list_scan_roots(tmp_path, frozenset({"Library"}))
        assert roots == [tmp_path / "projects", tmp_path / "work"]
