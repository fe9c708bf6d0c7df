"""Tests for static tables."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from shed.categories import (
    BUILD_DIRECTORIES,
    CLEANUP_DEFINITIONS,
    COMPOSE_FILENAMES,
    DEFAULT_HOST_PATHS,
    DEV_CACHE_CANDIDATES,
    SKIP_DIRECTORIES,
    HostPaths,
    expand_path,
)


class TestExpandPath:
    def test_home(self):
        assert expand_path("~/x") == Path.home() / "x"

    def test_env_var(self, monkeypatch):
        monkeypatch.setenv("SHED_TEST_DIR", "/opt/test")
        assert expand_path("$SHED_TEST_DIR/cache") == Path("/opt/test/cache")


class TestHostPaths:
    def test_defaults(self):
        assert DEFAULT_HOST_PATHS.resolve("applications") == Path("/Applications")
        assert DEFAULT_HOST_PATHS.resolve("brew_cellar") == Path("/opt/homebrew/Cellar")

    def test_override(self, tmp_path):
        host = HostPaths(applications=str(tmp_path))
        assert host.resolve("applications") == tmp_path

    def test_immutable(self):
        with pytest.raises(ValidationError):
            DEFAULT_HOST_PATHS.applications = "/tmp"


class TestDevCacheCandidates:
    def test_labels_unique_per_tool(self):
        keys = [(c.tool, c.label) for c in DEV_CACHE_CANDIDATES]
        assert len(keys) == len(set(keys))

    def test_not_cleanable_have_warnings(self):
        for candidate in DEV_CACHE_CANDIDATES:
            if not candidate.cleanable:
                assert candidate.warning_message, candidate.label

    def test_derived_data_cleanable(self):
        derived = [c for c in DEV_CACHE_CANDIDATES if c.label == "DerivedData"]
        assert derived and derived[0].cleanable


class TestSkipSets:
    def test_system_dirs_skipped(self):
        assert {"Library", "Downloads", ".Trash"} <= SKIP_DIRECTORIES

    def test_build_dirs(self):
        assert {"node_modules", ".git", "dist"} <= BUILD_DIRECTORIES

    def test_compose_file_order(self):
        assert COMPOSE_FILENAMES[0] == "docker-compose.yml"
        assert COMPOSE_FILENAMES[-1] == "compose.yaml"


class TestCleanupDefinitions:
    def test_commands_have_no_shell(self):
        for definition in CLEANUP_DEFINITIONS:
            assert " " not in definition.command

    def test_every_action_warns(self):
        assert all(d.warning for d in CLEANUP_DEFINITIONS)
