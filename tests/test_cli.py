"""Tests for CLI interface."""

import json
from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from shed.cli import app
from shed.config import ShedConfig
from shed.models import (
    BrewData,
    BrewPackage,
    GitRepoEntry,
    GitReposData,
    ProjectLink,
    ScanRoot,
    Snapshot,
)

runner = CliRunner()


def snapshot() -> Snapshot:
    return Snapshot(
        brew=BrewData(
            packages=[BrewPackage(name="jq", size_bytes=1024), BrewPackage(name="wget", size_bytes=10)],
            total_bytes=1034,
        ),
        git_repos=GitReposData(
            repos=[
                GitRepoEntry(
                    name="findash",
                    path="/home/u/findash",
                    size_bytes=10_000,
                    linked_docker_images=["findash-api:latest"],
                )
            ],
            total_bytes=10_000,
        ),
        links={"jq": [ProjectLink(project_name="scripts", files=["Makefile"])]},
        total_disk_bytes=1024**4,
    )


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "shed version" in result.stdout

    def test_version_short_flag(self):
        result = runner.invoke(app, ["-v"])
        assert result.exit_code == 0
        assert "shed version" in result.stdout


class TestHelp:
    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ["scan", "links", "repos", "docker", "caches", "clean", "config"]:
            assert command in result.stdout

    def test_scan_help(self):
        result = runner.invoke(app, ["scan", "--help"])
        assert result.exit_code == 0
        assert "--refresh" in result.stdout


class TestScan:
    def test_uses_cache(self):
        with patch("shed.cli.load_cached_snapshot", return_value=snapshot()), \
             patch("shed.cli.collect_all") as mock_collect:
            result = runner.invoke(app, ["scan"])

        assert result.exit_code == 0
        assert "Homebrew packages" in result.stdout
        mock_collect.assert_not_called()

    def test_refresh_ignores_cache(self):
        with patch("shed.cli.load_cached_snapshot") as mock_cache, \
             patch("shed.cli.load_config", return_value=ShedConfig()), \
             patch("shed.cli.collect_all", return_value=snapshot()) as mock_collect:
            result = runner.invoke(app, ["scan", "--refresh"])

        assert result.exit_code == 0
        mock_cache.assert_not_called()
        mock_collect.assert_called_once()

    def test_missing_cache_runs_collection(self):
        with patch("shed.cli.load_cached_snapshot", return_value=None), \
             patch("shed.cli.load_config", return_value=ShedConfig()), \
             patch("shed.cli.collect_all", return_value=snapshot()) as mock_collect:
            result = runner.invoke(app, ["scan"])

        assert result.exit_code == 0
        mock_collect.assert_called_once()

    def test_json_output(self):
        with patch("shed.cli.load_cached_snapshot", return_value=snapshot()):
            result = runner.invoke(app, ["scan", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["brew"]["packages"][0]["name"] == "jq"


class TestLinks:
    def test_known_package(self):
        with patch("shed.cli.load_cached_snapshot", return_value=snapshot()):
            result = runner.invoke(app, ["links", "jq"])

        assert result.exit_code == 0
        assert "scripts" in result.stdout
        assert "Makefile" in result.stdout

    def test_installed_but_unreferenced(self):
        with patch("shed.cli.load_cached_snapshot", return_value=snapshot()):
            result = runner.invoke(app, ["links", "wget"])

        assert result.exit_code == 0
        assert "No projects reference wget" in result.stdout

    def test_unknown_package(self):
        with patch("shed.cli.load_cached_snapshot", return_value=snapshot()):
            result = runner.invoke(app, ["links", "nonexistent"])

        assert result.exit_code == 1
        assert "Unknown package" in result.stdout


class TestSections:
    def test_repos(self):
        with patch("shed.cli.load_cached_snapshot", return_value=snapshot()):
            result = runner.invoke(app, ["repos"])

        assert result.exit_code == 0
        assert "findash" in result.stdout

    def test_docker_offline(self):
        with patch("shed.cli.load_cached_snapshot", return_value=snapshot()):
            result = runner.invoke(app, ["docker"])

        assert result.exit_code == 0
        assert "Docker is not running" in result.stdout

    def test_caches(self):
        with patch("shed.cli.load_cached_snapshot", return_value=snapshot()):
            result = runner.invoke(app, ["caches"])

        assert result.exit_code == 0
        assert "No developer caches found" in result.stdout


class TestClean:
    def test_unknown_action(self):
        result = runner.invoke(app, ["clean", "nonexistent"])
        assert result.exit_code == 1
        assert "Unknown action" in result.stdout
        assert "brew-cleanup" in result.stdout

    def test_declined(self):
        with patch("shed.cli.estimate_size", return_value=0), \
             patch("shed.cli.confirm_action", return_value=False), \
             patch("shed.cli.run_cleanup_action") as mock_run:
            result = runner.invoke(app, ["clean", "docker-prune"])

        assert result.exit_code == 0
        assert "Cancelled" in result.stdout
        mock_run.assert_not_called()

    def test_runs_with_yes(self):
        process = MagicMock()
        process.wait.return_value = 0

        def start(action, on_output):
            on_output("Total reclaimed space: 1.2GB\n")
            return process

        with patch("shed.cli.estimate_size", return_value=0), \
             patch("shed.cli.run_cleanup_action", side_effect=start) as mock_run:
            result = runner.invoke(app, ["clean", "docker-prune", "--yes"])

        assert result.exit_code == 0
        assert "Total reclaimed space" in result.stdout
        assert mock_run.call_args[0][0].args == ["system", "prune", "-f"]

    def test_failed_command(self):
        process = MagicMock()
        process.wait.return_value = 2

        with patch("shed.cli.estimate_size", return_value=0), \
             patch("shed.cli.run_cleanup_action", return_value=process):
            result = runner.invoke(app, ["clean", "brew-autoremove", "-y"])

        assert result.exit_code == 2

    def test_interrupt_kills_process(self):
        process = MagicMock()
        process.wait.side_effect = KeyboardInterrupt

        with patch("shed.cli.estimate_size", return_value=0), \
             patch("shed.cli.run_cleanup_action", return_value=process):
            result = runner.invoke(app, ["clean", "docker-prune", "-y"])

        process.kill.assert_called_once()
        assert result.exit_code == 130


class TestConfig:
    def test_show(self):
        with patch("shed.cli.load_config", return_value=ShedConfig()):
            result = runner.invoke(app, ["config"])

        assert result.exit_code == 0
        assert "Scan Roots" in result.stdout

    def test_add_root(self, tmp_path):
        with patch("shed.cli.load_config", return_value=ShedConfig()), \
             patch("shed.cli.save_config") as mock_save:
            result = runner.invoke(app, ["config", "--add", str(tmp_path), "--depth", "5"])

        assert result.exit_code == 0
        saved = mock_save.call_args[0][0]
        assert saved.git_scan_paths == [ScanRoot(path=str(tmp_path), depth=5)]

    def test_add_existing_root_replaces_depth(self, tmp_path):
        existing = ShedConfig(git_scan_paths=[ScanRoot(path=str(tmp_path), depth=2)])
        with patch("shed.cli.load_config", return_value=existing), \
             patch("shed.cli.save_config") as mock_save:
            runner.invoke(app, ["config", "--add", str(tmp_path), "--depth", "4"])

        assert mock_save.call_args[0][0].git_scan_paths == [ScanRoot(path=str(tmp_path), depth=4)]

    def test_save_failure(self, tmp_path):
        with patch("shed.cli.load_config", return_value=ShedConfig()), \
             patch("shed.cli.save_config", side_effect=PermissionError("denied")):
            result = runner.invoke(app, ["config", "--add", str(tmp_path)])

        assert result.exit_code == 1
        assert "Could not save configuration" in result.stdout
