"""Tests for display module."""

from unittest.mock import patch

from rich.progress import Progress
from rich.table import Table

from shed.display import (
    confirm_action,
    show_caches,
    show_cleanup_actions,
    show_cleanup_preview,
    show_dashboard,
    show_docker,
    show_links,
    show_repos,
    show_scan_roots,
    show_scanning_progress,
    usage_color,
)
from shed.models import (
    CleanupAction,
    CleanupActionsData,
    DevCacheEntry,
    DevCacheGroup,
    DevCachesData,
    DockerContainer,
    DockerData,
    DockerImage,
    DockerVolume,
    GitRepoEntry,
    GitReposData,
    ProjectLink,
    ScanRoot,
    Snapshot,
)


def printed_text(mock_console) -> str:
    return "\n".join(str(call.args[0]) for call in mock_console.print.call_args_list if call.args)


def printed_tables(mock_console) -> list[Table]:
    return [call.args[0] for call in mock_console.print.call_args_list if call.args and isinstance(call.args[0], Table)]


class TestUsageColor:
    def test_thresholds(self):
        assert usage_color(30, 100) == "red"
        assert usage_color(15, 100) == "yellow"
        assert usage_color(1, 100) == "green"

    def test_unknown_disk_size(self):
        assert usage_color(10, 0) == "white"


class TestShowDashboard:
    @patch("shed.display.console")
    def test_prints_table_and_summary(self, mock_console):
        show_dashboard(Snapshot(total_disk_bytes=1024**4))
        tables = printed_tables(mock_console)
        assert len(tables) == 1
        assert tables[0].title == "Developer Disk Usage"

    @patch("shed.display.console")
    def test_docker_offline_row(self, mock_console):
        show_dashboard(Snapshot())
        table = printed_tables(mock_console)[0]
        assert "[dim]offline[/dim]" in table.columns[2]._cells


class TestShowLinks:
    @patch("shed.display.console")
    def test_lists_projects_and_files(self, mock_console):
        show_links("jq", [ProjectLink(project_name="scripts", files=["Makefile", "ci.yml"])])
        text = printed_text(mock_console)
        assert "scripts" in text
        assert "Makefile" in text
        assert "ci.yml" in text

    @patch("shed.display.console")
    def test_no_links(self, mock_console):
        show_links("wget", [])
        assert "No projects reference wget" in printed_text(mock_console)


class TestShowRepos:
    @patch("shed.display.console")
    def test_table_rows(self, mock_console):
        data = GitReposData(
            repos=[
                GitRepoEntry(name="a", path="/a", size_bytes=10, linked_docker_images=["a:1", "a:2"]),
                GitRepoEntry(name="b", path="/b", size_bytes=5),
            ],
            total_bytes=15,
        )
        show_repos(data)
        table = printed_tables(mock_console)[0]
        assert table.row_count == 2
        assert "a:1, a:2" in table.columns[4]._cells

    @patch("shed.display.console")
    def test_empty(self, mock_console):
        show_repos(GitReposData())
        assert "No git repositories found" in printed_text(mock_console)


class TestShowDocker:
    @patch("shed.display.console")
    def test_offline(self, mock_console):
        show_docker(DockerData(online=False))
        assert "not running" in printed_text(mock_console)
        assert printed_tables(mock_console) == []

    @patch("shed.display.console")
    def test_three_tables(self, mock_console):
        data = DockerData(
            online=True,
            images=[DockerImage(repository="redis", tag="7", size_str="40MB", linked_projects=["shop"])],
            containers=[DockerContainer(name="c1", image="redis:7", state="running")],
            volumes=[DockerVolume(name="shop_data", linked_projects=["shop"])],
            build_cache_size_str="1GB",
            build_cache_reclaimable_str="512MB",
        )
        show_docker(data)
        tables = printed_tables(mock_console)
        assert [t.title for t in tables] == ["Images", "Containers", "Volumes"]
        assert "1GB" in printed_text(mock_console)


class TestShowCaches:
    @patch("shed.display.console")
    def test_groups_then_actions(self, mock_console):
        entry = DevCacheEntry(tool="Go", label="Module cache", path="/go", size_bytes=10, cleanable=True)
        caches = DevCachesData(
            groups=[DevCacheGroup(tool="Go", entries=[entry], total_bytes=10)],
            entries=[entry],
            total_bytes=10,
        )
        actions = CleanupActionsData(
            actions=[CleanupAction(id="x", label="X", description="d", command="true")]
        )
        show_caches(caches, actions)
        tables = printed_tables(mock_console)
        assert [t.title for t in tables] == ["Developer Caches", "Cleanup Actions"]


class TestShowCleanupActions:
    @patch("shed.display.console")
    def test_unknown_size(self, mock_console):
        show_cleanup_actions(
            [CleanupAction(id="docker-prune", label="Prune", description="", command="docker", args=["system", "prune"])]
        )
        table = printed_tables(mock_console)[0]
        assert table.columns[2]._cells == ["?"]
        assert table.columns[3]._cells == ["docker system prune"]


class TestShowCleanupPreview:
    @patch("shed.display.console")
    def test_warning_panel(self, mock_console):
        show_cleanup_preview(
            CleanupAction(id="x", label="X", description="d", command="true", warning="Careful")
        )
        assert mock_console.print.call_count == 2

    @patch("shed.display.console")
    def test_no_warning(self, mock_console):
        show_cleanup_preview(CleanupAction(id="x", label="X", description="d", command="true"))
        assert mock_console.print.call_count == 1


class TestShowScanRoots:
    @patch("shed.display.console")
    def test_rows(self, mock_console):
        show_scan_roots([ScanRoot(path="/home/u", depth=3), ScanRoot(path="/src", depth=5)])
        assert printed_tables(mock_console)[0].row_count == 2


class TestProgress:
    def test_scanning_progress(self):
        assert isinstance(show_scanning_progress(), Progress)


class TestConfirmAction:
    @patch("rich.prompt.Confirm.ask", return_value=True)
    def test_confirm(self, mock_ask):
        assert confirm_action("Proceed?") is True
        mock_ask.assert_called_once_with("Proceed?")
