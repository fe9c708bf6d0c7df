"""Collection orchestration: run every collector, link, reconcile, cache."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

from shed.cache import save_cached_snapshot
from shed.categories import DEFAULT_HOST_PATHS, HostPaths
from shed.cleaner import collect_cleanup_actions
from shed.collectors.apps import collect_apps
from shed.collectors.brew import collect_brew
from shed.collectors.dev_caches import collect_dev_caches
from shed.collectors.docker import collect_docker
from shed.collectors.npm import collect_npm_cache, collect_npm_globals
from shed.collectors.projects import collect_git_repos, collect_node_modules
from shed.config import ShedConfig, effective_scan_roots
from shed.linker import apply_provenance, build_link_map, link_docker_projects
from shed.models import (
    AppsData,
    BrewData,
    CleanupActionsData,
    DevCachesData,
    DockerData,
    GitReposData,
    NodeModulesData,
    NpmCacheData,
    NpmGlobalsData,
    ProvenanceLinks,
    Snapshot,
)
from shed.probe import total_disk_size

log = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class CollectionState(str, Enum):
    """Phases of one inventory run."""

    IDLE = "idle"
    RUNNING = "running"
    LINKING = "linking"
    RECONCILING = "reconciling"
    READY = "snapshot-ready"


def settle(name: str, fn: Callable[[], Any], fallback: Any) -> Any:
    """Call fn, turning any failure into fallback."""
    try:
        return fn()
    except Exception as e:
        log.warning("%s failed, using empty result: %s", name, e)
        log.debug("%s traceback", name, exc_info=True)
        return fallback


def reconcile_repos_with_docker(git_repos: GitReposData, docker: DockerData) -> GitReposData:
    """
    Attach Docker image tags to the git repositories they were built from.

    Linked paths are matched exactly against repository paths first; a
    linked name is matched against repository names only when no
    path-matched repository already carries that name.
    """
    if not git_repos.repos:
        return git_repos

    by_path: dict[str, int] = {}
    by_name: dict[str, int] = {}
    for index, repo in enumerate(git_repos.repos):
        by_path.setdefault(repo.path, index)
        by_name.setdefault(repo.name, index)

    linked = [list(repo.linked_docker_images) for repo in git_repos.repos]

    artifacts = [
        (image.display_tag, image.linked_project_paths, image.linked_projects)
        for image in docker.images
    ] + [
        (container.image or container.name, container.linked_project_paths, container.linked_projects)
        for container in docker.containers
    ]

    for tag, paths, names in artifacts:
        path_matched: set[str] = set()
        for path in paths:
            index = by_path.get(path)
            if index is None:
                continue
            path_matched.add(git_repos.repos[index].name)
            if tag not in linked[index]:
                linked[index].append(tag)
        for name in names:
            if name in path_matched:
                continue
            index = by_name.get(name)
            if index is not None and tag not in linked[index]:
                linked[index].append(tag)

    repos = [
        repo.model_copy(update={"linked_docker_images": tags})
        for repo, tags in zip(git_repos.repos, linked)
    ]
    return git_repos.model_copy(update={"repos": repos})


class InventoryRun:
    """
    One orchestration run.

    All collectors are dispatched at once; each failure is isolated behind
    that collector's empty value. Linking starts once every collector has
    settled, then Docker artifacts are reconciled with git repositories.
    """

    def __init__(
        self,
        config: Optional[ShedConfig] = None,
        home: Optional[Path] = None,
        host_paths: HostPaths = DEFAULT_HOST_PATHS,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self.host_paths = host_paths
        self.home = home or host_paths.resolve("home")
        self.scan_roots = effective_scan_roots(config, self.home)
        self.progress_callback = progress_callback
        self.state = CollectionState.IDLE
        self.done = 0

    def _set_state(self, state: CollectionState) -> None:
        log.debug("Inventory %s -> %s", self.state.value, state.value)
        self.state = state

    def _tick(self, total: int) -> None:
        self.done += 1
        if self.progress_callback:
            self.progress_callback(self.done, total)

    def collectors(self) -> dict[str, tuple[Callable[[], Any], Any]]:
        """Collector name -> (callable, fallback value)."""
        host = self.host_paths
        roots = self.scan_roots
        return {
            "brew": (
                lambda: collect_brew(host.resolve("brew_cellar"), host.resolve("brew_cache")),
                BrewData(),
            ),
            "npm_globals": (
                lambda: collect_npm_globals(host.resolve("npm_global_modules")),
                NpmGlobalsData(),
            ),
            "npm_cache": (lambda: collect_npm_cache(host.resolve("npm_cache")), NpmCacheData()),
            "node_modules": (lambda: collect_node_modules(roots, self.home), NodeModulesData()),
            "docker": (collect_docker, DockerData()),
            "apps": (lambda: collect_apps(host.resolve("applications")), AppsData()),
            "dev_caches": (collect_dev_caches, DevCachesData()),
            "git_repos": (lambda: collect_git_repos(roots, self.home), GitReposData()),
            "cleanup_actions": (collect_cleanup_actions, CleanupActionsData()),
            "total_disk_bytes": (total_disk_size, 0),
        }

    def run(self) -> Snapshot:
        collectors = self.collectors()
        total = len(collectors) + 1
        results: dict[str, Any] = {}

        self._set_state(CollectionState.RUNNING)
        with ThreadPoolExecutor(max_workers=len(collectors), thread_name_prefix="shed-collect") as executor:
            futures = {
                executor.submit(settle, name, fn, fallback): name
                for name, (fn, fallback) in collectors.items()
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()
                self._tick(total)

        self._set_state(CollectionState.LINKING)
        brew: BrewData = results["brew"]
        npm_globals: NpmGlobalsData = results["npm_globals"]
        git_repos: GitReposData = results["git_repos"]
        docker: DockerData = results["docker"]

        package_names = [p.name for p in brew.packages] + [p.name for p in npm_globals.packages]
        links = settle("package links", lambda: build_link_map(package_names, self.home), {})
        provenance = settle(
            "docker links",
            lambda: link_docker_projects(
                docker, self.home, known_projects=[r.name for r in git_repos.repos]
            ),
            ProvenanceLinks(),
        )
        docker = apply_provenance(docker, provenance)
        self._tick(total)

        self._set_state(CollectionState.RECONCILING)
        git_repos = reconcile_repos_with_docker(git_repos, docker)

        snapshot = Snapshot(
            brew=brew,
            npm_globals=npm_globals,
            npm_cache=results["npm_cache"],
            node_modules=results["node_modules"],
            docker=docker,
            apps=results["apps"],
            dev_caches=results["dev_caches"],
            git_repos=git_repos,
            cleanup_actions=results["cleanup_actions"],
            links=links,
            total_disk_bytes=results["total_disk_bytes"],
        )
        self._set_state(CollectionState.READY)
        return snapshot


def collect_all(
    progress_callback: Optional[ProgressCallback] = None,
    config: Optional[ShedConfig] = None,
    home: Optional[Path] = None,
    host_paths: HostPaths = DEFAULT_HOST_PATHS,
    cache_path: Optional[Path] = None,
) -> Snapshot:
    """
    Run a full inventory and overwrite the cached snapshot.

    Args:
        progress_callback: Optional callback(done, total), called after each
            collector settles and once more after linking
        config: User configuration (scan roots)
        home: Home directory used for project discovery
        host_paths: Platform locations read by the collectors
        cache_path: Where to write the snapshot (default: ~/.cache/shed)

    Returns:
        The new snapshot
    """
    snapshot = InventoryRun(config, home, host_paths, progress_callback).run()
    save_cached_snapshot(snapshot, cache_path)
    return snapshot
