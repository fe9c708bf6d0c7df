"""Project trees: git repositories and node_modules directories."""

import logging
from pathlib import Path
from typing import Optional

from shed.categories import (
    BUILD_DIRECTORIES,
    GIT_MARKER,
    NODE_MODULES,
    SKIP_DIRECTORIES,
    expand_path,
)
from shed.models import GitRepoEntry, GitReposData, NodeModulesData, NodeModulesEntry, ScanRoot
from shed.pool import BoundedPool
from shed.probe import du_size_batch
from shed.recursive_scanner import find_marked_directories, list_scan_roots, read_directory

log = logging.getLogger(__name__)

ROOT_CONCURRENCY = 4


def _top_level_dirs(
    scan_roots: list[ScanRoot], marker: str, home: Optional[Path] = None
) -> list[tuple[Path, int]]:
    """
    (directory, depth) to scan for every scan root, without duplicates.

    A scan root is normally split into its top-level directories. A root
    other than the home directory that holds the marker itself is scanned
    as a whole instead, so a configured project directory is found.
    """
    home = home or Path.home()
    seen: set[Path] = set()
    tops: list[tuple[Path, int]] = []
    for root in scan_roots:
        root_path = expand_path(root.path)
        if root_path != home and marker in read_directory(root_path).names:
            candidates = [root_path]
        else:
            candidates = list_scan_roots(root_path, SKIP_DIRECTORIES)
        for top in candidates:
            if top in seen:
                continue
            seen.add(top)
            tops.append((top, root.depth))
    return tops


def _find_in_tops(
    tops: list[tuple[Path, int]], marker: str, stop_at_marker: bool
) -> list[tuple[Path, Path]]:
    """Run the marker scan under every top-level dir; returns (top, hit) pairs."""

    def scan(item: tuple[Path, int]) -> list[Path]:
        top, depth = item
        return find_marked_directories(
            top,
            marker,
            max_depth=depth,
            skip=BUILD_DIRECTORIES,
            stop_at_marker=stop_at_marker,
        )

    per_top = BoundedPool(ROOT_CONCURRENCY).map(scan, tops, default=[])
    seen: set[Path] = set()
    pairs = []
    for (top, _), hits in zip(tops, per_top):
        for hit in hits:
            if hit not in seen:
                seen.add(hit)
                pairs.append((top, hit))
    return pairs


def collect_node_modules(scan_roots: list[ScanRoot], home: Optional[Path] = None) -> NodeModulesData:
    """
    Find node_modules directories under the scan roots.

    A located node_modules is never entered, but its sibling directories
    are still scanned. Entries that measure 0 are dropped.
    """
    pairs = _find_in_tops(_top_level_dirs(scan_roots, NODE_MODULES, home), NODE_MODULES, stop_at_marker=False)
    nm_paths = [hit / NODE_MODULES for _, hit in pairs]
    sizes = du_size_batch(nm_paths)

    entries = [
        NodeModulesEntry(project_name=top.name, path=str(nm), size_bytes=sizes[str(nm)])
        for (top, _), nm in zip(pairs, nm_paths)
        if sizes[str(nm)] > 0
    ]
    entries.sort(key=lambda e: e.size_bytes, reverse=True)

    return NodeModulesData(entries=entries, total_bytes=sum(e.size_bytes for e in entries))


def collect_git_repos(scan_roots: list[ScanRoot], home: Optional[Path] = None) -> GitReposData:
    """
    Find git repositories under the scan roots.

    Each repository gets three independent measurements: the whole tree,
    its .git directory, and a co-located node_modules when present.
    Scanning stops at a repository, so nested repositories are not listed.
    """
    pairs = _find_in_tops(_top_level_dirs(scan_roots, GIT_MARKER, home), GIT_MARKER, stop_at_marker=True)
    repo_paths = [hit for _, hit in pairs]

    probe_paths: list[Path] = []
    for repo in repo_paths:
        probe_paths.append(repo)
        probe_paths.append(repo / GIT_MARKER)
        if (repo / NODE_MODULES).is_dir():
            probe_paths.append(repo / NODE_MODULES)
    sizes = du_size_batch(probe_paths)

    repos = [
        GitRepoEntry(
            name=repo.name,
            path=str(repo),
            size_bytes=sizes.get(str(repo), 0),
            git_size_bytes=sizes.get(str(repo / GIT_MARKER), 0),
            node_modules_size_bytes=sizes.get(str(repo / NODE_MODULES), 0),
        )
        for repo in repo_paths
    ]
    repos.sort(key=lambda r: r.size_bytes, reverse=True)
    log.debug("Found %d git repositories", len(repos))

    return GitReposData(
        repos=repos,
        total_bytes=sum(r.size_bytes for r in repos),
        total_git_bytes=sum(r.git_size_bytes for r in repos),
        total_node_modules_bytes=sum(r.node_modules_size_bytes for r in repos),
    )
