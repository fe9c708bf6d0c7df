"""Bounded recursive directory discovery for projects and developer artifacts.

This module finds directories that contain a marker entry (like ``.git`` or
``node_modules``) and files of interest, walking one directory level at a
time so that every directory of a level is read concurrently.
"""

import logging
import os
from pathlib import Path
from typing import Callable, NamedTuple, Union

from shed.categories import SKIP_DIRECTORIES
from shed.pool import BoundedPool

log = logging.getLogger(__name__)

Marker = Union[str, Callable[[str], bool]]


class DirListing(NamedTuple):
    """Names found in one directory, split by kind."""

    names: frozenset[str]
    dirs: tuple[str, ...]
    files: tuple[str, ...]


EMPTY_LISTING = DirListing(frozenset(), (), ())


def read_directory(path: Path) -> DirListing:
    """
    List a directory without following symlinks.

    Unreadable directories (permissions, deleted mid-scan) read as empty.
    """
    names: list[str] = []
    dirs: list[str] = []
    files: list[str] = []
    try:
        with os.scandir(path) as entries:
            for entry in entries:
                names.append(entry.name)
                try:
                    if entry.is_dir(follow_symlinks=False):
                        dirs.append(entry.name)
                    elif entry.is_file(follow_symlinks=False):
                        files.append(entry.name)
                except OSError:
                    continue
    except OSError as e:
        log.debug("Cannot read %s: %s", path, e)
        return EMPTY_LISTING

    return DirListing(frozenset(names), tuple(sorted(dirs)), tuple(sorted(files)))


def _as_predicate(marker: Marker) -> Callable[[str], bool]:
    if isinstance(marker, str):
        return lambda name: name == marker
    return marker


def _descendable(name: str, skip: frozenset[str], allowed_hidden: frozenset[str]) -> bool:
    if name in skip:
        return False
    if name.startswith(".") and name not in allowed_hidden:
        return False
    return True


def walk_levels(
    root: Path,
    visit: Callable[[Path, DirListing], bool],
    max_depth: int = 3,
    skip: frozenset[str] = SKIP_DIRECTORIES,
    allowed_hidden: frozenset[str] = frozenset(),
    exclude: Callable[[str], bool] | None = None,
    max_workers: int = 8,
) -> None:
    """
    Breadth-first bounded walk.

    The root has depth 0 and a directory at depth ``d`` is read only while
    ``d <= max_depth``. ``visit`` is called in the walking thread for every
    directory read, in discovery order, and returns whether to descend.

    Args:
        root: Directory to start from
        visit: Callback(path, listing) -> descend into subdirectories?
        max_depth: Deepest level that is read
        skip: Directory names never descended into
        allowed_hidden: Dot-prefixed names that are still descended into
        exclude: Extra per-name filter for subdirectories
        max_workers: Concurrent directory reads per level
    """
    pool = BoundedPool(max_workers)
    level = [Path(root)]
    depth = 0

    while level and depth <= max_depth:
        listings = pool.map(read_directory, level, default=EMPTY_LISTING)
        next_level: list[Path] = []

        for path, listing in zip(level, listings):
            if not visit(path, listing) or depth == max_depth:
                continue
            for name in listing.dirs:
                if not _descendable(name, skip, allowed_hidden):
                    continue
                if exclude is not None and exclude(name):
                    continue
                next_level.append(path / name)

        level = next_level
        depth += 1


def find_marked_directories(
    root: Path,
    marker: Marker,
    max_depth: int = 3,
    skip: frozenset[str] = SKIP_DIRECTORIES,
    stop_at_marker: bool = True,
    allowed_hidden: frozenset[str] = frozenset(),
    max_workers: int = 8,
) -> list[Path]:
    """
    Find directories containing a marker entry.

    Args:
        root: Directory to start from (depth 0)
        marker: Entry name, or predicate over entry names
        max_depth: Deepest directory level inspected for the marker
        skip: Directory names never descended into
        stop_at_marker: If True, nothing below a hit is scanned; if False,
            only the marker entry itself is skipped and its siblings are scanned
        allowed_hidden: Hidden directory names that are still descended into
        max_workers: Concurrent directory reads per level

    Returns:
        Directories holding the marker, in discovery order
    """
    is_marker = _as_predicate(marker)
    hits: list[Path] = []

    def visit(path: Path, listing: DirListing) -> bool:
        if any(is_marker(name) for name in listing.names):
            hits.append(path)
            return not stop_at_marker
        return True

    walk_levels(
        root,
        visit,
        max_depth=max_depth,
        skip=skip,
        allowed_hidden=allowed_hidden,
        exclude=is_marker,
        max_workers=max_workers,
    )
    return hits


def find_relevant_files(
    root: Path,
    is_relevant: Callable[[str], bool],
    max_depth: int = 3,
    skip: frozenset[str] = SKIP_DIRECTORIES,
    allowed_hidden: frozenset[str] = frozenset(),
    max_workers: int = 8,
) -> list[Path]:
    """Find files whose name satisfies is_relevant, within max_depth of root."""
    found: list[Path] = []

    def visit(path: Path, listing: DirListing) -> bool:
        found.extend(path / name for name in listing.files if is_relevant(name))
        return True

    walk_levels(
        root,
        visit,
        max_depth=max_depth,
        skip=skip,
        allowed_hidden=allowed_hidden,
        max_workers=max_workers,
    )
    return found


def list_scan_roots(home: Path, skip: frozenset[str] = SKIP_DIRECTORIES) -> list[Path]:
    """Top-level directories of home worth scanning, sorted by name."""
    listing = read_directory(home)
    return [home / name for name in listing.dirs if _descendable(name, skip, frozenset())]
