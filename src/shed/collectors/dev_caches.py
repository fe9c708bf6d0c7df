"""IDE and toolchain cache inventory."""

from typing import Iterable

from shed.categories import DEV_CACHE_CANDIDATES, expand_path
from shed.models import CacheCandidate, DevCacheEntry, DevCacheGroup, DevCachesData
from shed.probe import du_size_batch


def group_entries(entries: list[DevCacheEntry], tool_order: list[str]) -> list[DevCacheGroup]:
    """
    Group entries by tool.

    Entries are sorted by size within a group and groups by total size.
    Groups with equal totals keep tool_order.
    """
    by_tool: dict[str, list[DevCacheEntry]] = {tool: [] for tool in tool_order}
    for entry in entries:
        by_tool.setdefault(entry.tool, []).append(entry)

    groups = []
    for tool, tool_entries in by_tool.items():
        if not tool_entries:
            continue
        tool_entries.sort(key=lambda e: e.size_bytes, reverse=True)
        groups.append(
            DevCacheGroup(
                tool=tool,
                entries=tool_entries,
                total_bytes=sum(e.size_bytes for e in tool_entries),
            )
        )

    groups.sort(key=lambda g: g.total_bytes, reverse=True)
    return groups


def collect_dev_caches(
    candidates: Iterable[CacheCandidate] = DEV_CACHE_CANDIDATES,
) -> DevCachesData:
    """
    Measure every candidate cache location.

    Args:
        candidates: Table of known locations; those measuring 0 are dropped

    Returns:
        DevCachesData with grouped and flat views
    """
    candidates = list(candidates)
    paths = [expand_path(c.path) for c in candidates]
    sizes = du_size_batch(paths)

    entries = [
        DevCacheEntry(
            tool=c.tool,
            label=c.label,
            path=str(path),
            size_bytes=sizes[str(path)],
            cleanable=c.cleanable,
            warning_message=c.warning_message,
        )
        for c, path in zip(candidates, paths)
        if sizes[str(path)] > 0
    ]

    tool_order = list(dict.fromkeys(c.tool for c in candidates))
    groups = group_entries(entries, tool_order)
    flat = [entry for group in groups for entry in group.entries]

    return DevCachesData(groups=groups, entries=flat, total_bytes=sum(e.size_bytes for e in flat))
