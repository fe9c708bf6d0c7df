"""Installed application inventory."""

from pathlib import Path

from shed.categories import APP_SUFFIX, DEFAULT_HOST_PATHS
from shed.models import AppEntry, AppsData
from shed.probe import du_size_batch
from shed.recursive_scanner import read_directory


def collect_apps(applications_dir: Path | None = None, suffix: str = APP_SUFFIX) -> AppsData:
    """
    List application bundles with their sizes.

    Args:
        applications_dir: Directory holding the bundles (default: /Applications)
        suffix: Bundle suffix that identifies an application

    Returns:
        AppsData sorted by size descending; bundles that measure 0 are dropped
    """
    apps_dir = applications_dir or DEFAULT_HOST_PATHS.resolve("applications")
    listing = read_directory(apps_dir)

    bundles = [apps_dir / name for name in sorted(listing.names) if name.endswith(suffix)]
    sizes = du_size_batch(bundles)

    apps = [
        AppEntry(name=bundle.name, path=str(bundle), size_bytes=sizes[str(bundle)])
        for bundle in bundles
        if sizes[str(bundle)] > 0
    ]
    apps.sort(key=lambda a: a.size_bytes, reverse=True)

    return AppsData(apps=apps, total_bytes=sum(a.size_bytes for a in apps))
