"""Global npm packages and npm/pnpm caches."""

import json
import logging
from pathlib import Path

from shed.categories import DEFAULT_HOST_PATHS
from shed.models import NpmCacheData, NpmGlobalPackage, NpmGlobalsData
from shed.probe import du_size, du_size_batch, run
from shed.recursive_scanner import read_directory

log = logging.getLogger(__name__)

SELF_ENTRY = "npm"
SCOPE_PREFIX = "@"


def read_manifest(package_dir: Path) -> tuple[str, str]:
    """
    Read version and description from a package.json.

    Returns:
        (version, description), ("?", "") when the manifest is unusable
    """
    try:
        manifest = json.loads((package_dir / "package.json").read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return "?", ""
    if not isinstance(manifest, dict):
        return "?", ""

    version = manifest.get("version")
    description = manifest.get("description")
    return (
        version if isinstance(version, str) else "?",
        description if isinstance(description, str) else "",
    )


def list_global_packages(global_modules: Path) -> list[tuple[str, Path]]:
    """
    List (package name, directory) pairs in a global node_modules.

    Scoped directories are expanded one level and named ``@scope/name``.
    """
    found: list[tuple[str, Path]] = []
    for name in read_directory(global_modules).dirs:
        if name.startswith(".") or name == SELF_ENTRY:
            continue
        if name.startswith(SCOPE_PREFIX):
            scope_dir = global_modules / name
            for sub in read_directory(scope_dir).dirs:
                if not sub.startswith("."):
                    found.append((f"{name}/{sub}", scope_dir / sub))
        else:
            found.append((name, global_modules / name))
    return found


def collect_npm_globals(global_modules: Path | None = None) -> NpmGlobalsData:
    """Inventory globally installed npm packages, sorted by size descending."""
    global_modules = global_modules or DEFAULT_HOST_PATHS.resolve("npm_global_modules")
    entries = list_global_packages(global_modules)
    sizes = du_size_batch([path for _, path in entries])

    packages = []
    for name, path in entries:
        size = sizes[str(path)]
        if size == 0:
            continue
        version, description = read_manifest(path)
        packages.append(
            NpmGlobalPackage(name=name, version=version, description=description, size_bytes=size)
        )

    packages.sort(key=lambda p: p.size_bytes, reverse=True)
    return NpmGlobalsData(packages=packages, total_bytes=sum(p.size_bytes for p in packages))


def collect_npm_cache(npm_cache: Path | None = None) -> NpmCacheData:
    """Measure the npm cache and the pnpm content-addressable store."""
    npm_cache = npm_cache or DEFAULT_HOST_PATHS.resolve("npm_cache")
    store_path = run("pnpm", ["store", "path"]).strip()

    npm_bytes = du_size(npm_cache)
    pnpm_bytes = du_size(store_path) if store_path else 0

    return NpmCacheData(
        npm_cache_bytes=npm_bytes,
        pnpm_store_bytes=pnpm_bytes,
        total_bytes=npm_bytes + pnpm_bytes,
    )
