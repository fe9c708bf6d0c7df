"""Homebrew package inventory."""

import json
import logging
from pathlib import Path
from typing import Any

from shed.categories import DEFAULT_HOST_PATHS
from shed.models import BrewData, BrewPackage
from shed.probe import du_size, du_size_batch, run

log = logging.getLogger(__name__)

BREW_INFO_TIMEOUT = 60.0
SIZE_CONCURRENCY = 12


def parse_brew_info(output: str) -> list[BrewPackage]:
    """
    Parse ``brew info --json=v1 --installed`` output.

    Records without a string ``name`` are skipped; malformed JSON yields [].
    """
    try:
        records = json.loads(output)
    except json.JSONDecodeError as e:
        log.debug("Unparsable brew info output: %s", e)
        return []
    if not isinstance(records, list):
        return []

    packages = []
    for record in records:
        if not isinstance(record, dict) or not isinstance(record.get("name"), str):
            continue
        packages.append(_package_from_record(record))
    return packages


def _package_from_record(record: dict[str, Any]) -> BrewPackage:
    installed = record.get("installed")
    first_install = installed[0] if isinstance(installed, list) and installed else {}
    if not isinstance(first_install, dict):
        first_install = {}
    versions = record.get("versions") if isinstance(record.get("versions"), dict) else {}

    version = first_install.get("version") or versions.get("stable") or "?"
    installed_on = first_install.get("installed_on")
    dependencies = record.get("dependencies")

    return BrewPackage(
        name=record["name"],
        version=str(version),
        description=record.get("desc") or "",
        installed_on_request=bool(
            record.get("installed_on_request", first_install.get("installed_on_request", False))
        ),
        installed_on=str(installed_on) if installed_on is not None else None,
        dependencies=[d for d in dependencies if isinstance(d, str)]
        if isinstance(dependencies, list)
        else [],
    )


def collect_brew(cellar: Path | None = None, cache_dir: Path | None = None) -> BrewData:
    """
    Inventory installed Homebrew formulae.

    Args:
        cellar: Homebrew Cellar directory (each formula sized at cellar/<name>)
        cache_dir: Homebrew download cache

    Returns:
        BrewData with packages sorted by size descending
    """
    cellar = cellar or DEFAULT_HOST_PATHS.resolve("brew_cellar")
    cache_dir = cache_dir or DEFAULT_HOST_PATHS.resolve("brew_cache")

    output = run("brew", ["info", "--json=v1", "--installed"], timeout=BREW_INFO_TIMEOUT)
    cache_bytes = du_size(cache_dir)

    packages = parse_brew_info(output) if output else []
    if not packages:
        return BrewData(cache_bytes=cache_bytes)

    sizes = du_size_batch([cellar / p.name for p in packages], concurrency=SIZE_CONCURRENCY)
    packages = [
        p.model_copy(update={"size_bytes": sizes[str(cellar / p.name)]}) for p in packages
    ]
    packages = [p for p in packages if p.size_bytes > 0]
    packages.sort(key=lambda p: p.size_bytes, reverse=True)

    return BrewData(
        packages=packages,
        cache_bytes=cache_bytes,
        total_bytes=sum(p.size_bytes for p in packages),
    )
