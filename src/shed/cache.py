"""Snapshot cache: the last scan, kept for 24 hours."""

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from shed.categories import expand_path
from shed.models import LinkMap, Snapshot

log = logging.getLogger(__name__)

CACHE_DIR = expand_path("~/.cache/shed")
CACHE_FILE = CACHE_DIR / "last-scan.json"
MAX_AGE_SECONDS = 24 * 60 * 60
TIMESTAMP_FIELD = "_timestamp"


def encode_links(links: LinkMap) -> list[list[Any]]:
    """Encode a LinkMap as an ordered list of [package, [link, ...]] pairs."""
    return [
        [package, [link.model_dump(mode="json") for link in project_links]]
        for package, project_links in links.items()
    ]


def decode_links(value: Any) -> Any:
    """
    Rebuild a LinkMap from its pair-list encoding.

    Values that are not lists are returned unchanged.
    """
    if not isinstance(value, list):
        return value
    return {pair[0]: pair[1] for pair in value if isinstance(pair, list) and len(pair) == 2}


def save_cached_snapshot(
    snapshot: Snapshot,
    path: Optional[Path] = None,
    now: Optional[float] = None,
) -> None:
    """Persist a snapshot atomically. Failures are logged and ignored."""
    cache_file = path or CACHE_FILE
    payload = snapshot.model_dump(mode="json")
    payload["links"] = encode_links(snapshot.links)
    payload[TIMESTAMP_FIELD] = int((now if now is not None else time.time()) * 1000)

    try:
        cache_file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=cache_file.parent, prefix=".last-scan-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f)
            os.replace(tmp_name, cache_file)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except (OSError, TypeError, ValueError) as e:
        log.debug("Could not write cache %s: %s", cache_file, e)


def load_cached_snapshot(
    path: Optional[Path] = None,
    now: Optional[float] = None,
    max_age: float = MAX_AGE_SECONDS,
) -> Optional[Snapshot]:
    """
    Load the cached snapshot if it is fresh.

    Returns:
        The snapshot, or None if the file is missing, unparsable, or older
        than max_age seconds
    """
    cache_file = path or CACHE_FILE
    try:
        raw = json.loads(cache_file.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        log.debug("No usable cache at %s: %s", cache_file, e)
        return None
    if not isinstance(raw, dict):
        return None

    timestamp = raw.pop(TIMESTAMP_FIELD, None)
    if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
        return None
    current = now if now is not None else time.time()
    if current * 1000 - timestamp >= max_age * 1000:
        log.debug("Cache at %s is stale", cache_file)
        return None

    if "links" in raw:
        raw["links"] = decode_links(raw["links"])
    try:
        return Snapshot.model_validate(raw)
    except ValidationError as e:
        log.debug("Cached snapshot does not validate: %s", e)
        return None
