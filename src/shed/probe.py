"""External command probes: disk usage, disk size, tool output."""

import logging
import os
import re
import subprocess
from pathlib import Path

from shed.pool import BoundedPool

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
MAX_OUTPUT_CHARS = 50 * 1024 * 1024

_LEADING_INT = re.compile(r"^\s*(\d+)")


def run(command: str, args: list[str] | tuple[str, ...] = (), timeout: float = DEFAULT_TIMEOUT) -> str:
    """
    Run a command and return its stdout.

    Args:
        command: Executable to run
        args: Arguments passed verbatim (no shell)
        timeout: Seconds before the process is killed

    Returns:
        Captured stdout, or an empty string on any failure
    """
    try:
        result = subprocess.run(
            [command, *args],
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
            env={**os.environ, "LC_ALL": "C"},
        )
    except subprocess.TimeoutExpired:
        log.debug("%s %s timed out after %ss", command, " ".join(args), timeout)
        return ""
    except (OSError, subprocess.SubprocessError) as e:
        log.debug("%s %s failed: %s", command, " ".join(args), e)
        return ""

    if result.returncode != 0:
        log.debug("%s %s exited with %s", command, " ".join(args), result.returncode)
        return ""

    return result.stdout[:MAX_OUTPUT_CHARS]


def du_size(path: str | Path, timeout: float = DEFAULT_TIMEOUT) -> int:
    """
    Measure a path with ``du -sk``.

    Returns:
        Size in bytes, or 0 if the path is missing, unreadable, or du fails
    """
    output = run("du", ["-sk", str(path)], timeout=timeout)
    match = _LEADING_INT.match(output)
    return int(match.group(1)) * 1024 if match else 0


def du_size_batch(paths: list[str | Path], concurrency: int = 8) -> dict[str, int]:
    """
    Measure many paths with at most ``concurrency`` probes in flight.

    Returns:
        Mapping of every requested path (as str) to its size in bytes
    """
    unique = list(dict.fromkeys(str(p) for p in paths))
    sizes = BoundedPool(concurrency).map(du_size, unique, default=0)
    return dict(zip(unique, sizes))


def total_disk_size(mount_point: str = "/") -> int:
    """Total size of the disk holding mount_point, from ``df -k``."""
    output = run("df", ["-k", mount_point])
    lines = output.strip().splitlines()
    if len(lines) < 2:
        return 0
    parts = lines[1].split()
    if len(parts) < 2 or not parts[1].isdigit():
        return 0
    return int(parts[1]) * 1024
