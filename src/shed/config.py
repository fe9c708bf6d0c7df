"""User configuration for shed."""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from shed.categories import expand_path
from shed.models import ScanRoot

log = logging.getLogger(__name__)

CONFIG_FILE = expand_path("~/.config/shed/config.json")
DEFAULT_DEPTH = 3


class ShedConfig(BaseModel):
    """Settings read from ~/.config/shed/config.json."""

    git_scan_paths: list[ScanRoot] = Field(
        default_factory=list,
        description="Extra project scan roots, each with its own depth",
    )
    replace_default_root: bool = Field(
        False,
        description="Scan only git_scan_paths instead of adding them to the home directory",
    )


def load_config(path: Optional[Path] = None) -> ShedConfig:
    """Load configuration, falling back to defaults if missing or invalid."""
    config_file = path or CONFIG_FILE
    try:
        raw = json.loads(config_file.read_text(encoding="utf-8"))
        return ShedConfig.model_validate(raw)
    except FileNotFoundError:
        return ShedConfig()
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
        log.warning("Ignoring invalid config %s: %s", config_file, e)
        return ShedConfig()


def save_config(config: ShedConfig, path: Optional[Path] = None) -> None:
    """Write configuration. Raises OSError if the file cannot be written."""
    config_file = path or CONFIG_FILE
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(config.model_dump_json(indent=2) + "\n", encoding="utf-8")


def effective_scan_roots(config: Optional[ShedConfig] = None, home: Optional[Path] = None) -> list[ScanRoot]:
    """
    Scan roots to use for project discovery.

    The home directory at depth 3 is included unless the configuration
    replaces it. A configured root with the same path overrides its depth.
    """
    config = config or ShedConfig()
    home = home or Path.home()

    roots: dict[str, ScanRoot] = {}
    if not (config.replace_default_root and config.git_scan_paths):
        roots[str(home)] = ScanRoot(path=str(home), depth=DEFAULT_DEPTH)
    for root in config.git_scan_paths:
        key = str(expand_path(root.path))
        roots[key] = ScanRoot(path=key, depth=root.depth)
    return list(roots.values())
