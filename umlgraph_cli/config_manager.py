"""Configuration manager for umlgraph using TOML files.

Settings are layered: built-in defaults, then the user file
(``$UMLGRAPH_HOME/config.toml``), then ``umlgraph.toml`` in the project
directory.  Later layers override earlier ones key by key.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from .config import CONFIG_FILE, DEFAULT_OUTPUT_DIR, DIAGRAM_FILE_STEM, PROJECT_CONFIG_NAME
from .sources import DEFAULT_SOURCE_ROOTS, SKIP_DIRS

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "diagram": {
        "name": DIAGRAM_FILE_STEM,
        "title": "Class diagram",
        "theme": "blueprint",
        "direction": "left to right",
        "hide_empty_members": True,
        "tag": "umlgraph",
    },
    "resolver": {
        "use_import_oracle": True,
    },
    "scan": {
        "source_roots": list(DEFAULT_SOURCE_ROOTS),
        "skip_dirs": sorted(SKIP_DIRS),
        "output_dir": str(DEFAULT_OUTPUT_DIR),
    },
    "logging": {
        "level": "WARNING",
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_toml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", path, exc)
        return {}


def load_config(config_file: Optional[Path] = None, project_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Load the effective configuration.

    Args:
        config_file: User configuration file; defaults to ``CONFIG_FILE``.
        project_dir: Directory searched for ``umlgraph.toml``; defaults to the
            current working directory.

    Returns:
        Full configuration dictionary with every default section present.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    config = _deep_merge(config, _read_toml(config_file or CONFIG_FILE))
    project_file = (project_dir or Path.cwd()) / PROJECT_CONFIG_NAME
    config = _deep_merge(config, _read_toml(project_file))
    return config


def load_diagram_config(**kwargs: Any) -> Dict[str, Any]:
    return load_config(**kwargs)["diagram"]


def load_resolver_config(**kwargs: Any) -> Dict[str, Any]:
    return load_config(**kwargs)["resolver"]


def load_scan_config(**kwargs: Any) -> Dict[str, Any]:
    return load_config(**kwargs)["scan"]


def render_config(config: Dict[str, Any]) -> str:
    return toml.dumps(config)


def save_config(config: Dict[str, Any], config_file: Optional[Path] = None) -> bool:
    """Write *config* as TOML. Returns False if the file could not be written."""
    target = config_file or CONFIG_FILE
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            toml.dump(config, f)
        return True
    except OSError as exc:
        logger.warning("Could not write config file %s: %s", target, exc)
        return False
