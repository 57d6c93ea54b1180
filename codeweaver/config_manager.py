"""Configuration manager for CodeWeaver using TOML files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Set

import toml

from . import config

logger = logging.getLogger(__name__)


DEFAULT_INDEX_CONFIG: Dict[str, Any] = {
    "max_file_size": config.MAX_FILE_SIZE,
    "skip_dirs": [],
}


def config_candidates(workspace: Optional[Path] = None) -> list[Path]:
    """Config files in lookup order: workspace-local first, then user-level."""
    paths = []
    if workspace is not None:
        paths.append(Path(workspace) / config.STATE_DIR_NAME / config.CONFIG_FILE_NAME)
    paths.append(config.BASE_DIR / config.CONFIG_FILE_NAME)
    return paths


def load_full_config(workspace: Optional[Path] = None) -> Dict[str, Any]:
    """Load the first readable TOML config (all sections)."""
    for path in config_candidates(workspace):
        if not path.exists():
            continue
        try:
            with open(path, "r", encoding="utf-8") as f:
                return toml.load(f)
        except (OSError, toml.TomlDecodeError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", path, exc)
    return {}


def load_index_config(workspace: Optional[Path] = None) -> Dict[str, Any]:
    """Return the ``[index]`` table merged over the defaults.

    Recognised keys:
        max_file_size: byte threshold above which files are skipped.
        skip_dirs: extra directory names to exclude from the walk.
    """
    merged = dict(DEFAULT_INDEX_CONFIG)
    section = load_full_config(workspace).get("index", {})
    if not isinstance(section, dict):
        return merged

    size = section.get("max_file_size")
    if isinstance(size, int) and size > 0:
        merged["max_file_size"] = size
    skip = section.get("skip_dirs")
    if isinstance(skip, list):
        merged["skip_dirs"] = [str(s) for s in skip]
    return merged


def extra_skip_dirs(workspace: Optional[Path] = None) -> Set[str]:
    return set(config.EXTRA_SKIP_DIRS) | set(load_index_config(workspace)["skip_dirs"])


def save_index_config(workspace: Path, **values: Any) -> Path:
    """Write ``[index]`` values into the workspace config, preserving other sections."""
    path = Path(workspace) / config.STATE_DIR_NAME / config.CONFIG_FILE_NAME
    full = load_full_config(workspace) if path.exists() else {}
    section = full.setdefault("index", {})
    section.update({k: v for k, v in values.items() if v is not None})
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        toml.dump(full, f)
    return path
