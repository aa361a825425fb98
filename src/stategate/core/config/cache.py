"""Centralized configuration caching.

Every domain config reads through this cache so a process loads each
project's configuration once. Each (root, validate) slot keeps a single
entry, fingerprinted by the environment overrides and the project config
files' mtimes, so edits are picked up without an explicit reset.
"""
from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from stategate.core.utils.io import iter_yaml_files

# One entry per (root, validate) slot: (fingerprint, config). A changed
# fingerprint replaces the entry instead of adding another.
_config_cache: Dict[Tuple[str, bool], Tuple[str, Dict[str, Any]]] = {}


def _normalize_repo_root(repo_root: Optional[Path]) -> Path:
    if repo_root is None:
        return Path.cwd().resolve()
    return Path(repo_root).expanduser().resolve()


def _fingerprint(repo_root: Path) -> str:
    from .manager import ENV_PREFIX, PROJECT_CONFIG_DIRNAME

    env_items = sorted(
        (k, os.environ.get(k, "")) for k in os.environ.keys() if k.startswith(ENV_PREFIX)
    )
    files: list[tuple[str, int, int]] = []
    for p in iter_yaml_files(repo_root / PROJECT_CONFIG_DIRNAME / "config"):
        st = p.stat()
        files.append((p.name, int(st.st_mtime_ns), int(st.st_size)))

    return hashlib.sha256(repr((env_items, files)).encode("utf-8")).hexdigest()[:16]


def get_cached_config(repo_root: Optional[Path] = None, validate: bool = True) -> Dict[str, Any]:
    """Return the merged configuration for ``repo_root``, loading it once."""
    root = _normalize_repo_root(repo_root)
    slot = (str(root), validate)
    fingerprint = _fingerprint(root)
    cached = _config_cache.get(slot)
    if cached is not None and cached[0] == fingerprint:
        return cached[1]

    from .manager import ConfigManager

    cfg = ConfigManager(repo_root=root).load_uncached(validate=validate)
    _config_cache[slot] = (fingerprint, cfg)
    return cfg


def clear_config_cache() -> None:
    """Drop every cached configuration."""
    _config_cache.clear()


__all__ = ["get_cached_config", "clear_config_cache"]
