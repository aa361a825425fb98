"""
StateGate configuration management (YAML + environment overrides).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from stategate.core.exceptions import ConfigurationError
from stategate.core.schemas.validation import SchemaValidationError, validate_payload
from stategate.core.utils.io import iter_yaml_files, read_yaml
from stategate.core.utils.merge import deep_merge
from stategate.data import get_data_path

logger = logging.getLogger(__name__)

ENV_PREFIX = "STATEGATE_"
PROJECT_CONFIG_DIRNAME = ".stategate"


class ConfigManager:
    """Load, merge, and validate StateGate configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: STATEGATE_<section>__<key>
    2. Project config: <repo_root>/.stategate/config/*.yaml (alphabetical order)
    3. Bundled defaults: stategate.data/config/*.yaml (alphabetical order)
    """

    def __init__(self, repo_root: Optional[Path] = None) -> None:
        self.repo_root = Path(repo_root) if repo_root is not None else Path.cwd()
        self.core_config_dir = get_data_path("config")
        self.project_config_dir = self.repo_root / PROJECT_CONFIG_DIRNAME / "config"

    # ========== Environment overrides ==========

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except ValueError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _parse_env_key(self, raw: str) -> List[str]:
        segs = raw.split("__")
        if any(seg == "" for seg in segs):
            raise ValueError(f"Malformed {ENV_PREFIX}* key: empty segment in '{raw}'.")
        # Lowercase so env overrides land on canonical snake_case keys.
        return [seg.lower() for seg in segs]

    def iter_env_overrides(self) -> Iterator[Tuple[List[str], Any]]:
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX):]
            if not raw:
                raise ValueError(f"Malformed {ENV_PREFIX}* key")
            yield self._parse_env_key(raw), self._coerce_type(os.environ[key])

    def _set_nested(self, root: Dict[str, Any], path: List[str], value: Any) -> None:
        cur: Any = root
        for part in path[:-1]:
            nxt = cur.get(part)
            if not isinstance(nxt, dict):
                if nxt is not None:
                    raise ValueError(f"Path '{'.'.join(path)}' traverses non-mapping value")
                nxt = {}
                cur[part] = nxt
            cur = nxt
        cur[path[-1]] = value

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> None:
        for path, typed_value in self.iter_env_overrides():
            self._set_nested(cfg, path, typed_value)

    # ========== Loading ==========

    def _load_directory(self, directory: Path, cfg: Dict[str, Any]) -> Dict[str, Any]:
        for path in iter_yaml_files(directory):
            # Fail closed: configuration must never silently ignore invalid YAML.
            data = read_yaml(path, default={}, raise_on_error=True)
            if not isinstance(data, dict):
                raise ConfigurationError(f"Config file {path} must contain a mapping", context={"path": str(path)})
            cfg = deep_merge(cfg, data)
        return cfg

    def load_uncached(self, validate: bool = True) -> Dict[str, Any]:
        """Load configuration from every layer, bypassing the cache."""
        cfg: Dict[str, Any] = {}
        cfg = self._load_directory(self.core_config_dir, cfg)
        if self.project_config_dir.is_dir():
            logger.debug("Loading project config from %s", self.project_config_dir)
            cfg = self._load_directory(self.project_config_dir, cfg)
        self.apply_env_overrides(cfg)
        if validate:
            self.validate(cfg)
        return cfg

    def validate(self, cfg: Dict[str, Any]) -> None:
        try:
            validate_payload(cfg, "config/config.schema.yaml")
        except SchemaValidationError as exc:
            raise ConfigurationError(str(exc), context={"repo_root": str(self.repo_root)}) from exc

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """Load configuration through the shared cache.

        The returned dict is shared between callers and must be treated as
        read-only.
        """
        from .cache import get_cached_config

        return get_cached_config(repo_root=self.repo_root, validate=validate)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-notation key.

        Example:
            >>> manager.get("engine.validate_definitions")
            True
        """
        current: Any = self.load_config()
        for part in key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current


__all__ = ["ConfigManager", "ENV_PREFIX", "PROJECT_CONFIG_DIRNAME"]
