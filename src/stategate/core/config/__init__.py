"""Layered YAML configuration for StateGate."""
from .cache import clear_config_cache, get_cached_config
from .manager import ConfigManager, ENV_PREFIX, PROJECT_CONFIG_DIRNAME
from .domains import EngineConfig, LoggingConfig

__all__ = [
    "ConfigManager",
    "ENV_PREFIX",
    "PROJECT_CONFIG_DIRNAME",
    "get_cached_config",
    "clear_config_cache",
    "EngineConfig",
    "LoggingConfig",
]
