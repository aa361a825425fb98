from .engine import EngineConfig
from .logging import LoggingConfig

__all__ = ["EngineConfig", "LoggingConfig"]
