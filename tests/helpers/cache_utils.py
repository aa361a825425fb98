"""Cache utilities for test isolation."""
from __future__ import annotations


def reset_stategate_caches() -> None:
    """Reset module-level caches that might persist state between tests."""
    from stategate.core.config.cache import clear_config_cache
    from stategate.core.state.registry import guard_registry

    clear_config_cache()
    guard_registry.reset()
