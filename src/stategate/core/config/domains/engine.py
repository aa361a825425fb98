"""Domain-specific configuration for the transition engine."""
from __future__ import annotations

from functools import cached_property
from typing import Any, Dict

from ..base import BaseDomainConfig


class EngineConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "engine"

    @cached_property
    def validate_definitions(self) -> bool:
        return bool(self.section.get("validate_definitions", True))

    @cached_property
    def default_domain(self) -> str:
        return str(self.section.get("default_domain") or "shared")

    @cached_property
    def machines(self) -> Dict[str, Any]:
        """Declarative machine definitions from the ``statemachine`` section."""
        machines = self._config.get("statemachine") or {}
        return dict(machines) if isinstance(machines, dict) else {}


__all__ = ["EngineConfig"]
