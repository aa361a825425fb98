"""Named guard registry with domain-aware lookups.

Declarative machine definitions refer to guards by name. Names are resolved
through a registry, where a guard may be registered for one domain (usually
the machine's name) or shared by all of them::

    registry.register("has_reason", check_reason, domain="user")
    registry.register("not_locked", check_lock)  # shared

    registry.get("has_reason", domain="user")   # check_reason
    registry.get("not_locked", domain="user")   # falls back to the shared guard
"""

from __future__ import annotations

from typing import Callable, Dict, Optional, Sequence

from ..exceptions import ConfigurationError
from .guards import Guard


class GuardRegistry:
    """Registry of guard callables keyed by name and domain.

    Attributes:
        SHARED_DOMAIN: Domain of guards visible to every machine
    """

    SHARED_DOMAIN = "shared"

    def __init__(self) -> None:
        self._guards: Dict[str, Guard] = {}

    def _make_key(self, name: str, domain: str = SHARED_DOMAIN) -> str:
        if domain == self.SHARED_DOMAIN:
            return name
        return f"{domain}:{name}"

    def register(self, name: str, guard: Guard, domain: str = SHARED_DOMAIN) -> None:
        """Register a guard. Overwrites an existing guard with the same key."""
        if not callable(guard):
            raise TypeError("guard must be callable")
        self._guards[self._make_key(name, domain)] = guard

    def get(self, name: str, domain: str = SHARED_DOMAIN) -> Optional[Guard]:
        """Get a guard by name, falling back to the shared domain."""
        if domain != self.SHARED_DOMAIN:
            key = self._make_key(name, domain)
            if key in self._guards:
                return self._guards[key]
        return self._guards.get(name)

    def lookup(self, name: str, domains: Sequence[str]) -> Optional[Guard]:
        """Get a guard from the first of ``domains`` registering it, else shared."""
        for domain in domains:
            key = self._make_key(name, domain)
            if key in self._guards:
                return self._guards[key]
        return self._guards.get(name)

    def has(self, name: str, domain: str = SHARED_DOMAIN) -> bool:
        return self.get(name, domain) is not None

    def resolve(self, name: str, domain: str = SHARED_DOMAIN) -> Guard:
        """Like :meth:`get` but raises for unknown names."""
        guard = self.get(name, domain)
        if guard is None:
            raise ConfigurationError(
                f"Unknown guard: {name} (domain: {domain})",
                context={"guard": name, "domain": domain},
            )
        return guard

    def list_guards(self, domain: Optional[str] = None) -> Dict[str, Guard]:
        """List guards, optionally as seen from one domain."""
        if domain is None:
            return dict(self._guards)

        result: Dict[str, Guard] = {}
        prefix = f"{domain}:"
        for key, guard in self._guards.items():
            if key.startswith(prefix):
                result[key[len(prefix):]] = guard
            elif ":" not in key and key not in result:
                result[key] = guard
        return result

    def reset(self) -> None:
        self._guards.clear()


# Global registry instance
guard_registry = GuardRegistry()


def register_guard(
    name: str,
    domain: str = GuardRegistry.SHARED_DOMAIN,
    *,
    registry: Optional[GuardRegistry] = None,
) -> Callable[[Guard], Guard]:
    """Decorator registering a guard under ``name``."""

    def decorator(fn: Guard) -> Guard:
        (registry or guard_registry).register(name, fn, domain)
        return fn

    return decorator


__all__ = ["GuardRegistry", "guard_registry", "register_guard"]
