"""Guard maps and the guard pipeline.

Guards are callables receiving a :class:`GuardContext`. A guard passes by
returning ``None`` (or any non-string value) and blocks the transition by
returning a message string. Raising is not a refusal: the exception travels
back to the caller untouched. Guards may be coroutine functions.

Guards are gathered from four scopes, always in this order:

1. ``all`` - every transition
2. ``transitions[name]`` - one transition
3. ``from_state[state]`` - leaving a state
4. ``to_state[state]`` - entering a state

The scopes are flattened into one list, so the first failure anywhere stops
the pipeline.
"""
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Hashable, Mapping, Optional, Sequence, Union

from ..audit import audit_active, audit_event, resolve_logging_config
from ..config.domains.logging import LoggingConfig
from ..exceptions import ConfigurationError
from ..utils.text import format_state

logger = logging.getLogger(__name__)

GuardResult = Optional[str]
Guard = Callable[["GuardContext"], Union[GuardResult, Awaitable[GuardResult], Any]]

_SCOPES = ("all", "transitions", "from_state", "to_state")


@dataclass(frozen=True)
class GuardContext:
    """What a guard gets to look at."""

    entity: Any
    transition: Hashable
    from_state: Hashable
    to_state: Hashable


def guard_name(guard: Guard) -> str:
    return getattr(guard, "__qualname__", None) or getattr(guard, "__name__", None) or repr(guard)


def _guard_list(value: Any, where: str) -> tuple[Guard, ...]:
    if value is None:
        return ()
    if callable(value) or isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise ConfigurationError(f"Guards for {where} must be a list of callables", context={"scope": where})
    for guard in value:
        if not callable(guard):
            raise ConfigurationError(
                f"Guard {guard!r} in {where} is not callable",
                context={"scope": where},
            )
    return tuple(value)


def _keyed_lists(value: Any, scope: str) -> Mapping[Hashable, tuple[Guard, ...]]:
    if value is None:
        return MappingProxyType({})
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Guard scope '{scope}' must be a mapping", context={"scope": scope})
    return MappingProxyType(
        {key: _guard_list(guards, f"{scope}[{format_state(key)}]") for key, guards in value.items()}
    )


@dataclass(frozen=True)
class GuardMap:
    """Guards grouped by scope. Every scope is optional."""

    all: tuple[Guard, ...] = ()
    transitions: Mapping[Hashable, tuple[Guard, ...]] = field(default_factory=lambda: MappingProxyType({}))
    from_state: Mapping[Hashable, tuple[Guard, ...]] = field(default_factory=lambda: MappingProxyType({}))
    to_state: Mapping[Hashable, tuple[Guard, ...]] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def coerce(cls, value: Any) -> Optional["GuardMap"]:
        """Normalize user input into a GuardMap.

        ``None`` stays ``None`` (no guard map). A mapping such as ``{}`` or
        ``{"all": [...], "to_state": {...}}`` becomes a GuardMap; unknown
        keys are rejected.
        """
        if value is None or isinstance(value, GuardMap):
            return value
        if not isinstance(value, Mapping):
            raise ConfigurationError("guards must be a mapping or a GuardMap")
        unknown = sorted(str(k) for k in value if k not in _SCOPES)
        if unknown:
            raise ConfigurationError(
                f"Unknown guard scopes: {', '.join(unknown)}; expected any of: {', '.join(_SCOPES)}",
                context={"unknown": unknown},
            )
        return cls(
            all=_guard_list(value.get("all"), "all"),
            transitions=_keyed_lists(value.get("transitions"), "transitions"),
            from_state=_keyed_lists(value.get("from_state"), "from_state"),
            to_state=_keyed_lists(value.get("to_state"), "to_state"),
        )

    def collect(self, transition: Hashable, from_state: Hashable, to_state: Hashable) -> list[Guard]:
        """Return the guards applying to one transition, in evaluation order."""
        return [
            *self.all,
            *self.transitions.get(transition, ()),
            *self.from_state.get(from_state, ()),
            *self.to_state.get(to_state, ()),
        ]


_RESOLVE: Any = object()


async def find_guard_failure(
    guards: Sequence[Guard],
    context: GuardContext,
    *,
    repo_root: Path | None = None,
    logging_config: Optional[LoggingConfig] = _RESOLVE,
) -> Optional[tuple[str, str]]:
    """Run ``guards`` one after another and stop at the first failure.

    Every result is awaited if awaitable. Guards after the first failure are
    not called. Exceptions raised by a guard propagate unchanged.

    Audit settings are read once per call from ``repo_root``, unless the
    caller passes ``logging_config`` (None meaning audit is off).

    Returns:
        ``(guard_name, message)`` for the failing guard, or None when every
        guard passed.
    """
    cfg = resolve_logging_config(repo_root) if logging_config is _RESOLVE else logging_config
    audit = audit_active(cfg)

    for guard in guards:
        name = guard_name(guard)
        try:
            result = guard(context)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            if audit:
                audit_event(
                    "guard.error",
                    config=cfg,
                    guard=name,
                    transition=context.transition,
                    error=str(exc),
                )
            raise

        blocked = isinstance(result, str)
        logger.debug(
            "Guard %s %s transition %s (%s -> %s)",
            name,
            "blocked" if blocked else "passed",
            context.transition,
            context.from_state,
            context.to_state,
        )
        if audit:
            audit_event(
                "guard.check",
                config=cfg,
                guard=name,
                transition=context.transition,
                **{"from": context.from_state, "to": context.to_state},
                result="blocked" if blocked else "pass",
            )
        if blocked:
            return name, result
    return None


async def run_guards(
    guards: Sequence[Guard],
    context: GuardContext,
    *,
    repo_root: Path | None = None,
) -> Optional[str]:
    """Like :func:`find_guard_failure` but returns only the failure message."""
    failure = await find_guard_failure(guards, context, repo_root=repo_root)
    return failure[1] if failure else None


__all__ = [
    "Guard",
    "GuardContext",
    "GuardMap",
    "GuardResult",
    "find_guard_failure",
    "guard_name",
    "run_guards",
]
