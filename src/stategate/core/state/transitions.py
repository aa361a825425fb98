"""Transition definitions and the source-state validity check.

A transition is a named edge: one or more source states and exactly one
target state. Definitions are usually written as plain mappings::

    {
        "activate": {"from": "inactive", "to": "active"},
        "ban": {"from": ["inactive", "active"], "to": "banned"},
    }

A single ``from`` value and a list of ``from`` values are kept apart because
they produce different refusal messages. Transition names are any hashable
identifier (strings, enum members, ints); they are looked up as given and
only rendered as text in messages.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Hashable, Iterator, Mapping, Optional

from ..exceptions import ConfigurationError, UnknownTransitionError
from ..utils.text import format_state

State = Hashable
TransitionName = Hashable

_ORDERED_SOURCE_TYPES = (list, tuple)
_UNORDERED_SOURCE_TYPES = (set, frozenset)


def _source_tuple(source: Any) -> tuple[State, ...]:
    if isinstance(source, _UNORDERED_SOURCE_TYPES):
        # Set iteration order varies between processes; messages must not.
        return tuple(sorted(source, key=lambda s: (format_state(s), type(s).__name__)))
    return tuple(source)


@dataclass(frozen=True)
class Transition:
    """Immutable edge definition."""

    name: TransitionName
    sources: tuple[State, ...]
    target: State
    multi_source: bool = False

    @classmethod
    def from_definition(cls, name: TransitionName, definition: Any) -> "Transition":
        """Build a transition from a ``{"from": ..., "to": ...}`` mapping.

        A ``Transition`` instance is accepted too and renamed to ``name``.
        A ``from`` list or tuple keeps its order; a set is ordered by the
        rendered state labels.
        """
        if isinstance(definition, Transition):
            if definition.name == name:
                return definition
            return cls(name, definition.sources, definition.target, definition.multi_source)

        label = format_state(name)
        if not isinstance(definition, Mapping) or "from" not in definition or "to" not in definition:
            raise ConfigurationError(
                f"Transition {label} must define 'from' and 'to'",
                context={"transition": label},
            )

        source = definition["from"]
        if isinstance(source, _ORDERED_SOURCE_TYPES + _UNORDERED_SOURCE_TYPES):
            sources = _source_tuple(source)
            if not sources:
                raise ConfigurationError(
                    f"Transition {label} must list at least one source state",
                    context={"transition": label},
                )
            return cls(name, sources, definition["to"], multi_source=True)
        return cls(name, (source,), definition["to"])

    @property
    def label(self) -> str:
        """The transition name as rendered in messages."""
        return format_state(self.name)

    @property
    def source(self) -> State | tuple[State, ...]:
        """The ``from`` value in its declared form."""
        return self.sources if self.multi_source else self.sources[0]

    def allows(self, state: State) -> bool:
        if self.multi_source:
            return state in self.sources
        return state == self.sources[0]

    def refusal(self, state: State) -> Optional[str]:
        """Return why the transition can't leave ``state``, or None if it can."""
        if self.allows(state):
            return None
        current = format_state(state)
        if self.multi_source:
            joined = ", ".join(format_state(s) for s in self.sources)
            return (
                f"Transition {self.label} can only be applied from one of states [{joined}]; "
                f"current state is {current}"
            )
        return (
            f"Transition {self.label} can only be applied from state "
            f"{format_state(self.sources[0])}; current state is {current}"
        )


class TransitionTable(Mapping[TransitionName, Transition]):
    """Read-only mapping of transition name to :class:`Transition`."""

    def __init__(self, definitions: Mapping[TransitionName, Any]) -> None:
        if not isinstance(definitions, Mapping):
            raise ConfigurationError("transitions must be a mapping of name to definition")
        table = {
            name: Transition.from_definition(name, definition)
            for name, definition in definitions.items()
        }
        self._table: Mapping[TransitionName, Transition] = MappingProxyType(table)

    def __getitem__(self, name: TransitionName) -> Transition:
        return self._table[name]

    def __iter__(self) -> Iterator[TransitionName]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def names(self) -> list[TransitionName]:
        return list(self._table)

    def require(self, name: TransitionName) -> Transition:
        """Return the named transition or raise :class:`UnknownTransitionError`."""
        try:
            return self._table[name]
        except (KeyError, TypeError):
            raise UnknownTransitionError(name, self.names()) from None

    def check(self, name: TransitionName, current: State) -> tuple[bool, str]:
        """Check whether transition ``name`` may leave ``current``.

        Returns:
            ``(True, "")`` when allowed, otherwise ``(False, reason)``.

        Raises:
            UnknownTransitionError: ``name`` is not in the table.
        """
        reason = self.require(name).refusal(current)
        if reason is None:
            return True, ""
        return False, reason

    def undeclared_states(self, states: frozenset[State]) -> list[tuple[TransitionName, State]]:
        """List ``(transition, state)`` pairs referencing states outside ``states``."""
        missing: list[tuple[TransitionName, State]] = []
        for name, transition in self._table.items():
            for state in (*transition.sources, transition.target):
                if state not in states:
                    missing.append((name, state))
        return missing


__all__ = ["State", "Transition", "TransitionName", "TransitionTable", "format_state"]
