"""Transition evaluator: ``can`` and ``apply``.

The shape of each result follows its inputs:

- With a guard map configured (even an empty one) both operations always
  return a coroutine, since any guard might need awaiting.
- Without a guard map the result is a plain value unless ``get_state``
  (or, for ``apply``, ``set_state``) returned an awaitable during this call.

Unknown transition names are always raised immediately, before the entity's
state is even read.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Generic, Iterable, Mapping, Optional, TypeVar

from ..audit import audit_active, audit_event, resolve_logging_config
from ..config.domains.engine import EngineConfig
from ..exceptions import ConfigurationError, GuardRejectedError, InvalidSourceStateError
from ..utils.awaitables import MaybeAwaitable, is_deferred, resolve, then
from .guards import GuardContext, GuardMap, find_guard_failure
from .transitions import State, Transition, TransitionName, TransitionTable, format_state

logger = logging.getLogger(__name__)

E = TypeVar("E")

GetState = Callable[[E], MaybeAwaitable[State]]
SetState = Callable[[E, State], MaybeAwaitable[None]]


class StateMachine(Generic[E]):
    """Evaluates named transitions for caller-owned entities.

    The machine never stores entities and never looks inside them: state is
    read with ``get_state(entity)`` and written with
    ``set_state(entity, state)``, either of which may be a coroutine function.

    Args:
        states: Every state token the machine knows about.
        transitions: Mapping of transition name to ``{"from": ..., "to": ...}``.
        get_state: Reads an entity's current state.
        set_state: Moves an entity to a new state.
        guards: Optional guard map (see :class:`GuardMap`).
        name: Machine name; also the registry domain for named guards.
        validate: Check that transitions and guard maps only mention declared
            states and transitions. Defaults to ``engine.validate_definitions``.
        repo_root: Project root used to look up configuration and audit settings.
    """

    def __init__(
        self,
        *,
        states: Iterable[State],
        transitions: Mapping[TransitionName, Any],
        get_state: GetState,
        set_state: SetState,
        guards: GuardMap | Mapping[str, Any] | None = None,
        name: Optional[str] = None,
        validate: Optional[bool] = None,
        repo_root: Optional[Path] = None,
    ) -> None:
        if states is None or isinstance(states, (str, bytes)) or not isinstance(states, Iterable):
            raise ConfigurationError("states must be a collection of state tokens")
        if not callable(get_state):
            raise ConfigurationError("get_state must be callable")
        if not callable(set_state):
            raise ConfigurationError("set_state must be callable")

        self.name = name
        try:
            self._states: tuple[State, ...] = tuple(dict.fromkeys(states))
        except TypeError as exc:
            raise ConfigurationError(f"State tokens must be hashable: {exc}") from exc
        self._table = TransitionTable(transitions)
        self._get_state = get_state
        self._set_state = set_state
        self._guards = GuardMap.coerce(guards)
        # Audit settings are fixed for the machine's lifetime; calls never reload config.
        self._logging = resolve_logging_config(repo_root)
        self._audit = audit_active(self._logging)

        if validate is None:
            validate = EngineConfig(repo_root=repo_root).validate_definitions
        if validate:
            self._validate_definitions()

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return f"<StateMachine{label} states={len(self._states)} transitions={len(self._table)}>"

    # ---- configuration ----

    def _validate_definitions(self) -> None:
        declared = frozenset(self._states)
        problems: list[str] = []
        for transition, state in self._table.undeclared_states(declared):
            problems.append(
                f"transition {format_state(transition)} references undeclared state {format_state(state)}"
            )

        if self._guards is not None:
            for transition in self._guards.transitions:
                if transition not in self._table:
                    problems.append(
                        f"guards.transitions references unknown transition {format_state(transition)}"
                    )
            for scope in ("from_state", "to_state"):
                for state in getattr(self._guards, scope):
                    if state not in declared:
                        problems.append(f"guards.{scope} references undeclared state {format_state(state)}")

        if problems:
            raise ConfigurationError(
                "Invalid state machine definition: " + "; ".join(problems),
                context={"machine": self.name, "problems": problems},
            )

    @property
    def states(self) -> tuple[State, ...]:
        return self._states

    @property
    def transitions(self) -> TransitionTable:
        return self._table

    @property
    def transition_names(self) -> list[TransitionName]:
        return self._table.names()

    @property
    def guards(self) -> Optional[GuardMap]:
        return self._guards

    def transitions_from(self, state: State) -> list[TransitionName]:
        """Names of transitions whose source states include ``state``."""
        return [name for name, t in self._table.items() if t.allows(state)]

    def transitions_map(self) -> dict[State, list[State]]:
        """Return a simple state -> reachable targets adjacency map."""
        adjacency: dict[State, list[State]] = {state: [] for state in self._states}
        for transition in self._table.values():
            for source in transition.sources:
                targets = adjacency.setdefault(source, [])
                if transition.target not in targets:
                    targets.append(transition.target)
        return adjacency

    def is_transition_allowed_from(self, transition: TransitionName, state: State) -> tuple[bool, str]:
        """Check ``transition`` against a known state without touching any entity.

        Guards are not consulted.

        Raises:
            UnknownTransitionError: ``transition`` is not defined.
        """
        return self._table.check(transition, state)

    # ---- can ----

    def can(self, transition: TransitionName, entity: E) -> MaybeAwaitable[bool]:
        """Return whether ``transition`` may be applied to ``entity``.

        Source-state mismatches and guard failures yield ``False``; exceptions
        raised by guards or accessors propagate. The entity is never modified.

        Raises:
            UnknownTransitionError: ``transition`` is not defined (always raised
                synchronously).
        """
        definition = self._table.require(transition)
        current = self._get_state(entity)
        if self._guards is not None:
            return self._can_guarded(definition, entity, current)
        return then(current, definition.allows)

    async def _can_guarded(self, definition: Transition, entity: E, current: MaybeAwaitable[State]) -> bool:
        state = await resolve(current)
        if not definition.allows(state):
            return False
        failure = await self._first_guard_failure(definition, entity, state)
        return failure is None

    # ---- apply ----

    def apply(self, transition: TransitionName, entity: E) -> MaybeAwaitable[None]:
        """Move ``entity`` along ``transition``.

        Either the entity ends up in the transition's target state, or an
        exception is raised and ``set_state`` was never called.

        Raises:
            UnknownTransitionError: ``transition`` is not defined (always raised
                synchronously).
            InvalidSourceStateError: the entity is not in a source state.
            GuardRejectedError: a guard returned a failure message.
        """
        definition = self._table.require(transition)
        current = self._get_state(entity)
        if self._guards is not None:
            return self._apply_guarded(definition, entity, current)
        return then(current, lambda state: self._commit(definition, entity, state))

    async def _apply_guarded(self, definition: Transition, entity: E, current: MaybeAwaitable[State]) -> None:
        state = await resolve(current)
        self._ensure_allowed(definition, state)
        failure = await self._first_guard_failure(definition, entity, state)
        if failure is not None:
            guard, message = failure
            self._rejected(definition, state, message)
            raise GuardRejectedError(
                message,
                context={
                    "transition": definition.label,
                    "from": state,
                    "to": definition.target,
                    "guard": guard,
                },
            )
        pending = self._write_state(definition, entity, state)
        if is_deferred(pending):
            await pending

    def _commit(self, definition: Transition, entity: E, state: State) -> MaybeAwaitable[None]:
        self._ensure_allowed(definition, state)
        return self._write_state(definition, entity, state)

    def _ensure_allowed(self, definition: Transition, state: State) -> None:
        reason = definition.refusal(state)
        if reason is None:
            return
        self._rejected(definition, state, reason)
        raise InvalidSourceStateError(
            reason,
            context={
                "transition": definition.label,
                "from": list(definition.sources),
                "current": state,
            },
        )

    def _write_state(self, definition: Transition, entity: E, state: State) -> MaybeAwaitable[None]:
        result = self._set_state(entity, definition.target)
        if is_deferred(result):
            return self._settle_write(result, definition, state)
        self._applied(definition, state)
        return None

    async def _settle_write(self, pending: Any, definition: Transition, state: State) -> None:
        await pending
        self._applied(definition, state)

    # ---- guards ----

    async def _first_guard_failure(
        self, definition: Transition, entity: E, state: State
    ) -> Optional[tuple[str, str]]:
        guards = self._guards.collect(definition.name, state, definition.target) if self._guards else []
        if not guards:
            return None
        context = GuardContext(
            entity=entity,
            transition=definition.name,
            from_state=state,
            to_state=definition.target,
        )
        return await find_guard_failure(guards, context, logging_config=self._logging)

    # ---- reporting ----

    def _rejected(self, definition: Transition, state: State, reason: str) -> None:
        logger.debug("Transition %s rejected from %s: %s", definition.label, state, reason)
        if not self._audit:
            return
        audit_event(
            "transition.rejected",
            config=self._logging,
            machine=self.name,
            transition=definition.name,
            current=state,
            reason=reason,
        )

    def _applied(self, definition: Transition, state: State) -> None:
        logger.debug("Applied transition %s: %s -> %s", definition.label, state, definition.target)
        if not self._audit:
            return
        audit_event(
            "transition.applied",
            config=self._logging,
            machine=self.name,
            transition=definition.name,
            **{"from": state, "to": definition.target},
        )


def state_machine(
    states: Iterable[State],
    transitions: Mapping[TransitionName, Any],
    get_state: GetState,
    set_state: SetState,
    guards: GuardMap | Mapping[str, Any] | None = None,
    **options: Any,
) -> StateMachine[Any]:
    """Convenience constructor mirroring :class:`StateMachine`'s keywords.

    Example:
        >>> sm = state_machine(
        ...     ["inactive", "active"],
        ...     {"activate": {"from": "inactive", "to": "active"}},
        ...     get_state=lambda user: user["state"],
        ...     set_state=lambda user, state: user.update(state=state),
        ... )
        >>> sm.can("activate", {"state": "inactive"})
        True
    """
    return StateMachine(
        states=states,
        transitions=transitions,
        get_state=get_state,
        set_state=set_state,
        guards=guards,
        **options,
    )


__all__ = ["StateMachine", "state_machine", "GetState", "SetState"]
