from __future__ import annotations

from typing import Any, Dict, Hashable, Mapping, Sequence

from stategate.core.utils.text import format_state


class StateGateError(Exception):
    """Base exception for StateGate."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Shallow copy so callers can keep mutating their own dict.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class ConfigurationError(StateGateError, ValueError):
    """Raised when a state machine definition or its configuration is malformed."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        StateGateError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class UnknownTransitionError(ConfigurationError):
    """Raised when a transition name is not part of the transition table."""

    def __init__(self, transition: Hashable, allowed: Sequence[Hashable]) -> None:
        label = format_state(transition)
        allowed_labels = [format_state(name) for name in allowed]
        message = (
            f"{label} is not a valid transition name; "
            f"allowed transitions: {', '.join(allowed_labels)}"
        )
        super().__init__(message, context={"transition": label, "allowed": allowed_labels})
        self.transition = transition
        self.allowed = list(allowed)


class StateTransitionError(StateGateError, ValueError):
    """Raised when a transition cannot be applied to an entity."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        StateGateError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class InvalidSourceStateError(StateTransitionError):
    """The entity's current state is not one of the transition's source states."""


class GuardRejectedError(StateTransitionError):
    """A guard reported a failure message for the transition.

    The exception message is exactly the string returned by the guard.
    """


__all__ = [
    "StateGateError",
    "ConfigurationError",
    "UnknownTransitionError",
    "StateTransitionError",
    "InvalidSourceStateError",
    "GuardRejectedError",
]
