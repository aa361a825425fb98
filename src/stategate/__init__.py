"""
StateGate - guarded finite state machine evaluation

Declare states and named transitions, plug in how an entity's state is read
and written, optionally attach guards, then ask whether a transition can be
applied or apply it. Results stay synchronous unless something involved is
awaitable.
"""

from stategate.core.exceptions import (
    ConfigurationError,
    GuardRejectedError,
    InvalidSourceStateError,
    StateGateError,
    StateTransitionError,
    UnknownTransitionError,
)
from stategate.core.state import (
    GuardContext,
    GuardMap,
    GuardRegistry,
    StateMachine,
    Transition,
    TransitionTable,
    build_machine,
    guard_registry,
    load_machine,
    machine_from_config,
    register_guard,
    state_machine,
)

__version__ = "1.0.0"
__all__ = [
    "__version__",
    "StateMachine",
    "state_machine",
    "Transition",
    "TransitionTable",
    "GuardContext",
    "GuardMap",
    "GuardRegistry",
    "guard_registry",
    "register_guard",
    "build_machine",
    "load_machine",
    "machine_from_config",
    "StateGateError",
    "ConfigurationError",
    "UnknownTransitionError",
    "StateTransitionError",
    "InvalidSourceStateError",
    "GuardRejectedError",
]
