from .transitions import State, Transition, TransitionTable, format_state
from .guards import Guard, GuardContext, GuardMap, find_guard_failure, run_guards
from .engine import StateMachine, state_machine
from .registry import GuardRegistry, guard_registry, register_guard
from .loader import build_machine, load_machine, machine_from_config

__all__ = [
    # Transition table
    "State",
    "Transition",
    "TransitionTable",
    "format_state",
    # Guards
    "Guard",
    "GuardContext",
    "GuardMap",
    "find_guard_failure",
    "run_guards",
    # Evaluator
    "StateMachine",
    "state_machine",
    # Named guards
    "GuardRegistry",
    "guard_registry",
    "register_guard",
    # Declarative definitions
    "build_machine",
    "load_machine",
    "machine_from_config",
]
