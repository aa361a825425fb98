"""Build state machines from declarative YAML definitions.

Definitions live under a ``statemachine`` key, either in a standalone YAML
file or in the project configuration (``.stategate/config/*.yaml``)::

    statemachine:
      user:
        states: [inactive, active, banned]
        transitions:
          activate: {from: inactive, to: active}
          ban: {from: [inactive, active], to: banned}
        guards:
          all: [not_locked]
          transitions:
            ban: [has_reason]

Guards are referenced by name and resolved through a :class:`GuardRegistry`:
first in the machine's own domain, then in ``engine.default_domain``, then
among shared guards.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from ..config.domains.engine import EngineConfig
from ..exceptions import ConfigurationError
from ..schemas.validation import validate_payload_safe
from ..utils.io import read_yaml
from .engine import GetState, SetState, StateMachine
from .registry import GuardRegistry, guard_registry

logger = logging.getLogger(__name__)

MACHINE_SCHEMA = "state/machine.schema.yaml"


def _resolve_guards(
    name: str,
    declared: Optional[Mapping[str, Any]],
    registry: GuardRegistry,
    default_domain: str,
) -> Optional[dict[str, Any]]:
    if declared is None:
        return None

    def lookup(guard: str) -> Any:
        found = registry.lookup(guard, (name, default_domain))
        return found if found is not None else registry.resolve(guard, domain=name)

    guards: dict[str, Any] = {}
    if "all" in declared:
        guards["all"] = [lookup(g) for g in declared["all"]]
    for scope in ("transitions", "from_state", "to_state"):
        if scope in declared:
            guards[scope] = {key: [lookup(g) for g in names] for key, names in declared[scope].items()}
    return guards


def build_machine(
    name: str,
    definition: Mapping[str, Any],
    *,
    get_state: GetState,
    set_state: SetState,
    registry: Optional[GuardRegistry] = None,
    validate: Optional[bool] = None,
    repo_root: Optional[Path] = None,
) -> StateMachine[Any]:
    """Build a :class:`StateMachine` from a definition mapping.

    Raises:
        ConfigurationError: The definition doesn't match the machine schema,
            names an unknown guard, or fails definition validation.
    """
    errors = validate_payload_safe(definition, MACHINE_SCHEMA)
    if errors:
        raise ConfigurationError(
            f"Invalid definition for state machine '{name}': {'; '.join(errors)}",
            context={"machine": name, "errors": errors},
        )

    default_domain = EngineConfig(repo_root=repo_root).default_domain
    guards = _resolve_guards(name, definition.get("guards"), registry or guard_registry, default_domain)
    logger.debug("Building state machine %s with %d transitions", name, len(definition["transitions"]))
    return StateMachine(
        states=definition["states"],
        transitions=definition["transitions"],
        get_state=get_state,
        set_state=set_state,
        guards=guards,
        name=name,
        validate=validate,
        repo_root=repo_root,
    )


def load_machine(
    name: str,
    path: Path,
    *,
    get_state: GetState,
    set_state: SetState,
    registry: Optional[GuardRegistry] = None,
    validate: Optional[bool] = None,
    repo_root: Optional[Path] = None,
) -> StateMachine[Any]:
    """Load machine ``name`` from a YAML file's ``statemachine`` section."""
    data = read_yaml(Path(path), default=None, raise_on_error=True)
    machines = data.get("statemachine") if isinstance(data, dict) else None
    if not isinstance(machines, dict) or not isinstance(machines.get(name), dict):
        raise ConfigurationError(
            f"State machine '{name}' is not defined in {path}",
            context={"machine": name, "path": str(path)},
        )
    return build_machine(
        name,
        machines[name],
        get_state=get_state,
        set_state=set_state,
        registry=registry,
        validate=validate,
        repo_root=repo_root,
    )


def machine_from_config(
    name: str,
    *,
    get_state: GetState,
    set_state: SetState,
    registry: Optional[GuardRegistry] = None,
    validate: Optional[bool] = None,
    repo_root: Optional[Path] = None,
) -> StateMachine[Any]:
    """Build machine ``name`` from the layered project configuration."""
    definition = EngineConfig(repo_root=repo_root).machines.get(name)
    if not isinstance(definition, Mapping):
        raise ConfigurationError(
            f"State machine not configured for '{name}'",
            context={"machine": name},
        )
    return build_machine(
        name,
        definition,
        get_state=get_state,
        set_state=set_state,
        registry=registry,
        validate=validate,
        repo_root=repo_root,
    )


__all__ = ["MACHINE_SCHEMA", "build_machine", "load_machine", "machine_from_config"]
