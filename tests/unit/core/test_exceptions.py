from __future__ import annotations

import json

import pytest

from stategate import (
    ConfigurationError,
    GuardRejectedError,
    InvalidSourceStateError,
    StateGateError,
    StateTransitionError,
    UnknownTransitionError,
)


def test_hierarchy() -> None:
    assert issubclass(ConfigurationError, StateGateError)
    assert issubclass(ConfigurationError, ValueError)
    assert issubclass(UnknownTransitionError, ConfigurationError)
    assert issubclass(InvalidSourceStateError, StateTransitionError)
    assert issubclass(GuardRejectedError, StateTransitionError)
    assert issubclass(StateTransitionError, ValueError)
    assert not issubclass(StateTransitionError, ConfigurationError)


def test_to_json_error() -> None:
    err = GuardRejectedError("reason required", context={"transition": "ban"})

    payload = err.to_json_error()

    assert payload == {
        "message": "reason required",
        "code": "GuardRejectedError",
        "context": {"transition": "ban"},
    }
    json.dumps(payload)


def test_context_is_copied() -> None:
    ctx = {"a": 1}
    err = StateGateError("x", context=ctx)
    ctx["a"] = 2
    assert err.context == {"a": 1}
    assert StateGateError("y").context == {}


def test_unknown_transition_error_fields() -> None:
    err = UnknownTransitionError("explode", ["activate", "ban"])

    assert str(err) == "explode is not a valid transition name; allowed transitions: activate, ban"
    assert err.transition == "explode"
    assert err.allowed == ["activate", "ban"]
    assert err.context == {"transition": "explode", "allowed": ["activate", "ban"]}


def test_unknown_transition_error_with_no_transitions() -> None:
    assert str(UnknownTransitionError("x", [])) == "x is not a valid transition name; allowed transitions: "


def test_errors_catchable_as_value_error() -> None:
    with pytest.raises(ValueError):
        raise InvalidSourceStateError("wrong state")
