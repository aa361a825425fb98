from __future__ import annotations

from enum import Enum

import pytest

from stategate import ConfigurationError, Transition, TransitionTable, UnknownTransitionError, state_machine
from stategate.core.state.transitions import format_state

from tests.helpers.users import run


class Door(Enum):
    OPEN = "open"
    CLOSED = "closed"


class TestTransition:
    def test_single_source(self) -> None:
        t = Transition.from_definition("close", {"from": "open", "to": "closed"})

        assert t.sources == ("open",)
        assert t.source == "open"
        assert t.multi_source is False
        assert t.allows("open")
        assert not t.allows("closed")

    def test_multi_source_keeps_declared_form(self) -> None:
        t = Transition.from_definition("ban", {"from": ["inactive", "active"], "to": "banned"})

        assert t.multi_source is True
        assert t.source == ("inactive", "active")
        assert t.allows("active")
        assert not t.allows("banned")

    def test_single_element_list_is_still_multi_source(self) -> None:
        t = Transition.from_definition("t", {"from": ["a"], "to": "b"})
        assert t.refusal("b") == "Transition t can only be applied from one of states [a]; current state is b"

    def test_single_source_refusal_message(self) -> None:
        t = Transition.from_definition("activate", {"from": "inactive", "to": "active"})

        assert t.refusal("inactive") is None
        assert t.refusal("banned") == (
            "Transition activate can only be applied from state inactive; current state is banned"
        )

    def test_enum_states_render_as_values(self) -> None:
        t = Transition.from_definition("close", {"from": Door.OPEN, "to": Door.CLOSED})
        assert t.refusal(Door.CLOSED) == (
            "Transition close can only be applied from state open; current state is closed"
        )
        assert format_state(Door.OPEN) == "open"
        assert format_state(3) == "3"

    @pytest.mark.parametrize("definition", [{"to": "b"}, {"from": "a"}, "a->b", None])
    def test_incomplete_definition_rejected(self, definition) -> None:
        with pytest.raises(ConfigurationError, match="must define 'from' and 'to'"):
            Transition.from_definition("t", definition)

    def test_empty_source_list_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="at least one source state"):
            Transition.from_definition("t", {"from": [], "to": "b"})

    def test_transition_instance_is_renamed(self) -> None:
        original = Transition("x", ("a",), "b")

        assert Transition.from_definition("x", original) is original
        renamed = Transition.from_definition("y", original)
        assert renamed.name == "y"
        assert renamed.sources == ("a",)

    def test_transition_is_immutable(self) -> None:
        t = Transition("x", ("a",), "b")
        with pytest.raises(AttributeError):
            t.target = "c"  # type: ignore[misc]


class TestTransitionTable:
    def _table(self) -> TransitionTable:
        return TransitionTable(
            {
                "activate": {"from": "inactive", "to": "active"},
                "ban": {"from": ["inactive", "active"], "to": "banned"},
            }
        )

    def test_mapping_interface_preserves_order(self) -> None:
        table = self._table()

        assert table.names() == ["activate", "ban"]
        assert len(table) == 2
        assert "ban" in table
        assert table["ban"].target == "banned"

    def test_table_is_read_only(self) -> None:
        table = self._table()
        with pytest.raises(TypeError):
            table._table["x"] = None  # type: ignore[index]

    def test_require_unknown_name(self) -> None:
        with pytest.raises(UnknownTransitionError) as excinfo:
            self._table().require("explode")

        err = excinfo.value
        assert str(err) == "explode is not a valid transition name; allowed transitions: activate, ban"
        assert err.transition == "explode"
        assert err.allowed == ["activate", "ban"]

    def test_require_unhashable_name(self) -> None:
        with pytest.raises(UnknownTransitionError):
            self._table().require(["activate"])  # type: ignore[arg-type]

    def test_check(self) -> None:
        table = self._table()

        assert table.check("activate", "inactive") == (True, "")
        ok, reason = table.check("activate", "active")
        assert ok is False
        assert reason.startswith("Transition activate can only be applied from state inactive")

    def test_undeclared_states(self) -> None:
        missing = self._table().undeclared_states(frozenset({"inactive", "active"}))
        assert missing == [("ban", "banned")]

    def test_non_mapping_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            TransitionTable([("a", {"from": "x", "to": "y"})])  # type: ignore[arg-type]


class Move(str, Enum):
    ACTIVATE = "activate"
    BAN = "ban"


class TestTransitionNames:
    """Transition names are looked up as given and only rendered in messages."""

    def test_enum_names(self) -> None:
        table = TransitionTable(
            {
                Move.ACTIVATE: {"from": "inactive", "to": "active"},
                Move.BAN: {"from": ["inactive", "active"], "to": "banned"},
            }
        )

        assert table.require(Move.ACTIVATE).target == "active"
        assert table.names() == [Move.ACTIVATE, Move.BAN]
        assert table.check(Move.ACTIVATE, "banned") == (
            False,
            "Transition activate can only be applied from state inactive; current state is banned",
        )

    def test_int_and_tuple_names(self) -> None:
        table = TransitionTable({1: {"from": "a", "to": "b"}, ("x", 2): {"from": "b", "to": "a"}})

        assert table.require(1).target == "b"
        assert table.require(("x", 2)).target == "a"
        with pytest.raises(UnknownTransitionError, match="^2 is not a valid transition name; allowed transitions: 1, "):
            table.require(2)

    def test_unknown_enum_name_renders_values(self) -> None:
        table = TransitionTable({Move.ACTIVATE: {"from": "inactive", "to": "active"}})

        with pytest.raises(UnknownTransitionError) as excinfo:
            table.require(Door.OPEN)

        assert str(excinfo.value) == "open is not a valid transition name; allowed transitions: activate"
        assert excinfo.value.transition is Door.OPEN
        assert excinfo.value.allowed == [Move.ACTIVATE]

    def test_machine_with_enum_and_int_names(self) -> None:
        user = {"state": "inactive"}
        sm = state_machine(
            ["inactive", "active", "banned"],
            {
                Move.ACTIVATE: {"from": "inactive", "to": "active"},
                7: {"from": "active", "to": "banned"},
            },
            lambda e: e["state"],
            lambda e, s: e.update(state=s),
            guards={"transitions": {Move.ACTIVATE: [lambda ctx: None], 7: [lambda ctx: None]}},
        )

        assert run(sm.can(Move.ACTIVATE, user)) is True
        run(sm.apply(Move.ACTIVATE, user))
        run(sm.apply(7, user))
        assert user["state"] == "banned"
        assert sm.transitions_from("active") == [7]


class TestSetSources:
    def test_set_sources_render_in_stable_order(self) -> None:
        t = Transition.from_definition("ban", {"from": {"suspended", "active", "inactive"}, "to": "banned"})

        assert t.multi_source is True
        assert t.sources == ("active", "inactive", "suspended")
        assert t.refusal("banned") == (
            "Transition ban can only be applied from one of states [active, inactive, suspended]; "
            "current state is banned"
        )

    def test_frozenset_of_enums(self) -> None:
        t = Transition.from_definition("shut", {"from": frozenset({Door.OPEN, Door.CLOSED}), "to": Door.CLOSED})
        assert t.sources == (Door.CLOSED, Door.OPEN)
