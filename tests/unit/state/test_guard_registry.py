from __future__ import annotations

import pytest

from stategate import ConfigurationError, GuardRegistry, guard_registry, register_guard


def _a(ctx):
    return None


def _b(ctx):
    return "no"


class TestGuardRegistry:
    def test_shared_guard_visible_from_any_domain(self) -> None:
        reg = GuardRegistry()
        reg.register("not_locked", _a)

        assert reg.get("not_locked") is _a
        assert reg.get("not_locked", domain="user") is _a
        assert reg.has("not_locked", domain="order")

    def test_domain_guard_shadows_shared(self) -> None:
        reg = GuardRegistry()
        reg.register("check", _a)
        reg.register("check", _b, domain="user")

        assert reg.get("check", domain="user") is _b
        assert reg.get("check", domain="order") is _a
        assert reg.get("check") is _a

    def test_domain_guard_hidden_from_shared_lookup(self) -> None:
        reg = GuardRegistry()
        reg.register("only_user", _a, domain="user")

        assert reg.get("only_user") is None
        assert not reg.has("only_user", domain="order")

    def test_resolve_unknown_guard(self) -> None:
        with pytest.raises(ConfigurationError, match=r"Unknown guard: missing \(domain: user\)"):
            GuardRegistry().resolve("missing", domain="user")

    def test_register_rejects_non_callable(self) -> None:
        with pytest.raises(TypeError):
            GuardRegistry().register("x", "not callable")  # type: ignore[arg-type]

    def test_list_guards(self) -> None:
        reg = GuardRegistry()
        reg.register("shared_one", _a)
        reg.register("check", _a)
        reg.register("check", _b, domain="user")
        reg.register("other", _b, domain="order")

        assert reg.list_guards() == {"shared_one": _a, "check": _a, "user:check": _b, "order:other": _b}
        assert reg.list_guards("user") == {"shared_one": _a, "check": _b}

    def test_reset(self) -> None:
        reg = GuardRegistry()
        reg.register("x", _a)
        reg.reset()
        assert reg.list_guards() == {}


def test_register_guard_decorator_uses_global_registry() -> None:
    @register_guard("has_reason", domain="user")
    def has_reason(ctx):
        return None

    assert guard_registry.get("has_reason", domain="user") is has_reason
    assert guard_registry.get("has_reason") is None


def test_register_guard_decorator_with_explicit_registry() -> None:
    reg = GuardRegistry()

    @register_guard("private", registry=reg)
    def private(ctx):
        return None

    assert reg.get("private") is private
    assert guard_registry.get("private") is None


def test_lookup_walks_domains_in_order() -> None:
    reg = GuardRegistry()
    reg.register("check", _a)
    reg.register("check", _b, domain="library")

    assert reg.lookup("check", ("user", "library")) is _b
    assert reg.lookup("check", ("user",)) is _a
    assert reg.lookup("missing", ("user", "library")) is None
