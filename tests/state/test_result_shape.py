"""Whether can/apply return a plain value or an awaitable."""
import inspect

import pytest

from tests.helpers.users import User, run, user_machine


@pytest.mark.parametrize(
    "async_get, async_set, guards, deferred",
    [
        (False, False, None, False),
        (True, False, None, True),
        (False, True, None, True),
        (True, True, None, True),
        (False, False, {}, True),
        (True, True, {}, True),
    ],
)
def test_apply_shape_follows_inputs(async_get, async_set, guards, deferred):
    sm = user_machine(async_get=async_get, async_set=async_set, guards=guards)
    user = User("inactive")
    result = sm.apply("activate", user)
    assert inspect.isawaitable(result) is deferred
    if deferred:
        run(result)
    assert user.state == "active"


@pytest.mark.parametrize(
    "async_get, guards, deferred",
    [
        (False, None, False),
        (True, None, True),
        (False, {}, True),
        (False, {"all": []}, True),
    ],
)
def test_can_shape_follows_inputs(async_get, guards, deferred):
    sm = user_machine(async_get=async_get, guards=guards)
    result = sm.can("activate", User("inactive"))
    assert inspect.isawaitable(result) is deferred
    assert (run(result) if deferred else result) is True


def test_shape_is_decided_per_call():
    """A getter that is only sometimes async yields matching result shapes."""
    import asyncio

    from stategate import state_machine
    from tests.helpers.users import STATES, TRANSITIONS, set_state

    def get_state(user):
        if getattr(user, "remote", False):
            async def fetch():
                await asyncio.sleep(0)
                return user.state

            return fetch()
        return user.state

    sm = state_machine(STATES, TRANSITIONS, get_state, set_state)

    local = User("inactive")
    assert sm.can("activate", local) is True

    remote = User("inactive")
    remote.remote = True
    result = sm.can("activate", remote)
    assert inspect.isawaitable(result)
    assert run(result) is True


def test_sync_refusal_raises_immediately_without_guards():
    from stategate import InvalidSourceStateError

    sm = user_machine()
    with pytest.raises(InvalidSourceStateError):
        sm.apply("deactivate", User("inactive"))


def test_refusal_is_deferred_with_guards():
    from stategate import InvalidSourceStateError

    sm = user_machine(guards={})
    result = sm.apply("deactivate", User("inactive"))
    assert inspect.isawaitable(result)
    with pytest.raises(InvalidSourceStateError):
        run(result)
