"""Helpers for values that may or may not be awaitable.

State accessors, mutators and guards are free to be plain functions or
coroutine functions. These helpers keep a call chain synchronous for as long
as every value in it is immediate, and switch to a coroutine as soon as one
of them is awaitable.
"""
from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, TypeVar, Union

T = TypeVar("T")
R = TypeVar("R")

MaybeAwaitable = Union[T, Awaitable[T]]


def is_deferred(value: Any) -> bool:
    """Return True when ``value`` has to be awaited to obtain its result."""
    return inspect.isawaitable(value)


def then(value: MaybeAwaitable[T], fn: Callable[[T], MaybeAwaitable[R]]) -> MaybeAwaitable[R]:
    """Feed ``value`` into ``fn``, awaiting it first if needed.

    Immediate values are passed straight through and ``fn``'s result is
    returned as-is, so a fully synchronous chain never gets wrapped. An
    awaitable value yields a coroutine that also awaits whatever ``fn``
    returns.

    Example:
        >>> then(2, lambda v: v * 10)
        20
    """
    if inspect.isawaitable(value):
        return _then_async(value, fn)
    return fn(value)


async def _then_async(value: Awaitable[T], fn: Callable[[T], MaybeAwaitable[R]]) -> R:
    result = fn(await value)
    if inspect.isawaitable(result):
        result = await result
    return result


async def resolve(value: MaybeAwaitable[T]) -> T:
    """Await ``value`` if it is awaitable; always returns a coroutine."""
    if inspect.isawaitable(value):
        return await value
    return value


__all__ = ["MaybeAwaitable", "is_deferred", "then", "resolve"]
