"""Callback-style adapter.

pgquery's API is awaitable only. Code written against the ``(error,
result)`` callback convention can wrap any call::

    from pgquery.compat import with_callback

    def on_albums(err, albums):
        ...

    await with_callback(db.query("SELECT * FROM albums"), on_albums)

The callback may be a plain function or a coroutine function. Errors are
handed to the callback and then re-raised, never swallowed.
"""

import inspect
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

T = TypeVar("T")


async def _invoke(callback: Callable[..., Any], *args: Any) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


async def with_callback(
    awaitable: Awaitable[T],
    callback: Callable[[BaseException | None, T | None], Any] | None = None,
) -> T:
    """Await ``awaitable`` and report the outcome to ``callback``."""
    try:
        result = await awaitable
    except Exception as exc:
        if callback is not None:
            await _invoke(callback, exc, None)
        raise
    if callback is not None:
        await _invoke(callback, None, result)
    return result
