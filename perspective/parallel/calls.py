from __future__ import annotations

import inspect
from typing import Any, Callable


async def call_async(func: Callable[..., Any], *args: Any) -> Any:
    """
    Invoke ``func`` from async code and return its value.

    Works for coroutine functions and for plain callables such as
    ``lambda: fetch(topic)``; whatever awaitable comes back is awaited.
    Plain callables that return a value run inline on the event loop.
    """
    result = func(*args)
    if inspect.isawaitable(result):
        return await result
    return result
