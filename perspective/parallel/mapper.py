"""
Bounded Concurrent Mapper.

Applies an async processor to every item of a sequence with at most
``concurrency_limit`` invocations in flight, returning results positionally
aligned with the input regardless of completion order.

Architecture:
    - Slot pool: an asyncio.Semaphore holding ``concurrency_limit`` slots.
      A slot is acquired before a task is created and released when that
      task settles, so admission blocks exactly while the pool is full.
    - Per-task completion tracking: every started task is kept in an
      ordered list and awaited or cancelled explicitly.
    - Result slots: ``results[i]`` is written only by the task for item ``i``.

Failure handling:
    - Default: a failing item stores its exception in its own slot and
      siblings keep running.
    - ``fail_fast=True``: the first failure stops admission, cancels every
      outstanding task and is raised to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, List, TypeVar, Union

from ..errors import ConfigurationError, normalize_error
from .calls import call_async
from .defaults import DEFAULT_CONCURRENCY_LIMIT

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def validate_concurrency_limit(concurrency_limit: int) -> int:
    """Reject non-integer or non-positive limits instead of clamping them."""
    if (
        isinstance(concurrency_limit, bool)
        or not isinstance(concurrency_limit, int)
        or concurrency_limit < 1
    ):
        raise ConfigurationError(
            f"concurrency_limit must be a positive integer, got {concurrency_limit!r}"
        )
    return concurrency_limit


async def process_in_batches(
    items: Iterable[T],
    processor: Callable[[T], Awaitable[R]],
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
    *,
    fail_fast: bool = False,
) -> List[Union[R, Exception]]:
    """
    Process items concurrently with a bounded number of in-flight tasks.

    Args:
        items: Items to process, admitted in input order
        processor: Async function (or plain callable) applied to each item
        concurrency_limit: Maximum number of concurrent invocations
        fail_fast: Abort on the first failure instead of storing it

    Returns:
        List the same length as ``items``; slot ``i`` holds item ``i``'s
        result or the exception raised while processing it

    Raises:
        ConfigurationError: If ``concurrency_limit`` is not a positive integer
        Exception: In ``fail_fast`` mode, the first failure observed

    Example:
        >>> results = await process_in_batches(urls, fetch, concurrency_limit=5)
        >>> errors = [r for r in results if isinstance(r, Exception)]
    """
    limit = validate_concurrency_limit(concurrency_limit)
    pending_items = list(items)
    if not pending_items:
        return []

    results: List[Any] = [None] * len(pending_items)
    slots = asyncio.Semaphore(limit)
    tasks: List[asyncio.Task] = []
    first_failure: Exception | None = None

    async def run_slot(index: int, item: T) -> None:
        nonlocal first_failure
        try:
            results[index] = await call_async(processor, item)
        except Exception as exc:
            error = normalize_error(exc)
            results[index] = error
            if fail_fast and first_failure is None:
                first_failure = error
        finally:
            slots.release()

    logger.debug(
        "Processing %d items with concurrency_limit=%d",
        len(pending_items),
        limit,
    )

    try:
        for index, item in enumerate(pending_items):
            await slots.acquire()
            if first_failure is not None:
                break
            tasks.append(asyncio.create_task(run_slot(index, item)))

        outstanding = {task for task in tasks if not task.done()}
        while outstanding and first_failure is None:
            _, outstanding = await asyncio.wait(
                outstanding, return_when=asyncio.FIRST_COMPLETED
            )
    finally:
        unfinished = [task for task in tasks if not task.done()]
        for task in unfinished:
            task.cancel()
        if unfinished:
            await asyncio.gather(*unfinished, return_exceptions=True)
            logger.debug("Cancelled %d outstanding tasks", len(unfinished))

    if first_failure is not None:
        raise first_failure

    return results
