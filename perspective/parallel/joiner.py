from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping

from .calls import call_async

logger = logging.getLogger(__name__)


async def execute_parallel(
    operations: Mapping[str, Callable[[], Awaitable[Any]]],
) -> Dict[str, Any]:
    """
    Execute named operations concurrently and collect their results by name.

    All operations start at once, with no concurrency cap. If any operation
    fails, the remaining ones are cancelled and the failure is raised; no
    partial mapping is returned. When several failures surface in the same
    scheduler step, the one whose key comes first in ``operations`` wins.

    Args:
        operations: Mapping of name to zero-argument async callable

    Returns:
        Dict with the same keys as ``operations``, mapped to each result

    Example:
        >>> data = await execute_parallel({
        ...     "profile": lambda: load_profile(user_id),
        ...     "scores": lambda: load_scores(user_id),
        ... })
        >>> data["profile"], data["scores"]
    """
    if not operations:
        return {}

    names = list(operations)
    tasks = {
        name: asyncio.create_task(call_async(operations[name])) for name in names
    }

    try:
        done, pending = await asyncio.wait(
            tasks.values(), return_when=asyncio.FIRST_EXCEPTION
        )
    finally:
        unfinished = [task for task in tasks.values() if not task.done()]
        for task in unfinished:
            task.cancel()
        if unfinished:
            await asyncio.gather(*unfinished, return_exceptions=True)

    for name in names:
        task = tasks[name]
        if task in done and not task.cancelled() and task.exception() is not None:
            logger.error("Parallel operation %r failed: %s", name, task.exception())
            # Mark sibling failures as retrieved.
            for other in done:
                if other is not task and not other.cancelled():
                    other.exception()
            raise task.exception()

    return {name: tasks[name].result() for name in names}
