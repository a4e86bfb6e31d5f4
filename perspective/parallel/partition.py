"""
Error-Partitioning Runner.

Runs a processor over many items through the bounded mapper and splits the
outcomes into successful and failed groups instead of aborting on the first
error.

Ordering:
    Both groups are in completion order, not input order. Use the mapper
    directly when positional correlation matters.

Abort mode (``continue_on_error=False``):
    The first failure freezes the partition. Tasks still in flight are
    cancelled, nothing completing afterwards is recorded, and the original
    error is raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Iterable, List, Optional, TypeVar

from ..errors import normalize_error
from .calls import call_async
from .defaults import DEFAULT_CONCURRENCY_LIMIT, DEFAULT_CONTINUE_ON_ERROR
from .mapper import process_in_batches, validate_concurrency_limit

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

ErrorCallback = Callable[[Exception, Any], None]


@dataclass
class ItemSuccess(Generic[T, R]):
    item: T
    result: R


@dataclass
class ItemFailure(Generic[T]):
    item: T
    error: Exception


@dataclass
class PartitionResult(Generic[T, R]):
    """Outcome of a partitioned run.

    Attributes:
        successful: Items that processed cleanly, with their results
        failed: Items whose processor raised, with the normalized error
    """

    successful: List[ItemSuccess[T, R]] = field(default_factory=list)
    failed: List[ItemFailure[T]] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.successful)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count

    @property
    def results(self) -> List[R]:
        """Result values of the successful items, in completion order."""
        return [entry.result for entry in self.successful]

    @property
    def failed_items(self) -> List[T]:
        return [entry.item for entry in self.failed]

    def extend(self, other: "PartitionResult[T, R]") -> None:
        self.successful.extend(other.successful)
        self.failed.extend(other.failed)

    def raise_if_failed(self) -> None:
        """Raise the first recorded error, if any item failed."""
        if self.failed:
            raise self.failed[0].error


async def process_with_errors(
    items: Iterable[T],
    processor: Callable[[T], Awaitable[R]],
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
    continue_on_error: bool = DEFAULT_CONTINUE_ON_ERROR,
    on_error: Optional[ErrorCallback] = None,
) -> PartitionResult[T, R]:
    """
    Process items concurrently, partitioning outcomes into successes and failures.

    Args:
        items: Items to process
        processor: Async function (or plain callable) applied to each item
        concurrency_limit: Maximum concurrent invocations
        continue_on_error: Keep going after failures (default True)
        on_error: Optional callback(error, item) invoked for every failure.
            Exceptions raised by the callback are logged and suppressed.

    Returns:
        PartitionResult with every item in exactly one group when
        ``continue_on_error`` is true

    Raises:
        ConfigurationError: If ``concurrency_limit`` is invalid
        Exception: The first failure, when ``continue_on_error`` is false

    Example:
        >>> outcome = await process_with_errors(
        ...     user_ids,
        ...     calculate_score,
        ...     concurrency_limit=10,
        ...     on_error=lambda err, uid: alert(uid, err),
        ... )
        >>> print(f"{outcome.success_count} ok, {outcome.failure_count} failed")
    """
    validate_concurrency_limit(concurrency_limit)
    partition: PartitionResult[T, R] = PartitionResult()
    aborted = False

    async def process_item(item: T) -> None:
        nonlocal aborted
        try:
            result = await call_async(processor, item)
        except Exception as exc:
            if aborted:
                return
            error = normalize_error(exc)
            partition.failed.append(ItemFailure(item=item, error=error))
            logger.error("Processing failed for item %r: %s", item, str(error)[:200])
            _notify_error(on_error, error, item)
            if not continue_on_error:
                aborted = True
                raise error
            return

        if not aborted:
            partition.successful.append(ItemSuccess(item=item, result=result))

    await process_in_batches(
        items,
        process_item,
        concurrency_limit,
        fail_fast=not continue_on_error,
    )

    logger.debug(
        "Partitioned run complete: %d successful, %d failed",
        partition.success_count,
        partition.failure_count,
    )
    return partition


def _notify_error(on_error: Optional[ErrorCallback], error: Exception, item: Any) -> None:
    if on_error is None:
        return
    try:
        on_error(error, item)
    except Exception:
        logger.exception("on_error callback raised for item %r", item)
