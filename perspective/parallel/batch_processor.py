"""
Batch Processor for perspective parallel execution.

Processes large inputs in sequential chunks, each chunk run concurrently
through the error-partitioning runner.

Features:
    - Chunking so only one chunk's tasks exist at a time
    - Progress tracking with callbacks
    - Merged partition and run statistics
    - Streaming mode yielding one partition per chunk

Production Usage:
    For nightly jobs over every active user:
    - Chunks keep database connection use bounded
    - Progress is logged after every chunk
    - Failed users are collected instead of aborting the job
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, Optional, Sequence, Tuple, TypeVar

from ..utils.chunking import iter_chunks, validate_chunk_size
from .defaults import DEFAULT_CHUNK_SIZE, DEFAULT_CONCURRENCY_LIMIT, DEFAULT_CONTINUE_ON_ERROR
from .mapper import validate_concurrency_limit
from .partition import ErrorCallback, PartitionResult, process_with_errors

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class BatchProcessorConfig:
    """Configuration for batch processor.

    Attributes:
        chunk_size: Number of items per chunk
        concurrency_limit: Maximum concurrent tasks per chunk
        continue_on_error: Keep processing after item failures
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT
    continue_on_error: bool = DEFAULT_CONTINUE_ON_ERROR


@dataclass
class ProcessingStats:
    """Statistics for batch processing run.

    Attributes:
        total_items: Total number of items
        processed: Number processed (success + failure)
        success: Number of successful items
        failed: Number of failed items
        total_time_sec: Total processing time in seconds
        throughput_rps: Items per second
        chunks_processed: Number of chunks processed
    """

    total_items: int = 0
    processed: int = 0
    success: int = 0
    failed: int = 0
    total_time_sec: float = 0.0
    throughput_rps: float = 0.0
    chunks_processed: int = 0


class BatchProcessor:
    """
    Batch processor with chunking and progress tracking.

    Example:
        >>> processor = BatchProcessor(chunk_size=100, concurrency_limit=10)
        >>> outcome, stats = await processor.process(user_ids, calculate_score)
        >>> print(f"Success rate: {stats.success}/{stats.total_items}")

    Streaming:
        >>> async for chunk_outcome in processor.process_streaming(user_ids, calculate_score):
        ...     report(chunk_outcome.failed_items)
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
        continue_on_error: bool = DEFAULT_CONTINUE_ON_ERROR,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        """
        Initialize batch processor.

        Args:
            chunk_size: Number of items per chunk (default 100)
            concurrency_limit: Maximum concurrent tasks per chunk
            continue_on_error: Keep processing after item failures
            on_error: Optional callback(error, item) for each failure
        """
        validate_chunk_size(chunk_size)
        validate_concurrency_limit(concurrency_limit)
        self._config = BatchProcessorConfig(
            chunk_size=chunk_size,
            concurrency_limit=concurrency_limit,
            continue_on_error=continue_on_error,
        )
        self._on_error = on_error
        self._stats = ProcessingStats()

        logger.info(
            "BatchProcessor initialized: chunk_size=%d, concurrency_limit=%d",
            chunk_size,
            concurrency_limit,
        )

    @property
    def config(self) -> BatchProcessorConfig:
        """Get current configuration."""
        return self._config

    @property
    def stats(self) -> ProcessingStats:
        """Get current processing statistics."""
        return self._stats

    async def process(
        self,
        items: Sequence[T],
        processor: Callable[[T], Awaitable[R]],
        progress_callback: Callable[[ProcessingStats], None] | None = None,
    ) -> Tuple[PartitionResult[T, R], ProcessingStats]:
        """
        Process all items with chunking and progress tracking.

        Args:
            items: All items to process
            processor: Async function applied to each item
            progress_callback: Optional callback invoked after each chunk

        Returns:
            Tuple of (merged_partition, final_stats)
        """
        start_time = time.monotonic()
        merged: PartitionResult[T, R] = PartitionResult()
        self._stats = ProcessingStats(total_items=len(items))

        chunks = list(iter_chunks(items, self._config.chunk_size))
        total_chunks = len(chunks)

        logger.info(
            "Processing %d items in %d chunks",
            len(items),
            total_chunks,
        )

        for chunk_idx, chunk in enumerate(chunks):
            logger.debug(
                "Processing chunk %d/%d (%d items)",
                chunk_idx + 1,
                total_chunks,
                len(chunk),
            )

            chunk_result = await self._process_chunk(chunk, processor)

            merged.extend(chunk_result)
            self._stats.processed += chunk_result.total
            self._stats.success += chunk_result.success_count
            self._stats.failed += chunk_result.failure_count
            self._stats.chunks_processed += 1

            elapsed = time.monotonic() - start_time
            self._stats.total_time_sec = elapsed
            self._stats.throughput_rps = (
                self._stats.processed / elapsed if elapsed > 0 else 0.0
            )

            if progress_callback:
                progress_callback(self._stats)

            logger.info(
                "Chunk %d/%d complete: %d success, %d failed, %.1fs elapsed",
                chunk_idx + 1,
                total_chunks,
                chunk_result.success_count,
                chunk_result.failure_count,
                elapsed,
            )

        logger.info(
            "Batch processing complete: %d/%d success (%.1f%%), %.1fs total, %.2f RPS",
            self._stats.success,
            self._stats.total_items,
            100 * self._stats.success / max(1, self._stats.total_items),
            self._stats.total_time_sec,
            self._stats.throughput_rps,
        )

        return merged, self._stats

    async def process_streaming(
        self,
        items: Sequence[T],
        processor: Callable[[T], Awaitable[R]],
    ) -> AsyncIterator[PartitionResult[T, R]]:
        """
        Process items chunk by chunk, yielding each chunk's partition as it completes.

        Args:
            items: All items to process
            processor: Async function applied to each item

        Yields:
            PartitionResult for each chunk
        """
        chunks = list(iter_chunks(items, self._config.chunk_size))

        for chunk_idx, chunk in enumerate(chunks):
            logger.debug(
                "Processing chunk %d/%d",
                chunk_idx + 1,
                len(chunks),
            )
            yield await self._process_chunk(chunk, processor)

    async def _process_chunk(
        self,
        chunk: Sequence[T],
        processor: Callable[[T], Awaitable[R]],
    ) -> PartitionResult[T, R]:
        return await process_with_errors(
            chunk,
            processor,
            concurrency_limit=self._config.concurrency_limit,
            continue_on_error=self._config.continue_on_error,
            on_error=self._on_error,
        )


def run_batch_sync(
    items: Sequence[T],
    processor: Callable[[T], Awaitable[R]],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
    continue_on_error: bool = DEFAULT_CONTINUE_ON_ERROR,
) -> Tuple[PartitionResult[T, R], ProcessingStats]:
    """
    Synchronous wrapper for batch processing.

    Convenience function for non-async code; must not be called from a
    running event loop.

    Example:
        >>> from perspective.parallel import run_batch_sync
        >>> outcome, stats = run_batch_sync(user_ids, calculate_score, concurrency_limit=10)
    """
    processor_obj = BatchProcessor(
        chunk_size=chunk_size,
        concurrency_limit=concurrency_limit,
        continue_on_error=continue_on_error,
    )
    return asyncio.run(processor_obj.process(items, processor))
