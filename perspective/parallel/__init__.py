"""
Perspective Parallel Processing Module.

Concurrency coordination for the backend services: score calculation over
every active user, topic fan-out during content ingestion, retried calls to
upstream news providers.

Key Components:
    - process_in_batches: Bounded concurrent mapper with ordered results
    - process_with_errors: Runner partitioning items into successful/failed
    - retry_with_backoff: Exponential backoff retrier for a single operation
    - execute_parallel: Concurrent join of named operations
    - BatchProcessor: Chunked processing with progress tracking

Example:
    >>> from perspective.parallel import process_with_errors, retry_with_backoff
    >>> outcome = await process_with_errors(
    ...     topics,
    ...     lambda topic: retry_with_backoff(lambda: fetch_articles(topic), max_retries=2),
    ...     concurrency_limit=5,
    ... )
"""

from .batch_processor import BatchProcessor, ProcessingStats, run_batch_sync
from .config import ParallelConfig, load_parallel_config
from .joiner import execute_parallel
from .mapper import process_in_batches
from .partition import ItemFailure, ItemSuccess, PartitionResult, process_with_errors
from .retry import BackoffRetrier, RetryPolicy, RetryState, retry_with_backoff

__all__ = [
    "process_in_batches",
    "process_with_errors",
    "PartitionResult",
    "ItemSuccess",
    "ItemFailure",
    "retry_with_backoff",
    "BackoffRetrier",
    "RetryPolicy",
    "RetryState",
    "execute_parallel",
    "BatchProcessor",
    "ProcessingStats",
    "run_batch_sync",
    "ParallelConfig",
    "load_parallel_config",
]
