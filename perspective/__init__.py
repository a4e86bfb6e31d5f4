from .errors import ConfigurationError, ItemProcessingError, ParallelProcessingError, normalize_error
from .parallel import (
    BatchProcessor,
    ParallelConfig,
    PartitionResult,
    execute_parallel,
    process_in_batches,
    process_with_errors,
    retry_with_backoff,
)
from .utils import chunk, setup_logging

__all__ = [
    "process_in_batches",
    "process_with_errors",
    "retry_with_backoff",
    "execute_parallel",
    "BatchProcessor",
    "PartitionResult",
    "ParallelConfig",
    "chunk",
    "setup_logging",
    "ConfigurationError",
    "ItemProcessingError",
    "ParallelProcessingError",
    "normalize_error",
]

__version__ = "0.1.0"
