"""Default option values shared by the parallel helpers."""

DEFAULT_CONCURRENCY_LIMIT = 10
DEFAULT_CONTINUE_ON_ERROR = True

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_DELAY = 1.0  # seconds
DEFAULT_MAX_DELAY = 30.0  # seconds
DEFAULT_BACKOFF_FACTOR = 2.0

DEFAULT_CHUNK_SIZE = 100
