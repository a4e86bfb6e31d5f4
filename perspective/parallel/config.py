from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import dotenv_values

from ..errors import ConfigurationError
from ..utils.chunking import validate_chunk_size
from .defaults import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONCURRENCY_LIMIT,
    DEFAULT_CONTINUE_ON_ERROR,
    DEFAULT_INITIAL_DELAY,
    DEFAULT_MAX_DELAY,
    DEFAULT_MAX_RETRIES,
)
from .mapper import validate_concurrency_limit
from .retry import RetryPolicy

ENV_PREFIX = "PERSPECTIVE_"

_TOP_LEVEL_KEYS = {"concurrency_limit", "continue_on_error", "chunk_size", "retry"}
_RETRY_KEYS = {"max_retries", "initial_delay", "max_delay", "backoff_factor"}


@dataclass
class ParallelConfig:
    """Settings for the parallel helpers.

    Attributes:
        concurrency_limit: Maximum in-flight tasks for mapper and runner
        continue_on_error: Whether partitioned runs keep going after failures
        chunk_size: Items per chunk for the batch processor
        retry: Backoff policy for retried operations
        extra: Unrecognized keys, kept for callers
    """

    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT
    continue_on_error: bool = DEFAULT_CONTINUE_ON_ERROR
    chunk_size: int = DEFAULT_CHUNK_SIZE
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        validate_concurrency_limit(self.concurrency_limit)
        validate_chunk_size(self.chunk_size)

    def partition_kwargs(self) -> Dict[str, Any]:
        """Keyword options accepted by process_with_errors."""
        return {
            "concurrency_limit": self.concurrency_limit,
            "continue_on_error": self.continue_on_error,
        }

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        env_file: Optional[str | Path] = None,
    ) -> "ParallelConfig":
        """
        Build settings from PERSPECTIVE_* environment variables.

        Values from ``env_file`` (a dotenv file) are used only where the
        environment does not define the same variable.
        """
        values: Dict[str, Optional[str]] = {}
        if env_file is not None:
            values.update(dotenv_values(env_file))
        values.update(os.environ if environ is None else environ)

        def get(name: str) -> Optional[str]:
            raw = values.get(ENV_PREFIX + name)
            if raw is None or raw.strip() == "":
                return None
            return raw.strip()

        retry = RetryPolicy(
            max_retries=_parse(get("RETRY_MAX_RETRIES"), int, DEFAULT_MAX_RETRIES),
            initial_delay=_parse(get("RETRY_INITIAL_DELAY"), float, DEFAULT_INITIAL_DELAY),
            max_delay=_parse(get("RETRY_MAX_DELAY"), float, DEFAULT_MAX_DELAY),
            backoff_factor=_parse(get("RETRY_BACKOFF_FACTOR"), float, DEFAULT_BACKOFF_FACTOR),
        )
        return cls(
            concurrency_limit=_parse(get("CONCURRENCY_LIMIT"), int, DEFAULT_CONCURRENCY_LIMIT),
            continue_on_error=_parse(get("CONTINUE_ON_ERROR"), _parse_bool, DEFAULT_CONTINUE_ON_ERROR),
            chunk_size=_parse(get("CHUNK_SIZE"), int, DEFAULT_CHUNK_SIZE),
            retry=retry,
        )


def load_parallel_config(path: str | Path) -> ParallelConfig:
    data = yaml.safe_load(Path(path).read_text()) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a mapping in {path}, got {type(data).__name__}")

    retry_data = data.get("retry")
    if retry_data is None:
        retry_data = {}
    if not isinstance(retry_data, dict):
        raise ConfigurationError(
            f"Expected a mapping for 'retry' in {path}, got {type(retry_data).__name__}"
        )
    unknown = sorted(str(k) for k in retry_data if k not in _RETRY_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown retry keys in {path}: {', '.join(unknown)}")

    continue_on_error = data.get("continue_on_error", DEFAULT_CONTINUE_ON_ERROR)
    if not isinstance(continue_on_error, bool):
        raise ConfigurationError(
            f"Expected true or false for 'continue_on_error' in {path}, got {continue_on_error!r}"
        )

    return ParallelConfig(
        concurrency_limit=data.get("concurrency_limit", DEFAULT_CONCURRENCY_LIMIT),
        continue_on_error=continue_on_error,
        chunk_size=data.get("chunk_size", DEFAULT_CHUNK_SIZE),
        retry=RetryPolicy(**retry_data),
        extra={k: v for k, v in data.items() if k not in _TOP_LEVEL_KEYS},
    )


_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


def _parse_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    raise ValueError("expected one of 1/true/yes/on or 0/false/no/off")


def _parse(raw: Optional[str], convert, default):
    if raw is None:
        return default
    try:
        return convert(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid value {raw!r}: {exc}") from exc
