from __future__ import annotations

from typing import Iterator, List, Sequence, TypeVar

from ..errors import ConfigurationError

T = TypeVar("T")


def validate_chunk_size(chunk_size: int) -> int:
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size < 1:
        raise ConfigurationError(
            f"chunk_size must be a positive integer, got {chunk_size!r}"
        )
    return chunk_size


def iter_chunks(items: Sequence[T], chunk_size: int) -> Iterator[List[T]]:
    """Yield consecutive slices of ``chunk_size`` items; the last may be shorter."""
    validate_chunk_size(chunk_size)
    return (list(items[i : i + chunk_size]) for i in range(0, len(items), chunk_size))


def chunk(items: Sequence[T], chunk_size: int) -> List[List[T]]:
    return list(iter_chunks(items, chunk_size))
