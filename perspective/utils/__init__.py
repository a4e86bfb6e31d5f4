"""Utility helpers for perspective."""

from .chunking import chunk, iter_chunks, validate_chunk_size
from .logging_config import setup_logging

__all__ = [
    "setup_logging",
    "chunk",
    "iter_chunks",
    "validate_chunk_size",
]
