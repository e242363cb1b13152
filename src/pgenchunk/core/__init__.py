"""Core support modules for pgenchunk.

This package contains configuration and runtime helpers:
- config: Reader and output configuration dataclasses
- memory: Pre-allocation memory checks for chunk reads
- progress: Progress display for streaming reads
"""

from pgenchunk.core.config import DecodeMode, OutputConfig, ReaderConfig
from pgenchunk.core.memory import (
    MemorySnapshot,
    check_memory_available,
    estimate_chunk_memory_gb,
    get_memory_snapshot,
    log_memory_snapshot,
)

__all__ = [
    "DecodeMode",
    "OutputConfig",
    "ReaderConfig",
    "MemorySnapshot",
    "check_memory_available",
    "estimate_chunk_memory_gb",
    "get_memory_snapshot",
    "log_memory_snapshot",
]
