"""Memory estimation and checking for genotype chunk reads.

Provides a pre-allocation check so that a very large window fails with a
clear MemoryError instead of being killed by the OOM killer mid-read.
"""

from typing import NamedTuple

import psutil
from loguru import logger

from pgenchunk.core.config import DecodeMode


def estimate_chunk_memory_gb(
    n_variants: int,
    n_samples: int,
    mode: DecodeMode = DecodeMode.PACKED,
    sample_count: int | None = None,
) -> float:
    """Estimate peak memory (GB) for decoding one genotype chunk.

    Peak memory during a chunk read:
    - raw bytes read from disk
    - unpacked codes (one int8 per code)
    - output matrix plus its transposed copy: 2 * n_variants * n_samples int8

    LEGACY reads one byte per cell. PACKED reads the byte span from the first
    to the last cell of the window, which covers whole variant rows when the
    file has more samples than the window.

    Args:
        n_variants: Variants in the window.
        n_samples: Samples in the window.
        mode: Decoding strategy.
        sample_count: Total samples in the file. Defaults to n_samples.

    Returns:
        Estimated peak memory in GB.

    Example:
        >>> round(estimate_chunk_memory_gb(10_000, 200_000), 1)
        6.5
    """
    cells = n_variants * n_samples
    if mode == DecodeMode.LEGACY:
        raw_bytes = cells
        codes_bytes = cells
    else:
        row_width = sample_count if sample_count is not None else n_samples
        span_cells = max(n_variants - 1, 0) * row_width + n_samples
        raw_bytes = span_cells // 4 + 1
        codes_bytes = raw_bytes * 4
    return (raw_bytes + codes_bytes + 2 * cells) / 1e9


def check_memory_available(
    required_gb: float,
    safety_margin: float = 0.1,
    operation: str = "operation",
) -> bool:
    """Check if sufficient memory is available, raise if not.

    Args:
        required_gb: Memory required in GB.
        safety_margin: Additional margin (0.1 = 10%).
        operation: Description for error message.

    Returns:
        True if sufficient memory available.

    Raises:
        MemoryError: If insufficient memory with detailed message.
    """
    available_gb = psutil.virtual_memory().available / 1e9
    required_with_margin = required_gb * (1 + safety_margin)

    if required_with_margin > available_gb:
        raise MemoryError(
            f"Insufficient memory for {operation}. "
            f"Need {required_gb:.1f}GB (+{safety_margin*100:.0f}% margin = "
            f"{required_with_margin:.1f}GB), but only {available_gb:.1f}GB available. "
            f"Consider requesting a smaller window."
        )

    return True


class MemorySnapshot(NamedTuple):
    """Snapshot of current memory state for debugging.

    All values in GB.
    """

    rss_gb: float  # Resident Set Size (actual RAM used by process)
    available_gb: float  # Available system memory
    total_gb: float  # Total system memory


def get_memory_snapshot() -> MemorySnapshot:
    """Get current memory usage snapshot."""
    vm = psutil.virtual_memory()
    return MemorySnapshot(
        rss_gb=psutil.Process().memory_info().rss / 1e9,
        available_gb=vm.available / 1e9,
        total_gb=vm.total / 1e9,
    )


def log_memory_snapshot(label: str = "", level: str = "DEBUG") -> MemorySnapshot:
    """Log current memory state with optional label.

    Args:
        label: Optional label for this snapshot (e.g., "after_chunk").
        level: Log level ("DEBUG", "INFO", "WARNING").

    Returns:
        MemorySnapshot for chaining/assertions.
    """
    snap = get_memory_snapshot()
    prefix = f"[{label}] " if label else ""
    logger.log(
        level,
        f"{prefix}Memory: RSS={snap.rss_gb:.2f}GB, "
        f"available={snap.available_gb:.1f}GB / {snap.total_gb:.1f}GB",
    )
    return snap
