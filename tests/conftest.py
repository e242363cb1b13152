"""Pytest fixtures for the pgenchunk test suite."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from pfile_factory import write_pfile

# =============================================================================
# Test Tier System
# =============================================================================
#
# tier0 - Fast unit tests over in-memory streams and small temp files
#   - Run: pytest -m tier0
#
# tier1 - End-to-end tests over synthetic .pgen/.pvar/.psam file sets,
#   including the CLI
#   - Run: pytest -m tier1
#
# Quick reference:
#   pytest -m tier0           # Fast tests only
#   pytest                    # All tests
# =============================================================================


@pytest.fixture
def codes_matrix() -> np.ndarray:
    """Deterministic 7 x 9 matrix of 2-bit codes including missing (3).

    7 * 9 = 63 cells, so variant rows start at non-byte-aligned positions.
    """
    rng = np.random.default_rng(20240131)
    return rng.integers(0, 4, size=(7, 9), dtype=np.uint8)


@pytest.fixture
def sample_pfile(tmp_path: Path, codes_matrix: np.ndarray) -> Path:
    """Write a synthetic PLINK2 file set and return its prefix.

    Returns:
        Path prefix (without .pgen/.pvar/.psam extension)
    """
    return write_pfile(tmp_path / "data" / "test", codes_matrix)


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Create temporary output directory for test results."""
    out = tmp_path / "output"
    out.mkdir()
    return out
