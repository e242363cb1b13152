"""Configuration dataclasses for pgenchunk.

This module contains dataclasses that configure how PLINK2 files are read
(decoder selection, range convention, line-length bound) and where CLI output
is written.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class DecodeMode(str, Enum):
    """Genotype chunk decoding strategy.

    PACKED unpacks four 2-bit codes per byte as the header layout implies.
    LEGACY reproduces the legacy chunk layout, which reads
    one byte per requested cell and keeps its low two bits.
    """

    PACKED = "packed"
    LEGACY = "legacy"


@dataclass
class ReaderConfig:
    """Configuration for a Plink2Reader.

    Attributes:
        decode_mode: Default decoder for genotype chunk reads.
        full_range: Accept ``end == count`` in chunk requests. When False
            (default) the legacy boundary convention applies and any
            ``end >= count`` is rejected, so the last row is unreachable.
        max_line_length: Maximum byte length of a .pvar/.psam line, excluding
            the line terminator.
        variant_id_column: Tab-separated field holding the variant ID.
        sample_id_column: Tab-separated field holding the sample ID.
        check_file_size: Validate the .pgen size against the header counts.
        check_memory: Check available memory before allocating a chunk.
    """

    decode_mode: DecodeMode = DecodeMode.PACKED
    full_range: bool = False
    max_line_length: int = 1024
    variant_id_column: int = 0
    sample_id_column: int = 0
    check_file_size: bool = True
    check_memory: bool = True

    def __post_init__(self) -> None:
        self.decode_mode = DecodeMode(self.decode_mode)
        if self.max_line_length < 1:
            raise ValueError(
                f"max_line_length must be positive, got {self.max_line_length}"
            )
        for name in ("variant_id_column", "sample_id_column"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")


@dataclass
class OutputConfig:
    """Configuration for output files and directories.

    Attributes:
        outdir: Output directory for result files. Created if it doesn't exist.
        prefix: Prefix for output filenames (e.g., "result" produces "result.log.txt").
        verbose: Enable verbose/debug output to console.
    """

    outdir: Path = field(default_factory=lambda: Path("output"))
    prefix: str = "result"
    verbose: bool = False

    @property
    def log_path(self) -> Path:
        """Path to the run log file.

        Returns:
            Path to {outdir}/{prefix}.log.txt
        """
        return self.outdir / f"{self.prefix}.log.txt"

    @property
    def genotype_path(self) -> Path:
        """Path to the decoded genotype table.

        Returns:
            Path to {outdir}/{prefix}.geno.txt
        """
        return self.outdir / f"{self.prefix}.geno.txt"

    def ensure_outdir(self) -> None:
        """Create output directory if it doesn't exist."""
        self.outdir.mkdir(parents=True, exist_ok=True)
