"""PLINK2 reader handle.

Plink2Reader owns the three open files of a .pgen/.pvar/.psam trio and the
parsed header, and mediates every chunk read so callers never deal with raw
byte offsets or stream positions.

Typical use:
    >>> with open_plink2_prefix(Path("data/study")) as reader:
    ...     genotypes = reader.read_genotypes_chunk(0, 100, 0, 50)
    ...     variant_ids = reader.read_variant_info_chunk(0, 100)

A handle is not safe for concurrent use; callers serialize calls against one
handle. Separate handles over the same files are independent.
"""

from collections.abc import Iterator
from contextlib import ExitStack
from pathlib import Path
from typing import BinaryIO

import numpy as np
from loguru import logger

from pgenchunk.core.config import DecodeMode, ReaderConfig
from pgenchunk.core.memory import (
    check_memory_available,
    estimate_chunk_memory_gb,
    log_memory_snapshot,
)
from pgenchunk.core.progress import progress_iterator
from pgenchunk.errors import OpenError
from pgenchunk.io.genotypes import (
    GenotypeChunk,
    read_genotypes_chunk,
    validate_range,
)
from pgenchunk.io.header import PgenHeader, read_header
from pgenchunk.io.metadata import TableReader


def pfile_paths(prefix: Path | str) -> tuple[Path, Path, Path]:
    """Return the (.pgen, .pvar, .psam) paths for a PLINK2 file prefix."""
    return (
        Path(f"{prefix}.pgen"),
        Path(f"{prefix}.pvar"),
        Path(f"{prefix}.psam"),
    )


class Plink2Reader:
    """Handle over one PLINK2 .pgen/.pvar/.psam trio.

    Lifecycle: construct (or use ``Plink2Reader.open``), open the files,
    call ``read_header()`` once, issue any number of chunk reads, then
    ``close()``. Used as a context manager, the files are released on every
    exit path.

    Attributes:
        pgen_path: Path to the binary genotype file.
        pvar_path: Path to the variant table.
        psam_path: Path to the sample table.
        config: Reader configuration.
        header: Parsed header, None until read_header() succeeds.
    """

    def __init__(
        self,
        pgen_path: Path | str,
        pvar_path: Path | str,
        psam_path: Path | str,
        config: ReaderConfig | None = None,
    ):
        self.pgen_path = Path(pgen_path)
        self.pvar_path = Path(pvar_path)
        self.psam_path = Path(psam_path)
        self.config = config if config is not None else ReaderConfig()
        self.header: PgenHeader | None = None
        self._stack: ExitStack | None = None
        self._pgen: BinaryIO | None = None
        self._variants: TableReader | None = None
        self._samples: TableReader | None = None

    @classmethod
    def open(
        cls,
        pgen_path: Path | str,
        pvar_path: Path | str,
        psam_path: Path | str,
        config: ReaderConfig | None = None,
    ) -> "Plink2Reader":
        """Create a reader and open all three files.

        Raises:
            OpenError: If any file cannot be opened. Files opened before the
                failure are closed.
        """
        reader = cls(pgen_path, pvar_path, psam_path, config)
        reader.open_files()
        return reader

    @classmethod
    def from_prefix(
        cls, prefix: Path | str, config: ReaderConfig | None = None
    ) -> "Plink2Reader":
        """Open {prefix}.pgen, {prefix}.pvar and {prefix}.psam."""
        return cls.open(*pfile_paths(prefix), config=config)

    def open_files(self) -> None:
        """Open the three files.

        Raises:
            OpenError: If any file cannot be opened.
            RuntimeError: If the reader is already open.
        """
        if self._stack is not None:
            raise RuntimeError("Reader already open.")

        with ExitStack() as stack:
            pgen = stack.enter_context(_open_binary(self.pgen_path, "genotype"))
            pvar = stack.enter_context(_open_binary(self.pvar_path, "variant"))
            psam = stack.enter_context(_open_binary(self.psam_path, "sample"))
            self._stack = stack.pop_all()

        self._pgen = pgen
        self._variants = TableReader(
            pvar,
            axis="variant",
            path=self.pvar_path,
            max_line_length=self.config.max_line_length,
            id_column=self.config.variant_id_column,
        )
        self._samples = TableReader(
            psam,
            axis="sample",
            path=self.psam_path,
            max_line_length=self.config.max_line_length,
            id_column=self.config.sample_id_column,
        )

    def close(self) -> None:
        """Close all three files. Safe to call more than once."""
        if self._stack is not None:
            self._stack.close()
            self._stack = None
        self._pgen = None
        self._variants = None
        self._samples = None

    @property
    def is_open(self) -> bool:
        """Whether the files are currently open."""
        return self._stack is not None

    def __enter__(self) -> "Plink2Reader":
        """Open files if needed and return self."""
        if not self.is_open:
            self.open_files()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close all files."""
        self.close()

    def read_header(self) -> PgenHeader:
        """Read and validate the .pgen header.

        Returns:
            Parsed header. Also stored on ``self.header``.

        Raises:
            FormatError: Bad magic, truncated header, or size mismatch.
            UnsupportedFormatError: Storage mode other than 0x10.
            RuntimeError: If the reader is not open.
        """
        if self._pgen is None:
            raise RuntimeError("Reader not open. Use Plink2Reader.open().")
        self.header = read_header(
            self._pgen, path=self.pgen_path, check_size=self.config.check_file_size
        )
        logger.info(
            f"Opened {self.pgen_path.name}: {self.header.variant_count} variants, "
            f"{self.header.sample_count} samples"
        )
        return self.header

    def _require_header(self) -> PgenHeader:
        if self._pgen is None:
            raise RuntimeError("Reader not open. Use Plink2Reader.open().")
        if self.header is None:
            raise RuntimeError("Header not read. Call read_header() first.")
        return self.header

    @property
    def variant_count(self) -> int:
        """Number of variants in the genotype matrix."""
        return self._require_header().variant_count

    @property
    def sample_count(self) -> int:
        """Number of samples in the genotype matrix."""
        return self._require_header().sample_count

    @property
    def file_size(self) -> int:
        """Byte length of the .pgen file."""
        return self._require_header().file_size

    def read_genotypes_chunk(
        self,
        start_variant: int,
        end_variant: int,
        start_sample: int,
        end_sample: int,
        mode: DecodeMode | str | None = None,
    ) -> np.ndarray:
        """Decode genotypes for variants [start_variant, end_variant) and
        samples [start_sample, end_sample).

        Args:
            start_variant: First variant (inclusive).
            end_variant: Last variant (exclusive).
            start_sample: First sample (inclusive).
            end_sample: Last sample (exclusive).
            mode: Decoder override; defaults to ``config.decode_mode``.

        Returns:
            int8 array of shape (n_samples, n_variants), values in
            {-1, 0, 1, 2}. The caller owns the array.

        Raises:
            RangeError: If either range is invalid.
            FormatError: If the file is too short for the window.
            MemoryError: If ``config.check_memory`` and the window would not
                fit in available memory.
        """
        header = self._require_header()
        mode = DecodeMode(mode) if mode is not None else self.config.decode_mode
        full_range = self.config.full_range

        # Validate bounds before sizing the allocation
        validate_range(
            "variant",
            start_variant,
            end_variant,
            header.variant_count,
            full_range,
            self.pgen_path,
        )
        validate_range(
            "sample",
            start_sample,
            end_sample,
            header.sample_count,
            full_range,
            self.pgen_path,
        )

        if self.config.check_memory:
            required_gb = estimate_chunk_memory_gb(
                end_variant - start_variant,
                end_sample - start_sample,
                mode,
                sample_count=header.sample_count,
            )
            check_memory_available(required_gb, operation="genotype chunk read")

        return read_genotypes_chunk(
            self._pgen,
            header,
            start_variant,
            end_variant,
            start_sample,
            end_sample,
            mode=mode,
            full_range=full_range,
            path=self.pgen_path,
        )

    def read_variant_info_chunk(
        self, start_variant: int, end_variant: int
    ) -> list[str]:
        """Return variant IDs for rows [start_variant, end_variant) of the .pvar.

        Raises:
            RangeError: If the range is invalid for the variant count.
            FormatError: If the table is shorter than requested or malformed.
        """
        header = self._require_header()
        return self._variants.read_ids(
            start_variant, end_variant, header.variant_count, self.config.full_range
        )

    def read_sample_info_chunk(self, start_sample: int, end_sample: int) -> list[str]:
        """Return sample IDs for rows [start_sample, end_sample) of the .psam.

        Raises:
            RangeError: If the range is invalid for the sample count.
            FormatError: If the table is shorter than requested or malformed.
        """
        header = self._require_header()
        return self._samples.read_ids(
            start_sample, end_sample, header.sample_count, self.config.full_range
        )

    def read_chunk(
        self,
        start_variant: int,
        end_variant: int,
        start_sample: int,
        end_sample: int,
        mode: DecodeMode | str | None = None,
    ) -> GenotypeChunk:
        """Decode a window together with its variant and sample IDs."""
        genotypes = self.read_genotypes_chunk(
            start_variant, end_variant, start_sample, end_sample, mode=mode
        )
        return GenotypeChunk(
            genotypes=genotypes,
            variant_ids=self.read_variant_info_chunk(start_variant, end_variant),
            sample_ids=self.read_sample_info_chunk(start_sample, end_sample),
            start_variant=start_variant,
            start_sample=start_sample,
        )

    def readable_bound(self, count: int) -> int:
        """Largest ``end`` accepted for an axis of ``count`` rows."""
        return count if self.config.full_range else max(count - 1, 0)

    def iter_genotype_chunks(
        self,
        chunk_size: int = 10_000,
        mode: DecodeMode | str | None = None,
        show_progress: bool = True,
    ) -> Iterator[tuple[np.ndarray, int, int]]:
        """Stream genotype chunks over consecutive variant windows.

        Each chunk covers every readable sample. Unless ``config.full_range``
        is set, the last variant and last sample are outside the accepted
        range and are skipped (a warning is logged).

        Memory: O(n_samples * chunk_size) per chunk. A memory snapshot is
        logged at DEBUG after each chunk is decoded.

        Args:
            chunk_size: Number of variants per chunk.
            mode: Decoder override; defaults to ``config.decode_mode``.
            show_progress: Whether to show a progress bar.

        Yields:
            Tuple of (genotypes_chunk, start_idx, end_idx):
            - genotypes_chunk: Array of shape (n_samples, chunk_variants)
            - start_idx: First variant index (inclusive)
            - end_idx: Last variant index (exclusive)
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        header = self._require_header()
        variant_end = self.readable_bound(header.variant_count)
        sample_end = self.readable_bound(header.sample_count)
        if not self.config.full_range and header.variant_count > 0:
            logger.warning(
                "Streaming without full_range: last variant and last sample "
                "are not readable and will be skipped"
            )
        if variant_end == 0 or sample_end == 0:
            return

        n_chunks = (variant_end + chunk_size - 1) // chunk_size
        logger.info(
            f"Reading {variant_end} variants in {n_chunks} chunks of {chunk_size} "
            f"({sample_end} samples)"
        )

        iterator = range(0, variant_end, chunk_size)
        if show_progress:
            iterator = progress_iterator(
                iterator, total=n_chunks, desc="Reading genotypes"
            )

        for start in iterator:
            end = min(start + chunk_size, variant_end)
            chunk = self.read_genotypes_chunk(start, end, 0, sample_end, mode=mode)
            log_memory_snapshot(f"chunk_{start}")
            yield chunk, start, end


def _open_binary(path: Path, kind: str) -> BinaryIO:
    try:
        return open(path, "rb")
    except OSError as e:
        raise OpenError(
            f"Failed to open PLINK2 {kind} file: {e.strerror or e}", path=path
        ) from e


def open_plink2(
    pgen_path: Path | str,
    pvar_path: Path | str,
    psam_path: Path | str,
    config: ReaderConfig | None = None,
) -> Plink2Reader:
    """Open a PLINK2 trio and read its header.

    If header validation fails, all three files are closed before the error
    propagates.

    Returns:
        Open Plink2Reader with ``header`` populated.

    Raises:
        OpenError: If any file cannot be opened.
        FormatError: If the header is invalid.
        UnsupportedFormatError: If the storage mode is not supported.
    """
    reader = Plink2Reader.open(pgen_path, pvar_path, psam_path, config)
    try:
        reader.read_header()
    except Exception:
        reader.close()
        raise
    return reader


def open_plink2_prefix(
    prefix: Path | str, config: ReaderConfig | None = None
) -> Plink2Reader:
    """Open {prefix}.pgen/.pvar/.psam and read the header."""
    return open_plink2(*pfile_paths(prefix), config=config)
