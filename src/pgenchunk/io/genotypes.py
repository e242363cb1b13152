"""Genotype chunk decoding for fixed-width 2-bit .pgen files.

Genotypes are stored as one 2-bit code per (variant, sample) cell, variant
major, four codes per byte across the whole matrix (rows are not padded to a
byte boundary). Within a byte the first cell occupies the lowest two bits.

Codes map to allele counts:
- 0 -> 0 (hom ref)
- 1 -> 1 (het)
- 2 -> 2 (hom alt)
- 3 -> -1 (missing)

Two decoders are provided. ``DecodeMode.PACKED`` unpacks four codes per
byte. ``DecodeMode.LEGACY`` reproduces the legacy chunk layout: it reads one
byte per requested cell starting at the first cell's byte and keeps the
low two bits of each, which only matches the packed data for
one-code-per-byte files.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

import numpy as np
from loguru import logger

from pgenchunk.core.config import DecodeMode
from pgenchunk.errors import FormatError, RangeError
from pgenchunk.io.header import CODES_PER_BYTE, HEADER_SIZE, PgenHeader

MISSING_GENOTYPE = -1

# Indexed by 2-bit code
GENOTYPE_LOOKUP = np.array([0, 1, 2, MISSING_GENOTYPE], dtype=np.int8)

_CODE_SHIFTS = np.array([0, 2, 4, 6], dtype=np.uint8)


@dataclass
class GenotypeChunk:
    """Decoded genotype window with its identifiers.

    Attributes:
        genotypes: int8 matrix with shape (n_samples, n_variants).
            Values are 0 (hom ref), 1 (het), 2 (hom alt), or -1 (missing).
        variant_ids: Variant IDs for the columns, in file order.
        sample_ids: Sample IDs for the rows, in file order.
        start_variant: Index of the first variant in the window.
        start_sample: Index of the first sample in the window.
    """

    genotypes: np.ndarray
    variant_ids: list[str]
    sample_ids: list[str]
    start_variant: int = 0
    start_sample: int = 0

    @property
    def n_samples(self) -> int:
        """Number of samples in the window."""
        return self.genotypes.shape[0]

    @property
    def n_variants(self) -> int:
        """Number of variants in the window."""
        return self.genotypes.shape[1]


def validate_range(
    axis: str,
    start: int,
    end: int,
    count: int,
    full_range: bool = False,
    path: Path | str | None = None,
) -> None:
    """Validate a half-open [start, end) request against an axis count.

    By default any ``end >= count`` is rejected (the legacy convention),
    so the last row of each axis cannot be requested. With
    ``full_range`` the conventional ``end <= count`` bound applies.

    Raises:
        RangeError: If the range is empty, negative, or past the bound.
    """
    if start < 0:
        raise RangeError(axis, start, end, count, "start is negative", path=path)
    if start >= end:
        raise RangeError(axis, start, end, count, "start must be < end", path=path)
    if full_range:
        if end > count:
            raise RangeError(axis, start, end, count, "end exceeds count", path=path)
    elif end >= count:
        raise RangeError(
            axis, start, end, count, "end must be < count", path=path
        )


def genotype_byte_offset(variant: int, sample: int, sample_count: int) -> int:
    """Absolute byte offset of the code for (variant, sample).

    Example:
        >>> genotype_byte_offset(1, 2, sample_count=4)
        12
    """
    return HEADER_SIZE + (variant * sample_count + sample) // CODES_PER_BYTE


def unpack_codes(raw: np.ndarray) -> np.ndarray:
    """Unpack bytes into 2-bit codes, four per byte, lowest bits first.

    Args:
        raw: uint8 array of packed bytes.

    Returns:
        uint8 array of length 4 * len(raw) with values in {0, 1, 2, 3}.
    """
    raw = np.asarray(raw, dtype=np.uint8)
    return ((raw[:, None] >> _CODE_SHIFTS) & 0b11).ravel()


def decode_codes(codes: np.ndarray) -> np.ndarray:
    """Map 2-bit codes to int8 genotypes (3 becomes -1)."""
    return GENOTYPE_LOOKUP[np.asarray(codes) & 0b11]


def _read_exact(stream: BinaryIO, offset: int, n_bytes: int, path) -> np.ndarray:
    stream.seek(offset)
    buf = stream.read(n_bytes)
    if len(buf) != n_bytes:
        raise FormatError(
            f"Short genotype read: needed {n_bytes} bytes at offset {offset}, "
            f"got {len(buf)}",
            path=path,
        )
    return np.frombuffer(buf, dtype=np.uint8)


def _decode_packed(
    stream: BinaryIO,
    sample_count: int,
    start_variant: int,
    end_variant: int,
    start_sample: int,
    end_sample: int,
    path,
) -> np.ndarray:
    first_cell = start_variant * sample_count + start_sample
    last_cell = (end_variant - 1) * sample_count + (end_sample - 1)
    first_byte = first_cell // CODES_PER_BYTE
    last_byte = last_cell // CODES_PER_BYTE

    raw = _read_exact(
        stream, HEADER_SIZE + first_byte, last_byte - first_byte + 1, path
    )
    codes = unpack_codes(raw)

    variants = np.arange(start_variant, end_variant, dtype=np.int64)
    samples = np.arange(start_sample, end_sample, dtype=np.int64)
    cell_index = variants[:, None] * sample_count + samples[None, :]
    cell_index -= first_byte * CODES_PER_BYTE

    # (n_variants, n_samples)
    return decode_codes(codes[cell_index])


def _decode_legacy(
    stream: BinaryIO,
    sample_count: int,
    start_variant: int,
    end_variant: int,
    start_sample: int,
    end_sample: int,
    path,
) -> np.ndarray:
    n_variants = end_variant - start_variant
    n_samples = end_sample - start_sample
    offset = genotype_byte_offset(start_variant, start_sample, sample_count)

    raw = _read_exact(stream, offset, n_variants * n_samples, path)
    return decode_codes(raw).reshape(n_variants, n_samples)


def read_genotypes_chunk(
    stream: BinaryIO,
    header: PgenHeader,
    start_variant: int,
    end_variant: int,
    start_sample: int,
    end_sample: int,
    mode: DecodeMode = DecodeMode.PACKED,
    full_range: bool = False,
    path: Path | str | None = None,
) -> np.ndarray:
    """Decode a rectangular window of the genotype matrix.

    Args:
        stream: Binary .pgen stream.
        header: Header parsed from the same stream.
        start_variant: First variant (inclusive).
        end_variant: Last variant (exclusive).
        start_sample: First sample (inclusive).
        end_sample: Last sample (exclusive).
        mode: PACKED (4 codes per byte) or LEGACY (1 byte per cell).
        full_range: Accept end == count (see validate_range).
        path: File path for error messages.

    Returns:
        New int8 array of shape (n_samples, n_variants) with values in
        {-1, 0, 1, 2}; -1 marks a missing call.

    Raises:
        RangeError: If either range is invalid.
        FormatError: If the file ends before the bytes the window needs.

    Example:
        >>> chunk = read_genotypes_chunk(f, header, 0, 10, 0, 100)
        >>> chunk.shape
        (100, 10)
    """
    validate_range(
        "variant", start_variant, end_variant, header.variant_count, full_range, path
    )
    validate_range(
        "sample", start_sample, end_sample, header.sample_count, full_range, path
    )

    mode = DecodeMode(mode)
    decoder = _decode_legacy if mode == DecodeMode.LEGACY else _decode_packed
    by_variant = decoder(
        stream,
        header.sample_count,
        start_variant,
        end_variant,
        start_sample,
        end_sample,
        path,
    )

    logger.debug(
        f"Decoded {mode.value} chunk variants [{start_variant}, {end_variant}) "
        f"x samples [{start_sample}, {end_sample})"
    )
    return np.ascontiguousarray(by_variant.T)
