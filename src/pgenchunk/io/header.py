"""PLINK2 .pgen header parsing.

The supported layout is the fixed-width, uncompressed, 2-bit, biallelic
storage mode (0x10). Its header is 11 bytes with no padding:

- bytes 0-1: magic 0x6C 0x1B
- byte 2: storage mode (0x10)
- bytes 3-6: variant count, little-endian uint32
- bytes 7-10: sample count, little-endian uint32

Packed genotype codes follow immediately at byte 11.
"""

import os
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from loguru import logger

from pgenchunk.errors import FormatError, UnsupportedFormatError

PGEN_MAGIC = b"\x6c\x1b"
STORAGE_MODE_FIXED_2BIT = 0x10
HEADER_SIZE = 11
CODES_PER_BYTE = 4

_COUNTS = struct.Struct("<II")


@dataclass(frozen=True)
class PgenHeader:
    """Parsed .pgen header.

    Attributes:
        variant_count: Number of variants (rows of the genotype matrix).
        sample_count: Number of samples (columns of the genotype matrix).
        storage_mode: Storage mode byte (always 0x10 once validated).
        file_size: Total byte length of the .pgen stream.
    """

    variant_count: int
    sample_count: int
    storage_mode: int
    file_size: int

    @property
    def data_offset(self) -> int:
        """Byte offset of the first packed genotype code."""
        return HEADER_SIZE

    @property
    def expected_file_size(self) -> int:
        """File size implied by the counts: header + ceil(cells / 4) bytes."""
        return HEADER_SIZE + packed_size(self.variant_count, self.sample_count)


def packed_size(variant_count: int, sample_count: int) -> int:
    """Number of bytes holding variant_count x sample_count 2-bit codes."""
    cells = variant_count * sample_count
    return (cells + CODES_PER_BYTE - 1) // CODES_PER_BYTE


def read_header(
    stream: BinaryIO,
    path: Path | str | None = None,
    check_size: bool = True,
) -> PgenHeader:
    """Read and validate the .pgen header.

    On success the stream cursor is left at byte 11, the start of the packed
    genotype data.

    Args:
        stream: Binary stream positioned anywhere; it is rewound to byte 0.
        path: File path, used only in error messages and logs.
        check_size: Raise if the stream length differs from the size the
            counts imply.

    Returns:
        PgenHeader with counts and file size.

    Raises:
        FormatError: Truncated header, bad magic bytes, or size mismatch.
        UnsupportedFormatError: Storage mode other than 0x10.
    """
    stream.seek(0)
    raw = stream.read(HEADER_SIZE)
    if len(raw) < HEADER_SIZE:
        raise FormatError(
            f"Truncated PGEN header: expected {HEADER_SIZE} bytes, got {len(raw)}",
            path=path,
        )

    magic = raw[:2]
    if magic != PGEN_MAGIC:
        raise FormatError(
            f"Invalid PGEN magic bytes {magic.hex(' ')}, expected "
            f"{PGEN_MAGIC.hex(' ')}",
            path=path,
        )

    storage_mode = raw[2]
    if storage_mode != STORAGE_MODE_FIXED_2BIT:
        raise UnsupportedFormatError(
            f"Unsupported PGEN storage mode 0x{storage_mode:02x}; only "
            f"0x{STORAGE_MODE_FIXED_2BIT:02x} (fixed-width 2-bit) is supported",
            path=path,
        )

    variant_count, sample_count = _COUNTS.unpack_from(raw, 3)

    file_size = stream.seek(0, os.SEEK_END)
    header = PgenHeader(
        variant_count=variant_count,
        sample_count=sample_count,
        storage_mode=storage_mode,
        file_size=file_size,
    )

    if check_size and file_size != header.expected_file_size:
        raise FormatError(
            f"PGEN dimension mismatch: {variant_count} variants x "
            f"{sample_count} samples need {header.expected_file_size} bytes, "
            f"file has {file_size}",
            path=path,
        )

    stream.seek(HEADER_SIZE)
    logger.debug(
        f"PGEN header: {variant_count} variants, {sample_count} samples, "
        f"{file_size} bytes"
    )
    return header
