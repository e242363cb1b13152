"""I/O modules for pgenchunk.

This package contains the PLINK2 file-format layers:
- header: .pgen header validation
- genotypes: packed genotype chunk decoding
- metadata: .pvar/.psam identifier reads
- output: decoded chunk writers
"""

from pgenchunk.io.genotypes import (
    GenotypeChunk,
    decode_codes,
    genotype_byte_offset,
    read_genotypes_chunk,
    unpack_codes,
    validate_range,
)
from pgenchunk.io.header import PgenHeader, read_header
from pgenchunk.io.metadata import TableReader
from pgenchunk.io.output import write_genotype_chunk

__all__ = [
    "GenotypeChunk",
    "PgenHeader",
    "TableReader",
    "decode_codes",
    "genotype_byte_offset",
    "read_genotypes_chunk",
    "read_header",
    "unpack_codes",
    "validate_range",
    "write_genotype_chunk",
]
