"""pgenchunk: chunked reads of PLINK2 genotype files.

pgenchunk reads the fixed-width 2-bit PLINK2 trio (.pgen genotype matrix,
.pvar variant table, .psam sample table) and returns rectangular windows of
the genotype matrix as int8 numpy arrays, together with the variant and
sample identifiers of the same window.

Example:
    >>> from pgenchunk import open_plink2_prefix
    >>> with open_plink2_prefix("data/study") as reader:
    ...     chunk = reader.read_chunk(0, 100, 0, 50)
    >>> chunk.genotypes.shape
    (50, 100)
"""

import sys
from importlib.metadata import version

from loguru import logger

__version__ = version("pgenchunk")

# Configure loguru with sensible defaults on import
# Users can override by calling logger.remove()/add()
logger.remove()  # Remove default handler
logger.add(
    sys.stdout,
    level="INFO",
    format="{time:HH:mm:ss} | <level>{level: <8}</level> | {message}",
    colorize=True,
)

from pgenchunk.core.config import DecodeMode, ReaderConfig  # noqa: E402
from pgenchunk.errors import (  # noqa: E402
    FormatError,
    OpenError,
    PgenError,
    RangeError,
    UnsupportedFormatError,
)
from pgenchunk.io.genotypes import GenotypeChunk  # noqa: E402
from pgenchunk.io.header import PgenHeader  # noqa: E402
from pgenchunk.reader import (  # noqa: E402
    Plink2Reader,
    open_plink2,
    open_plink2_prefix,
)

__all__ = [
    "DecodeMode",
    "FormatError",
    "GenotypeChunk",
    "OpenError",
    "PgenError",
    "PgenHeader",
    "Plink2Reader",
    "RangeError",
    "ReaderConfig",
    "UnsupportedFormatError",
    "open_plink2",
    "open_plink2_prefix",
    "__version__",
]
