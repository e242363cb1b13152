"""Identifier reads from .pvar / .psam side tables.

Both tables are tab-delimited text with one header line followed by one data
row per variant (.pvar) or sample (.psam). Data row N describes index N of
the genotype matrix. The identifier is a configurable tab-separated field,
the first one by default.

TableReader keeps an explicit cursor instead of relying on wherever the
stream happens to be: it records the byte offset of every data row it has
scanned, so a range that was already passed can be re-read by seeking back,
and a range further on resumes scanning from the furthest row seen.
"""

from pathlib import Path
from typing import BinaryIO

from loguru import logger

from pgenchunk.errors import FormatError
from pgenchunk.io.genotypes import validate_range

DEFAULT_MAX_LINE_LENGTH = 1024


class TableReader:
    """Chunked identifier reader bound to one side-table stream.

    Example:
        with open("data.pvar", "rb") as f:
            variants = TableReader(f, axis="variant", path="data.pvar")
            ids = variants.read_ids(0, 10, count=variant_count)
    """

    def __init__(
        self,
        stream: BinaryIO,
        axis: str,
        path: Path | str | None = None,
        max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
        id_column: int = 0,
    ):
        """Initialize reader over an open binary stream.

        Args:
            stream: Seekable binary stream of the table.
            axis: "variant" or "sample", used in error messages.
            path: File path for error messages.
            max_line_length: Longest accepted line in bytes, excluding the
                line terminator.
            id_column: Tab-separated field holding the identifier.
        """
        self.stream = stream
        self.axis = axis
        self.path = Path(path) if path is not None else None
        self.max_line_length = max_line_length
        self.id_column = id_column
        self._row_offsets: list[int] = []
        self._frontier: int | None = None

    @property
    def rows_indexed(self) -> int:
        """Number of data rows whose byte offset is known."""
        return len(self._row_offsets)

    def read_ids(
        self, start: int, end: int, count: int, full_range: bool = False
    ) -> list[str]:
        """Return identifiers of data rows [start, end) in file order.

        Args:
            start: First data row (0 = first line after the header).
            end: Last data row (exclusive).
            count: Row count from the .pgen header, used for range checks.
            full_range: Accept end == count (see validate_range).

        Raises:
            RangeError: If the range is invalid for ``count``.
            FormatError: On a missing header, a table shorter than requested,
                an over-long line, or a row without an identifier.
        """
        validate_range(self.axis, start, end, count, full_range, self.path)

        ids = [self._extract_id(self._line_at(row), row) for row in range(start, end)]
        logger.debug(f"Read {len(ids)} {self.axis} IDs [{start}, {end})")
        return ids

    def _line_at(self, row: int) -> bytes:
        if self._frontier is None:
            self._skip_header()
        while len(self._row_offsets) < row:
            self._read_frontier_line()
        if row < len(self._row_offsets):
            self.stream.seek(self._row_offsets[row])
            return self._read_line(row)
        return self._read_frontier_line()

    def _skip_header(self) -> None:
        self.stream.seek(0)
        if self._read_line(-1) is None:
            raise FormatError(f"{self.axis} table is empty (no header line)", self.path)
        self._frontier = self.stream.tell()

    def _read_frontier_line(self) -> bytes:
        row = len(self._row_offsets)
        self.stream.seek(self._frontier)
        line = self._read_line(row)
        if line is None:
            raise FormatError(
                f"{self.axis} table ends after {row} data rows", self.path
            )
        self._row_offsets.append(self._frontier)
        self._frontier = self.stream.tell()
        return line

    def _read_line(self, row: int) -> bytes | None:
        """Read one line without its terminator; None at end of file."""
        # +2 leaves room for a "\r\n" terminator after a maximal line
        line = self.stream.readline(self.max_line_length + 2)
        if not line:
            return None
        content = line.rstrip(b"\n")
        if content.endswith(b"\r"):
            content = content[:-1]
        if len(content) > self.max_line_length:
            where = "header line" if row < 0 else f"data row {row}"
            raise FormatError(
                f"{self.axis} table {where} exceeds max line length of "
                f"{self.max_line_length} bytes",
                self.path,
            )
        return content

    def _extract_id(self, line: bytes, row: int) -> str:
        fields = line.split(b"\t")
        if len(fields) <= self.id_column or not fields[self.id_column]:
            raise FormatError(
                f"{self.axis} table data row {row} has no identifier in "
                f"column {self.id_column}",
                self.path,
            )
        try:
            return fields[self.id_column].decode("utf-8")
        except UnicodeDecodeError as e:
            raise FormatError(
                f"{self.axis} table data row {row} is not valid UTF-8", self.path
            ) from e
