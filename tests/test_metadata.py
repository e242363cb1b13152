"""Tests for .pvar/.psam identifier reads."""

import io

import pytest

from pgenchunk.errors import FormatError, RangeError
from pgenchunk.io.metadata import TableReader


def _table(text: str | bytes, **kwargs) -> TableReader:
    data = text.encode() if isinstance(text, str) else text
    return TableReader(io.BytesIO(data), axis="variant", **kwargs)


THREE_ROW_TABLE = "ID\tOTHER\nv0\tx\nv1\ty\nv2\tz\n"


@pytest.mark.tier0
class TestReadIds:
    """Tests for TableReader.read_ids."""

    def test_skips_exactly_one_header_line(self):
        """Range [1, 3) of a three-row table returns the last two IDs."""
        reader = _table(THREE_ROW_TABLE)

        assert reader.read_ids(1, 3, count=3, full_range=True) == ["v1", "v2"]

    def test_first_field_only(self):
        """Only text up to the first tab is returned."""
        reader = _table("ID\tA\tB\nrs1\t1\t100\nrs2\t1\t200\nrs3\t2\t5\n")

        assert reader.read_ids(0, 2, count=3) == ["rs1", "rs2"]

    def test_row_without_tab(self):
        """A row with a single field returns the whole line."""
        reader = _table("ID\nalpha\nbeta\ngamma\n")

        assert reader.read_ids(0, 2, count=3) == ["alpha", "beta"]

    def test_crlf_line_endings(self):
        """Windows line endings are stripped."""
        reader = _table("ID\tX\r\nv0\ta\r\nv1\r\nv2\tc\r\n")

        assert reader.read_ids(0, 2, count=3) == ["v0", "v1"]

    def test_last_line_without_newline(self):
        """The final row may lack a trailing newline."""
        reader = _table("ID\nv0\nv1\nv2")

        assert reader.read_ids(1, 3, count=3, full_range=True) == ["v1", "v2"]

    def test_id_column(self):
        """id_column selects another tab-separated field."""
        reader = _table("CHROM\tID\n1\trsA\n1\trsB\n2\trsC\n", id_column=1)

        assert reader.read_ids(0, 2, count=3) == ["rsA", "rsB"]

    def test_utf8_identifiers(self):
        """Identifiers are decoded as UTF-8."""
        reader = _table("ID\nsampé\nx\ny\n")

        assert reader.read_ids(0, 1, count=3) == ["sampé"]

    def test_end_equal_count_rejected(self):
        """end == count raises RangeError by default."""
        reader = _table(THREE_ROW_TABLE)

        with pytest.raises(RangeError):
            reader.read_ids(1, 3, count=3)

    def test_end_past_count_rejected(self):
        """end > count raises RangeError."""
        reader = _table(THREE_ROW_TABLE)

        with pytest.raises(RangeError):
            reader.read_ids(0, 4, count=3, full_range=True)

    def test_end_count_minus_one_accepted(self):
        """end == count - 1 succeeds."""
        reader = _table(THREE_ROW_TABLE)

        assert reader.read_ids(0, 2, count=3) == ["v0", "v1"]


@pytest.mark.tier0
class TestCursor:
    """Tests for the explicit row cursor and row-offset index."""

    TABLE = "ID\n" + "".join(f"r{i}\tpayload{i}\n" for i in range(10))

    def test_repeated_range(self):
        """Reading the same range twice returns the same IDs."""
        reader = _table(self.TABLE)

        first = reader.read_ids(2, 5, count=10)
        second = reader.read_ids(2, 5, count=10)

        assert first == second == ["r2", "r3", "r4"]

    def test_decreasing_ranges(self):
        """An earlier range after a later one seeks back via the index."""
        reader = _table(self.TABLE)

        assert reader.read_ids(6, 9, count=10) == ["r6", "r7", "r8"]
        assert reader.read_ids(0, 2, count=10) == ["r0", "r1"]
        assert reader.read_ids(4, 7, count=10) == ["r4", "r5", "r6"]

    def test_increasing_ranges_resume(self):
        """Consecutive ranges continue from the furthest indexed row."""
        reader = _table(self.TABLE)

        assert reader.read_ids(0, 3, count=10) == ["r0", "r1", "r2"]
        assert reader.rows_indexed == 3
        assert reader.read_ids(3, 5, count=10) == ["r3", "r4"]
        assert reader.rows_indexed == 5

    def test_skipped_rows_are_indexed(self):
        """Rows before start are indexed while skipping to it."""
        reader = _table(self.TABLE)

        reader.read_ids(7, 8, count=10)

        assert reader.rows_indexed == 8

    def test_row_index_is_the_only_cursor(self):
        """Cursor state is exposed only through the read-only row index."""
        reader = _table(self.TABLE)
        reader.read_ids(2, 4, count=10)

        with pytest.raises(AttributeError):
            reader.rows_indexed = 0
        assert not hasattr(reader, "last_row_read")
        assert reader.read_ids(0, 1, count=10) == ["r0"]
        assert reader.rows_indexed == 4

    def test_independent_of_stream_position(self):
        """Moving the stream externally does not change results."""
        reader = _table(self.TABLE)
        reader.read_ids(0, 2, count=10)
        reader.stream.seek(0)

        assert reader.read_ids(2, 4, count=10) == ["r2", "r3"]


@pytest.mark.tier0
class TestFormatErrors:
    """Tests for malformed side tables."""

    def test_line_at_max_length_accepted(self):
        """A line exactly max_line_length bytes long is accepted."""
        long_id = "x" * 16
        reader = _table(f"ID\n{long_id}\nb\nc\n", max_line_length=16)

        assert reader.read_ids(0, 1, count=3) == [long_id]

    def test_crlf_line_at_max_length_accepted(self):
        """The \\r\\n terminator does not count toward the limit."""
        long_id = "y" * 16
        reader = _table(f"ID\r\n{long_id}\r\nb\r\nc\r\n", max_line_length=16)

        assert reader.read_ids(0, 1, count=3) == [long_id]

    def test_over_long_data_line(self):
        """A data line one byte over the limit raises FormatError."""
        reader = _table(f"ID\na\n{'z' * 17}\nc\n", max_line_length=16)

        with pytest.raises(FormatError, match="data row 1 exceeds max line length"):
            reader.read_ids(0, 2, count=3)

    def test_over_long_skipped_line(self):
        """The limit also applies to rows skipped on the way to start."""
        reader = _table(f"ID\n{'z' * 40}\nb\nc\n", max_line_length=16)

        with pytest.raises(FormatError, match="exceeds max line length of 16"):
            reader.read_ids(1, 2, count=3)

    def test_over_long_header(self):
        """An over-long header line raises FormatError."""
        reader = _table(f"{'H' * 30}\na\nb\n", max_line_length=16)

        with pytest.raises(FormatError, match="header line"):
            reader.read_ids(0, 1, count=2)

    def test_default_limit_is_1024(self):
        """Default bound is 1024 bytes."""
        reader = _table(f"ID\n{'a' * 1025}\nb\n")

        assert reader.max_line_length == 1024
        with pytest.raises(FormatError):
            reader.read_ids(0, 1, count=2)

    def test_empty_table(self):
        """A table without a header line raises FormatError."""
        with pytest.raises(FormatError, match="no header line"):
            _table("").read_ids(0, 1, count=5)

    def test_too_few_rows(self):
        """Running out of rows before end raises FormatError."""
        reader = _table("ID\nv0\nv1\n")

        with pytest.raises(FormatError, match="ends after 2 data rows"):
            reader.read_ids(1, 4, count=10)

    def test_empty_identifier(self):
        """A blank row has no identifier."""
        reader = _table("ID\nv0\n\nv2\n")

        with pytest.raises(FormatError, match="data row 1 has no identifier"):
            reader.read_ids(0, 2, count=3)

    def test_missing_id_column(self):
        """id_column past the last field raises FormatError."""
        reader = _table("A\tB\nv0\n", id_column=1)

        with pytest.raises(FormatError, match="column 1"):
            reader.read_ids(0, 1, count=2)

    def test_invalid_utf8(self):
        """Undecodable identifier bytes raise FormatError."""
        reader = _table(b"ID\n\xff\xfe\nok\n")

        with pytest.raises(FormatError, match="not valid UTF-8"):
            reader.read_ids(0, 1, count=2)

    def test_error_names_path(self, tmp_path):
        """FormatError carries the table path."""
        path = tmp_path / "broken.pvar"
        reader = TableReader(io.BytesIO(b""), axis="variant", path=path)

        with pytest.raises(FormatError) as excinfo:
            reader.read_ids(0, 1, count=2)

        assert excinfo.value.path == path
