"""Tests for .pgen header parsing and validation."""

import io

import pytest
from pfile_factory import pack_codes, pgen_bytes

from pgenchunk.errors import FormatError, PgenError, UnsupportedFormatError
from pgenchunk.io.header import HEADER_SIZE, PgenHeader, packed_size, read_header


def _stream(data: bytes) -> io.BytesIO:
    return io.BytesIO(data)


@pytest.mark.tier0
class TestReadHeader:
    """Tests for read_header."""

    def test_valid_header_counts(self) -> None:
        """Counts are read little-endian from bytes 3-10."""
        stream = _stream(pgen_bytes(3, 5, b"\x00" * packed_size(3, 5)))

        header = read_header(stream)

        assert header.variant_count == 3
        assert header.sample_count == 5
        assert header.storage_mode == 0x10

    def test_file_size_and_cursor(self) -> None:
        """file_size is the stream length and the cursor ends at byte 11."""
        data = pgen_bytes(2, 4, pack_codes([[0, 1, 2, 3], [3, 2, 1, 0]]))
        stream = _stream(data)

        header = read_header(stream)

        assert header.file_size == len(data) == 13
        assert stream.tell() == HEADER_SIZE
        assert header.data_offset == 11

    def test_little_endian_large_counts(self) -> None:
        """Multi-byte counts decode as little-endian uint32."""
        stream = _stream(pgen_bytes(0x01020304, 0, b""))

        header = read_header(stream, check_size=False)

        assert header.variant_count == 0x01020304
        assert header.sample_count == 0

    def test_rewinds_before_reading(self) -> None:
        """A stream positioned mid-file is rewound to byte 0 first."""
        stream = _stream(pgen_bytes(1, 4, b"\x1b"))
        stream.seek(7)

        assert read_header(stream).variant_count == 1

    def test_bad_magic(self) -> None:
        """Wrong magic bytes raise FormatError."""
        stream = _stream(pgen_bytes(1, 4, b"\x00", magic=b"\x6c\x1c"))

        with pytest.raises(FormatError, match="magic"):
            read_header(stream)

    def test_plink1_bed_magic_rejected(self) -> None:
        """A PLINK1 .bed header (6c 1b 01) fails on the mode byte."""
        stream = _stream(pgen_bytes(1, 4, b"\x00", mode=0x01))

        with pytest.raises(UnsupportedFormatError, match="0x01"):
            read_header(stream)

    def test_unsupported_mode(self) -> None:
        """Valid magic with another storage mode raises UnsupportedFormatError."""
        stream = _stream(pgen_bytes(1, 4, b"\x00", mode=0x11))

        with pytest.raises(UnsupportedFormatError, match="storage mode 0x11"):
            read_header(stream)

    def test_magic_checked_before_mode(self) -> None:
        """Bad magic and bad mode together report the magic."""
        stream = _stream(pgen_bytes(1, 4, b"\x00", magic=b"\x00\x00", mode=0x02))

        with pytest.raises(FormatError):
            read_header(stream)

    def test_unsupported_mode_is_not_format_error(self) -> None:
        """The two header error kinds are distinct types."""
        assert not issubclass(UnsupportedFormatError, FormatError)
        assert issubclass(UnsupportedFormatError, PgenError)

    @pytest.mark.parametrize("length", [0, 1, 2, 3, 10])
    def test_truncated_header(self, length: int) -> None:
        """Streams shorter than 11 bytes raise FormatError."""
        data = pgen_bytes(1, 4, b"\x00")[:length]

        with pytest.raises(FormatError, match="Truncated PGEN header"):
            read_header(_stream(data))

    def test_size_mismatch_short(self) -> None:
        """A file shorter than the counts imply raises FormatError."""
        stream = _stream(pgen_bytes(4, 4, b"\x00" * 3))

        with pytest.raises(FormatError, match="dimension mismatch"):
            read_header(stream)

    def test_size_mismatch_long(self) -> None:
        """Trailing bytes beyond the packed matrix raise FormatError."""
        stream = _stream(pgen_bytes(1, 4, b"\x00\x00"))

        with pytest.raises(FormatError, match="need 12 bytes, file has 13"):
            read_header(stream)

    def test_size_check_can_be_disabled(self) -> None:
        """check_size=False accepts a mismatched file."""
        stream = _stream(pgen_bytes(4, 4, b"\x00"))

        header = read_header(stream, check_size=False)

        assert header.file_size == 12
        assert header.expected_file_size == 15

    def test_error_names_path(self, tmp_path) -> None:
        """Errors carry the file path for diagnosis."""
        path = tmp_path / "broken.pgen"

        with pytest.raises(FormatError) as excinfo:
            read_header(_stream(b"\x00" * 11), path=path)

        assert excinfo.value.path == path
        assert "broken.pgen" in str(excinfo.value)


@pytest.mark.tier0
class TestPgenHeader:
    """Tests for PgenHeader derived properties."""

    @pytest.mark.parametrize(
        ("variants", "samples", "expected"),
        [(0, 0, 11), (1, 1, 12), (1, 4, 12), (1, 5, 13), (7, 9, 27), (2, 4, 13)],
    )
    def test_expected_file_size(self, variants, samples, expected) -> None:
        """Expected size is 11 + ceil(variants * samples / 4)."""
        header = PgenHeader(variants, samples, 0x10, file_size=0)
        assert header.expected_file_size == expected
