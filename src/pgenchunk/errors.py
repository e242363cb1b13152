"""Typed errors raised by the PLINK2 readers.

Every failure is raised to the caller rather than terminating the process.
Each error subclasses a builtin (OSError, ValueError, IndexError) so callers
that already catch those keep working.
"""

from pathlib import Path


class PgenError(Exception):
    """Base class for all pgenchunk errors.

    Attributes:
        path: File the error relates to, if known.
    """

    def __init__(self, message: str, path: Path | str | None = None):
        self.path = Path(path) if path is not None else None
        if self.path is not None:
            message = f"{message} ({self.path})"
        super().__init__(message)


class OpenError(PgenError, OSError):
    """One of the .pgen/.pvar/.psam files could not be opened."""


class FormatError(PgenError, ValueError):
    """File contents do not match the expected layout."""


class UnsupportedFormatError(PgenError, ValueError):
    """Storage mode byte is valid PLINK2 but not the supported 0x10 layout."""


class RangeError(PgenError, IndexError):
    """Requested chunk bounds are invalid for the file dimensions.

    Attributes:
        axis: "variant" or "sample".
        start: Requested start index.
        end: Requested end index (exclusive).
        count: Number of rows available on this axis.
    """

    def __init__(
        self,
        axis: str,
        start: int,
        end: int,
        count: int,
        reason: str,
        path: Path | str | None = None,
    ):
        self.axis = axis
        self.start = start
        self.end = end
        self.count = count
        super().__init__(
            f"Requested {axis} chunk [{start}, {end}) is out of range: {reason} "
            f"({axis}_count={count})",
            path=path,
        )
