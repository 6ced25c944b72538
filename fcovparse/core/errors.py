"""Error kinds and the exception hierarchy used inside the engine.

Everything below the library boundary raises these exceptions; the boundary
in ``fcovparse.api.library`` is the only place that turns them into numeric
result codes.
"""

from enum import IntEnum
from typing import Optional


class ErrorKind(IntEnum):
    """Result codes exposed at the C-style boundary."""
    SUCCESS = 0
    FILE_NOT_FOUND = 1
    FILE_ACCESS = 2
    PARSE_FAILED = 3
    INVALID_FORMAT = 4
    OUT_OF_MEMORY = 5
    INVALID_PARAMETER = 6


ERROR_STRINGS = {
    ErrorKind.SUCCESS: "Success",
    ErrorKind.FILE_NOT_FOUND: "File not found",
    ErrorKind.FILE_ACCESS: "File access error",
    ErrorKind.PARSE_FAILED: "Parse failed",
    ErrorKind.INVALID_FORMAT: "Invalid file format",
    ErrorKind.OUT_OF_MEMORY: "Out of memory",
    ErrorKind.INVALID_PARAMETER: "Invalid parameter",
}


def error_string(code: int) -> str:
    """Human-readable description of a result code."""
    try:
        return ERROR_STRINGS[ErrorKind(code)]
    except ValueError:
        return "Unknown error"


class CoverageParserError(Exception):
    """Base class for all engine errors."""

    kind = ErrorKind.PARSE_FAILED

    @property
    def code(self) -> int:
        return int(self.kind)


class CoverageFileNotFoundError(CoverageParserError):
    """Input file is absent or cannot be opened/mapped for reading."""

    kind = ErrorKind.FILE_NOT_FOUND


class FileAccessError(CoverageParserError):
    """Output file cannot be written."""

    kind = ErrorKind.FILE_ACCESS


class ParseFailedError(CoverageParserError):
    """Generic or internal parse failure."""

    kind = ErrorKind.PARSE_FAILED


class InvalidFormatError(CoverageParserError):
    """A record or field does not follow the report grammar."""

    kind = ErrorKind.INVALID_FORMAT

    def __init__(self, message: str, offset: Optional[int] = None) -> None:
        self.offset = offset
        if offset is not None:
            message = f"{message} (at byte offset {offset})"
        super().__init__(message)

    def at(self, offset: int) -> "InvalidFormatError":
        """Copy of this error anchored to a line's byte offset."""
        if self.offset is not None:
            return self
        return InvalidFormatError(str(self), offset)


class PoolExhaustedError(CoverageParserError):
    """The memory pool could not satisfy an allocation."""

    kind = ErrorKind.OUT_OF_MEMORY


class InvalidParameterError(CoverageParserError):
    """Null handle, null path or otherwise unusable argument."""

    kind = ErrorKind.INVALID_PARAMETER


class InvalidHandleError(InvalidParameterError):
    """Unknown, destroyed or wrong-typed handle."""
