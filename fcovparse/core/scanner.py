"""Byte-range scanning primitives shared by every report grammar.

All functions are pure: they take a buffer (``bytes``, ``bytearray`` or an
``mmap``) plus an optional ``[start, end)`` range and never keep a reference
to the buffer. Grammars tokenize and convert fields exclusively through this
module.
"""

import re
from typing import Iterator, Optional

import numpy as np

from .errors import InvalidFormatError
from .memory_pool import MemoryPool

NEWLINE = 0x0A
WHITESPACE = b" \t\r\n\x0b\x0c"
UINT32_MAX = 0xFFFFFFFF

_DOUBLE_RE = re.compile(rb"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _bounds(buffer, start: int, end: Optional[int]) -> tuple[int, int]:
    size = len(buffer)
    if end is None or end > size:
        end = size
    start = max(0, start)
    return start, max(start, end)


def find_byte(buffer, byte: int, start: int = 0, end: Optional[int] = None) -> int:
    """Offset of the first ``byte`` in ``[start, end)``, or -1."""
    start, end = _bounds(buffer, start, end)
    return buffer.find(bytes((byte,)), start, end)


def rfind_byte(buffer, byte: int, start: int = 0, end: Optional[int] = None) -> int:
    """Offset of the last ``byte`` in ``[start, end)``, or -1."""
    start, end = _bounds(buffer, start, end)
    return buffer.rfind(bytes((byte,)), start, end)


def find_newlines(
    buffer, start: int = 0, end: Optional[int] = None, pool: Optional[MemoryPool] = None
) -> np.ndarray:
    """Absolute offsets of every ``\\n`` in ``[start, end)``.

    The scan is vectorised with numpy. When a pool is given the returned
    int64 array lives in pool memory instead of a fresh heap allocation.

    Args:
        buffer: Bytes-like object supporting the buffer protocol
        start: First offset to scan
        end: One past the last offset to scan (default: end of buffer)
        pool: Optional arena backing the result array

    Returns:
        Sorted int64 array of newline offsets
    """
    start, end = _bounds(buffer, start, end)
    if end <= start:
        return np.empty(0, dtype=np.int64)

    window = np.frombuffer(buffer, dtype=np.uint8, count=end - start, offset=start)
    hits = np.flatnonzero(window == NEWLINE)
    del window

    if pool is None or hits.size == 0:
        return hits.astype(np.int64, copy=False) + start

    out = np.frombuffer(pool.allocate(hits.size * 8, alignment=8), dtype=np.int64)
    np.add(hits, start, out=out)
    return out


def skip_whitespace(buffer, start: int = 0, end: Optional[int] = None) -> int:
    """Offset of the first non-whitespace byte at or after ``start`` (``end`` if none)."""
    start, end = _bounds(buffer, start, end)
    pos = start
    while pos < end and buffer[pos] in WHITESPACE:
        pos += 1
    return pos


def parse_uint(buffer, start: int = 0, end: Optional[int] = None) -> int:
    """Parse an unsigned 32-bit integer spanning the whole range.

    Raises:
        InvalidFormatError: Empty range, a non-digit byte, or overflow
    """
    start, end = _bounds(buffer, start, end)
    if start == end:
        raise InvalidFormatError("Expected an unsigned integer, got an empty field")

    value = 0
    for pos in range(start, end):
        digit = buffer[pos] - 0x30
        if not 0 <= digit <= 9:
            raise InvalidFormatError(
                f"Invalid unsigned integer {bytes(buffer[start:end])!r}"
            )
        value = value * 10 + digit
        if value > UINT32_MAX:
            raise InvalidFormatError(
                f"Unsigned integer out of range: {bytes(buffer[start:end])!r}"
            )
    return value


def parse_double(buffer, start: int = 0, end: Optional[int] = None) -> float:
    """Parse a decimal floating-point number spanning the whole range.

    Only plain decimal notation with an optional exponent is accepted;
    ``nan``, ``inf`` and digit separators are rejected.
    """
    start, end = _bounds(buffer, start, end)
    field = bytes(buffer[start:end])
    if not _DOUBLE_RE.fullmatch(field):
        raise InvalidFormatError(f"Invalid number {field!r}")
    return float(field)


def parse_percent(token: bytes) -> float:
    """Parse ``75.5%`` (the percent sign is optional)."""
    if token.endswith(b"%"):
        token = token[:-1]
    return parse_double(token)


def parse_ratio(token: bytes) -> tuple[int, int]:
    """Parse ``COVERED/EXPECTED`` into a pair of unsigned integers."""
    slash = find_byte(token, ord("/"))
    if slash < 0:
        raise InvalidFormatError(f"Expected COVERED/EXPECTED, got {token!r}")
    return parse_uint(token, 0, slash), parse_uint(token, slash + 1)


def tokenize(buffer, start: int = 0, end: Optional[int] = None) -> list[bytes]:
    """Split a range on ASCII whitespace."""
    start, end = _bounds(buffer, start, end)
    return buffer[start:end].split()


def starts_with_digit(token: bytes) -> bool:
    return bool(token) and 0x30 <= token[0] <= 0x39


def decode(token: bytes) -> str:
    """Decode a token for storage in a record."""
    return token.decode("utf-8", errors="replace")


def iter_lines(
    buffer,
    start: int = 0,
    end: Optional[int] = None,
    newlines: Optional[np.ndarray] = None,
) -> Iterator[tuple[int, int]]:
    """Yield ``(line_start, line_end)`` for each line in ``[start, end)``.

    ``line_end`` excludes the ``\\n`` and a preceding ``\\r``. A final line
    without a terminator is yielded as well.

    Args:
        buffer: Buffer to scan
        start: Range start (must be a line start)
        end: Range end
        newlines: Precomputed newline offsets for the range, if available
    """
    start, end = _bounds(buffer, start, end)
    if newlines is None:
        newlines = find_newlines(buffer, start, end)

    line_start = start
    for nl in newlines.tolist():
        line_end = nl
        if line_end > line_start and buffer[line_end - 1] == 0x0D:
            line_end -= 1
        yield line_start, line_end
        line_start = nl + 1

    if line_start < end:
        line_end = end
        if buffer[line_end - 1] == 0x0D:
            line_end -= 1
        yield line_start, line_end
