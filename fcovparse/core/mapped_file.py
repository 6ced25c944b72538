"""Read-only memory-mapped view of a report file."""

import mmap
from pathlib import Path
from typing import Optional, Union

from ..config import get_logger
from .errors import CoverageFileNotFoundError

logger = get_logger(__name__)


class MappedFile:
    """Zero-copy, read-only view of a file's bytes.

    Empty files cannot be mmapped, so they are exposed as an empty buffer.

    Args:
        path: File to map

    Raises:
        CoverageFileNotFoundError: The path is absent, not a regular file, or
            cannot be opened or mapped
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._mmap: Optional[mmap.mmap] = None
        self._buffer: Union[mmap.mmap, bytes] = b""
        self._closed = False

        if not self.path.is_file():
            raise CoverageFileNotFoundError(f"File not found: {self.path}")

        try:
            with open(self.path, "rb") as f:
                size = self.path.stat().st_size
                if size > 0:
                    self._mmap = mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ)
                    self._buffer = self._mmap
        except (OSError, ValueError) as e:
            raise CoverageFileNotFoundError(f"Cannot map {self.path}: {e}") from e

        logger.debug(f"Mapped {self.path} ({self.size()} bytes)")

    @property
    def buffer(self) -> Union[mmap.mmap, bytes]:
        """Underlying byte buffer (supports slicing, find and the buffer protocol)."""
        return self._buffer

    def size(self) -> int:
        return len(self._buffer)

    def view(self, offset: int = 0, length: Optional[int] = None) -> memoryview:
        """Memoryview over ``[offset, offset + length)`` without copying."""
        end = self.size() if length is None else min(self.size(), offset + length)
        return memoryview(self._buffer)[offset:end]

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Unmap the file. Safe to call more than once."""
        if self._mmap is not None:
            try:
                self._mmap.close()
            except BufferError:
                # Outstanding views keep the mapping alive until they are collected
                logger.debug(f"Deferred unmap of {self.path}: views still exported")
            self._mmap = None
        self._buffer = b""
        self._closed = True

    def __enter__(self) -> "MappedFile":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __len__(self) -> int:
        return self.size()
