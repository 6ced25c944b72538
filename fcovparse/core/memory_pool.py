"""Bump allocator over fixed-size bytearray chunks."""

import threading
from typing import Optional

from .errors import InvalidParameterError, PoolExhaustedError
from ..config.schemas import DEFAULT_POOL_CHUNK_SIZE


class MemoryPool:
    """Chunked arena handing out memoryview slices.

    Allocations are never freed individually; ``reset()`` drops every chunk at
    once. Requests larger than ``chunk_size`` get a dedicated chunk of their
    own size.

    Args:
        chunk_size: Size of each backing chunk in bytes
        thread_safe: Guard every allocation with a lock (for shared pools)
        max_bytes: Optional cap on the total chunk capacity
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_POOL_CHUNK_SIZE,
        thread_safe: bool = False,
        max_bytes: Optional[int] = None,
    ) -> None:
        if chunk_size <= 0:
            raise InvalidParameterError(f"Chunk size must be positive, got {chunk_size}")
        self.chunk_size = chunk_size
        self.max_bytes = max_bytes
        self._lock: Optional[threading.Lock] = threading.Lock() if thread_safe else None
        self._chunks: list[bytearray] = []
        self._offset = 0
        self._allocated = 0
        self._num_allocations = 0

    @property
    def thread_safe(self) -> bool:
        return self._lock is not None

    def allocate(self, size: int, alignment: int = 8) -> memoryview:
        """Reserve ``size`` bytes aligned to ``alignment`` within the current chunk.

        Args:
            size: Number of bytes requested
            alignment: Power-of-two alignment of the returned slice's offset

        Returns:
            Writable memoryview of exactly ``size`` bytes

        Raises:
            InvalidParameterError: Negative size or non power-of-two alignment
            PoolExhaustedError: The allocation would exceed ``max_bytes``
        """
        if size < 0:
            raise InvalidParameterError(f"Allocation size must be non-negative, got {size}")
        if alignment <= 0 or alignment & (alignment - 1):
            raise InvalidParameterError(f"Alignment must be a power of two, got {alignment}")

        if self._lock is None:
            return self._allocate(size, alignment)
        with self._lock:
            return self._allocate(size, alignment)

    def _allocate(self, size: int, alignment: int) -> memoryview:
        start = (self._offset + alignment - 1) & ~(alignment - 1)

        if not self._chunks or start + size > len(self._chunks[-1]):
            self._new_chunk(max(size, self.chunk_size))
            start = 0

        chunk = self._chunks[-1]
        self._offset = start + size
        self._allocated += size
        self._num_allocations += 1
        return memoryview(chunk)[start:start + size]

    def _new_chunk(self, capacity: int) -> None:
        if self.max_bytes is not None and self.capacity + capacity > self.max_bytes:
            raise PoolExhaustedError(
                f"Memory pool limit of {self.max_bytes} bytes reached "
                f"(capacity {self.capacity}, requested chunk {capacity})"
            )
        try:
            self._chunks.append(bytearray(capacity))
        except MemoryError as e:
            raise PoolExhaustedError(f"Cannot allocate a {capacity}-byte chunk") from e
        self._offset = 0

    def reset(self) -> None:
        """Release all chunks and counters."""
        if self._lock is None:
            self._reset()
            return
        with self._lock:
            self._reset()

    def _reset(self) -> None:
        self._chunks.clear()
        self._offset = 0
        self._allocated = 0
        self._num_allocations = 0

    @property
    def total_allocated(self) -> int:
        """Bytes handed out since the last reset (excluding alignment padding)."""
        return self._allocated

    @property
    def capacity(self) -> int:
        return sum(len(chunk) for chunk in self._chunks)

    @property
    def chunks_count(self) -> int:
        return len(self._chunks)

    @property
    def num_allocations(self) -> int:
        return self._num_allocations
