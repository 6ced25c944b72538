"""Test byte-level primitives: scanner, mapped file and memory pool."""

from pathlib import Path

import numpy as np
import pytest
from fcovparse.core import scanner
from fcovparse.core.errors import (
    CoverageFileNotFoundError,
    InvalidFormatError,
    InvalidParameterError,
    PoolExhaustedError,
)
from fcovparse.core.mapped_file import MappedFile
from fcovparse.core.memory_pool import MemoryPool


class TestScanner:
    """Test scanning functions."""

    def test_find_byte(self) -> None:
        """Test first occurrence lookup within a range."""
        data = b"abc/def/ghi"
        assert scanner.find_byte(data, ord("/")) == 3
        assert scanner.find_byte(data, ord("/"), 4) == 7
        assert scanner.find_byte(data, ord("/"), 8) == -1
        assert scanner.find_byte(data, ord("/"), 0, 3) == -1

    def test_rfind_byte(self) -> None:
        """Test last occurrence lookup within a range."""
        data = b"a\nb\nc"
        assert scanner.rfind_byte(data, scanner.NEWLINE) == 3
        assert scanner.rfind_byte(data, scanner.NEWLINE, 0, 3) == 1
        assert scanner.rfind_byte(data, scanner.NEWLINE, 0, 1) == -1

    def test_find_newlines(self) -> None:
        """Test vectorised newline enumeration."""
        data = b"one\ntwo\n\nthree"
        offsets = scanner.find_newlines(data)
        assert offsets.dtype == np.int64
        assert offsets.tolist() == [3, 7, 8]

    def test_find_newlines_subrange_is_absolute(self) -> None:
        """Test that offsets of a sub-range are absolute."""
        data = b"one\ntwo\nthree\n"
        assert scanner.find_newlines(data, 4).tolist() == [7, 13]
        assert scanner.find_newlines(data, 4, 7).tolist() == []

    def test_find_newlines_empty(self) -> None:
        """Test an empty range."""
        assert scanner.find_newlines(b"").size == 0
        assert scanner.find_newlines(b"abc", 2, 2).size == 0

    def test_find_newlines_pool_backed(self) -> None:
        """Test newline offsets stored in pool memory."""
        pool = MemoryPool(chunk_size=1024)
        offsets = scanner.find_newlines(b"a\nb\nc\n", pool=pool)
        assert offsets.tolist() == [1, 3, 5]
        assert pool.num_allocations == 1
        assert pool.total_allocated == 3 * 8

    def test_skip_whitespace(self) -> None:
        """Test skipping leading blanks."""
        data = b"  \t x"
        assert scanner.skip_whitespace(data) == 4
        assert scanner.skip_whitespace(b"   ") == 3
        assert scanner.skip_whitespace(data, 4) == 4

    def test_parse_uint(self) -> None:
        """Test strict unsigned integer parsing."""
        assert scanner.parse_uint(b"12584") == 12584
        assert scanner.parse_uint(b"x123y", 1, 4) == 123
        assert scanner.parse_uint(b"4294967295") == 4294967295

    @pytest.mark.parametrize("field", [b"", b"12a", b"-1", b"1.5", b"4294967296"])
    def test_parse_uint_rejects(self, field: bytes) -> None:
        """Test malformed or out-of-range integers."""
        with pytest.raises(InvalidFormatError):
            scanner.parse_uint(field)

    def test_parse_double(self) -> None:
        """Test decimal parsing."""
        assert scanner.parse_double(b"75.32") == pytest.approx(75.32)
        assert scanner.parse_double(b"100") == 100.0
        assert scanner.parse_double(b".5") == 0.5
        assert scanner.parse_double(b"1e2") == 100.0

    @pytest.mark.parametrize("field", [b"", b"nan", b"inf", b"1_000", b"7x"])
    def test_parse_double_rejects(self, field: bytes) -> None:
        """Test malformed numbers."""
        with pytest.raises(InvalidFormatError):
            scanner.parse_double(field)

    def test_parse_percent_and_ratio(self) -> None:
        """Test percent and ratio tokens."""
        assert scanner.parse_percent(b"90.00%") == 90.0
        assert scanner.parse_percent(b"90.00") == 90.0
        assert scanner.parse_ratio(b"45/50") == (45, 50)
        with pytest.raises(InvalidFormatError):
            scanner.parse_ratio(b"4550")
        with pytest.raises(InvalidFormatError):
            scanner.parse_ratio(b"45/")

    def test_tokenize(self) -> None:
        """Test whitespace tokenization."""
        assert scanner.tokenize(b"  a\tbb  c \r") == [b"a", b"bb", b"c"]
        assert scanner.tokenize(b"xx yy", 3) == [b"yy"]

    def test_iter_lines(self) -> None:
        """Test line ranges, CRLF handling and a final unterminated line."""
        data = b"ab\r\ncd\n\nef"
        lines = [data[s:e] for s, e in scanner.iter_lines(data)]
        assert lines == [b"ab", b"cd", b"", b"ef"]


class TestMappedFile:
    """Test memory-mapped file access."""

    def test_map_file(self, tmp_path: Path) -> None:
        """Test mapping and viewing a file."""
        path = tmp_path / "report.txt"
        path.write_bytes(b"hello\nworld\n")

        with MappedFile(path) as mapped:
            assert mapped.size() == 12
            assert len(mapped) == 12
            assert bytes(mapped.view(6, 5)) == b"world"
            assert mapped.buffer[0:5] == b"hello"
        assert mapped.closed is True

    def test_empty_file(self, tmp_path: Path) -> None:
        """Test that an empty file maps to an empty buffer."""
        path = tmp_path / "empty.txt"
        path.write_bytes(b"")

        with MappedFile(path) as mapped:
            assert mapped.size() == 0
            assert mapped.closed is False

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing file raises FileNotFound."""
        with pytest.raises(CoverageFileNotFoundError):
            MappedFile(tmp_path / "missing.txt")

    def test_directory_rejected(self, tmp_path: Path) -> None:
        """Test that a directory cannot be mapped."""
        with pytest.raises(CoverageFileNotFoundError):
            MappedFile(tmp_path)

    def test_close_twice(self, tmp_path: Path) -> None:
        """Test that close is idempotent."""
        path = tmp_path / "report.txt"
        path.write_bytes(b"x\n")
        mapped = MappedFile(path)
        mapped.close()
        mapped.close()
        assert mapped.size() == 0


class TestMemoryPool:
    """Test the bump allocator."""

    def test_allocate_within_chunk(self) -> None:
        """Test that small allocations share one chunk."""
        pool = MemoryPool(chunk_size=256)
        first = pool.allocate(10)
        second = pool.allocate(20)
        assert len(first) == 10
        assert len(second) == 20
        assert pool.chunks_count == 1
        assert pool.num_allocations == 2
        assert pool.total_allocated == 30

    def test_allocations_are_writable_and_distinct(self) -> None:
        """Test that slices do not overlap."""
        pool = MemoryPool(chunk_size=64)
        first = pool.allocate(8)
        second = pool.allocate(8)
        first[:] = b"A" * 8
        second[:] = b"B" * 8
        assert bytes(first) == b"A" * 8
        assert bytes(second) == b"B" * 8

    def test_new_chunk_when_full(self) -> None:
        """Test growth by whole chunks."""
        pool = MemoryPool(chunk_size=64)
        pool.allocate(60)
        pool.allocate(10)
        assert pool.chunks_count == 2
        assert pool.capacity == 128

    def test_oversized_allocation(self) -> None:
        """Test that large requests get a dedicated chunk."""
        pool = MemoryPool(chunk_size=64)
        view = pool.allocate(1000)
        assert len(view) == 1000
        assert pool.capacity == 1000

    def test_alignment(self) -> None:
        """Test that offsets honour the alignment."""
        pool = MemoryPool(chunk_size=256)
        pool.allocate(3)
        arr = np.frombuffer(pool.allocate(16, alignment=8), dtype=np.int64)
        assert arr.size == 2
        assert pool.total_allocated == 19

    def test_invalid_requests(self) -> None:
        """Test argument validation."""
        pool = MemoryPool(chunk_size=64)
        with pytest.raises(InvalidParameterError):
            pool.allocate(-1)
        with pytest.raises(InvalidParameterError):
            pool.allocate(8, alignment=3)
        with pytest.raises(InvalidParameterError):
            MemoryPool(chunk_size=0)

    def test_limit(self) -> None:
        """Test the capacity cap."""
        pool = MemoryPool(chunk_size=64, max_bytes=100)
        pool.allocate(64)
        with pytest.raises(PoolExhaustedError):
            pool.allocate(64)

    def test_reset(self) -> None:
        """Test that reset releases everything."""
        pool = MemoryPool(chunk_size=64, thread_safe=True)
        assert pool.thread_safe is True
        pool.allocate(32)
        pool.reset()
        assert pool.chunks_count == 0
        assert pool.total_allocated == 0
        assert pool.num_allocations == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
