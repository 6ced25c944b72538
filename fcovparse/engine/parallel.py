"""Chunked parallel parsing over a memory-mapped file."""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from tqdm import tqdm

from ..adapters.cov.base import RecordBatch, RecordGrammar, parse_mapped, scan_range
from ..config import get_logger
from ..config.schemas import ParserSettings
from ..core import scanner
from ..core.database import CoverageDatabase
from ..core.errors import InvalidParameterError
from ..core.mapped_file import MappedFile
from ..core.memory_pool import MemoryPool

logger = get_logger(__name__)


class EngineState(str, Enum):
    """Lifecycle of one parse invocation."""
    IDLE = "idle"
    MAPPING = "mapping"
    CHUNKING = "chunking"
    PARSING = "parsing"
    MERGING = "merging"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class Chunk:
    """Line-aligned byte range ``[start, end)`` of a file."""
    index: int
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start


@dataclass
class PerformanceStats:
    """Measurements of the most recent parse."""
    parse_time_seconds: float = 0.0
    file_size_bytes: int = 0
    lines_processed: int = 0
    records_parsed: int = 0
    groups_parsed: int = 0
    memory_allocated: int = 0
    pool_allocations: int = 0
    threads_used: int = 1
    chunks: int = 1
    throughput_mb_per_sec: float = 0.0

    def finalize(self, elapsed: float) -> "PerformanceStats":
        self.parse_time_seconds = elapsed
        if elapsed > 0:
            self.throughput_mb_per_sec = self.file_size_bytes / (1024 * 1024) / elapsed
        return self


@dataclass
class _ChunkResult:
    batch: RecordBatch
    pool_bytes: int
    pool_allocations: int


def compute_chunks(buffer, size: int, num_threads: int) -> list[Chunk]:
    """Split ``[0, size)`` into at most ``num_threads`` line-aligned chunks.

    Internal boundaries sit at ``i * size // num_threads`` and are retracted
    to just after the nearest preceding newline. The first chunk starts at 0,
    the last ends at ``size`` and empty chunks are dropped.

    Args:
        buffer: File contents
        size: Number of bytes to split
        num_threads: Desired number of chunks (minimum 1)

    Returns:
        Chunks in file order, re-indexed from 0
    """
    num_threads = max(1, num_threads)
    boundaries = [0]
    for i in range(1, num_threads):
        target = i * size // num_threads
        aligned = scanner.rfind_byte(buffer, scanner.NEWLINE, 0, target) + 1
        boundaries.append(max(aligned, boundaries[-1]))
    boundaries.append(size)

    chunks = []
    for start, end in zip(boundaries, boundaries[1:]):
        if end > start:
            chunks.append(Chunk(index=len(chunks), start=start, end=end))
    return chunks


class ChunkedParallelEngine:
    """Parse one file with a splittable grammar on a pool of worker threads.

    Each chunk is scanned into its own RecordBatch with its own MemoryPool;
    nothing shared is mutated until every chunk has finished. Batches are
    then merged into the database in chunk order, which gives the same
    result as a sequential scan. If any chunk fails, no batch is merged and
    the error of the first failing chunk is raised.

    Args:
        grammar: Grammar with ``splittable = True``
        settings: Thread count, threshold and pool settings

    Raises:
        InvalidParameterError: If the grammar cannot be split
    """

    def __init__(self, grammar: RecordGrammar, settings: Optional[ParserSettings] = None) -> None:
        if not grammar.splittable:
            raise InvalidParameterError(
                f"{grammar.kind.value} reports cannot be parsed in parallel chunks"
            )
        self.grammar = grammar
        self.settings = settings or ParserSettings()
        self.state = EngineState.IDLE
        self.last_chunks: list[Chunk] = []

    def parse(self, path: Union[str, Path], db: CoverageDatabase) -> PerformanceStats:
        """Parse ``path`` into ``db``.

        Args:
            path: Report file
            db: Database receiving the records on success

        Returns:
            Statistics of this parse

        Raises:
            CoverageFileNotFoundError: The file cannot be mapped
            CoverageParserError: A chunk failed to parse
        """
        started = time.perf_counter()
        self.state = EngineState.MAPPING
        try:
            with MappedFile(path) as mapped:
                size = mapped.size()
                stats = PerformanceStats(file_size_bytes=size)

                if size < self.settings.parallel_threshold_bytes:
                    logger.debug(
                        f"{mapped.path.name}: {size} bytes below threshold, parsing sequentially"
                    )
                    batch = self._parse_sequential(mapped, stats)
                else:
                    batch = self._parse_chunked(mapped, stats)

                self.state = EngineState.MERGING
                batch.commit(db)
        except Exception:
            self.state = EngineState.FAILED
            raise

        self.state = EngineState.DONE
        stats.lines_processed = batch.lines_processed
        stats.records_parsed = len(batch)
        stats.groups_parsed = len(batch.groups)
        stats.finalize(time.perf_counter() - started)
        logger.debug(
            f"Parsed {stats.records_parsed} records from {stats.file_size_bytes} bytes "
            f"in {stats.parse_time_seconds:.3f}s using {stats.threads_used} thread(s)"
        )
        return stats

    def _parse_sequential(self, mapped: MappedFile, stats: PerformanceStats) -> RecordBatch:
        self.state = EngineState.PARSING
        pool = MemoryPool(self.settings.pool_chunk_size)
        batch = parse_mapped(self.grammar, mapped, pool=pool)
        self.last_chunks = [Chunk(0, 0, mapped.size())] if mapped.size() else []
        stats.chunks = len(self.last_chunks)
        stats.memory_allocated = pool.total_allocated
        stats.pool_allocations = pool.num_allocations
        return batch

    def _parse_chunked(self, mapped: MappedFile, stats: PerformanceStats) -> RecordBatch:
        self.state = EngineState.CHUNKING
        num_threads = self.settings.resolved_threads()
        chunks = compute_chunks(mapped.buffer, mapped.size(), num_threads)
        self.last_chunks = chunks
        stats.threads_used = max(1, min(num_threads, len(chunks)))
        stats.chunks = len(chunks)
        logger.debug(f"{mapped.path.name}: {len(chunks)} chunk(s) on {stats.threads_used} thread(s)")

        self.state = EngineState.PARSING
        results: list[Optional[_ChunkResult]] = [None] * len(chunks)
        errors: dict[int, BaseException] = {}

        with ThreadPoolExecutor(max_workers=stats.threads_used) as executor, tqdm(
            total=len(chunks),
            desc=f"Parsing {mapped.path.name}",
            unit="chunk",
            leave=False,
            disable=not self.settings.show_progress,
        ) as pbar:
            futures = {
                executor.submit(self._parse_chunk, mapped.buffer, chunk): chunk
                for chunk in chunks
            }
            # Every future is awaited before any error is raised
            for future in as_completed(futures):
                chunk = futures[future]
                try:
                    results[chunk.index] = future.result()
                except Exception as e:
                    errors[chunk.index] = e
                pbar.update(1)

        if errors:
            first = min(errors)
            logger.debug(
                f"{len(errors)} of {len(chunks)} chunk(s) failed; first failure in chunk {first}"
            )
            raise errors[first]

        self.state = EngineState.MERGING
        merged = RecordBatch()
        for result in results:
            merged.extend(result.batch)
            stats.memory_allocated += result.pool_bytes
            stats.pool_allocations += result.pool_allocations
        return merged

    def _parse_chunk(self, buffer, chunk: Chunk) -> _ChunkResult:
        pool = MemoryPool(self.settings.pool_chunk_size)
        batch = scan_range(self.grammar, buffer, chunk.start, chunk.end, RecordBatch(), pool=pool)
        return _ChunkResult(batch, pool.total_allocated, pool.num_allocations)
