"""Report parsers: one grammar combined with an execution mode."""

import time
from pathlib import Path
from typing import Optional, Union

from ...config import get_logger
from ...config.schemas import ParserSettings
from ...core.database import CoverageDatabase
from ...core.errors import InvalidParameterError
from ...core.mapped_file import MappedFile
from ...core.memory_pool import MemoryPool
from ...core.models import ParserMode, ReportKind
from ...engine.parallel import ChunkedParallelEngine, PerformanceStats
from .base import GrammarRegistry, parse_mapped

logger = get_logger(__name__)


class CoverageParser:
    """Parse one report type into a CoverageDatabase.

    A sequential parser scans the whole file on the calling thread. A
    chunked parser hands the file to a ChunkedParallelEngine, which itself
    falls back to a sequential scan below ``parallel_threshold_bytes``. Both
    modes produce the same database for the same file.

    Args:
        kind: Report type to parse
        mode: Sequential or chunked execution
        settings: Parser settings (defaults apply when omitted)

    Raises:
        InvalidParameterError: Unknown kind, or chunked mode for a grammar
            that cannot be split
    """

    def __init__(
        self,
        kind: Union[ReportKind, str],
        mode: ParserMode = ParserMode.SEQUENTIAL,
        settings: Optional[ParserSettings] = None,
    ) -> None:
        self.grammar = GrammarRegistry.get_grammar(kind)
        self.kind = self.grammar.kind
        self.mode = ParserMode(mode)
        self.settings = settings or ParserSettings()
        self.last_stats: Optional[PerformanceStats] = None
        self._engine: Optional[ChunkedParallelEngine] = None

        if self.mode is ParserMode.CHUNKED:
            self._engine = ChunkedParallelEngine(self.grammar, self.settings)

    @property
    def is_chunked(self) -> bool:
        return self.mode is ParserMode.CHUNKED

    @property
    def engine(self) -> Optional[ChunkedParallelEngine]:
        return self._engine

    def parse(self, path: Union[str, Path], db: CoverageDatabase) -> PerformanceStats:
        """Parse a report file into ``db``.

        The database is only modified if the whole file parses.

        Args:
            path: Report file
            db: Target database

        Returns:
            Statistics of this parse

        Raises:
            CoverageFileNotFoundError: File is absent or unreadable
            InvalidFormatError: A record violates the report grammar
        """
        if db is None:
            raise InvalidParameterError("Database must not be None")
        if not path:
            raise InvalidParameterError("File name must not be empty")

        logger.debug(f"Parsing {self.kind.value} report {path} ({self.mode.value})")
        if self._engine is not None:
            stats = self._engine.parse(path, db)
        else:
            stats = self._parse_sequential(path, db)
        self.last_stats = stats
        return stats

    def _parse_sequential(self, path: Union[str, Path], db: CoverageDatabase) -> PerformanceStats:
        started = time.perf_counter()
        pool = MemoryPool(self.settings.pool_chunk_size)

        # Stateful grammars keep per-parse state, so each call gets its own
        grammar = GrammarRegistry.get_grammar(self.kind)
        with MappedFile(path) as mapped:
            batch = parse_mapped(grammar, mapped, pool=pool)
            size = mapped.size()

        batch.commit(db)

        stats = PerformanceStats(
            file_size_bytes=size,
            lines_processed=batch.lines_processed,
            records_parsed=len(batch),
            groups_parsed=len(batch.groups),
            memory_allocated=pool.total_allocated,
            pool_allocations=pool.num_allocations,
            chunks=1 if size else 0,
        )
        return stats.finalize(time.perf_counter() - started)

    def close(self) -> None:
        self._engine = None
        self.last_stats = None

    def __repr__(self) -> str:
        return f"CoverageParser(kind={self.kind.value!r}, mode={self.mode.value!r})"
