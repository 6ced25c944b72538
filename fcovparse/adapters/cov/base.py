"""Shared contract of the report grammars and the line-scanning driver."""

from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable

from ...config import get_logger
from ...core import scanner
from ...core.database import CoverageDatabase
from ...core.errors import InvalidFormatError, InvalidParameterError
from ...core.mapped_file import MappedFile
from ...core.memory_pool import MemoryPool
from ...core.models import (
    AssertRecord,
    CoverageGroup,
    CoverageMetrics,
    DashboardData,
    HierarchyInstance,
    ModuleEntry,
    ReportKind,
)

logger = get_logger(__name__)


@dataclass
class RecordBatch:
    """Records collected from one byte range, not yet visible in a database.

    A parse fills a batch and commits it only after the whole file has been
    scanned successfully, so a failing parse never touches the database.
    """
    groups: list[CoverageGroup] = field(default_factory=list)
    hierarchy: list[HierarchyInstance] = field(default_factory=list)
    modules: list[ModuleEntry] = field(default_factory=list)
    asserts: list[AssertRecord] = field(default_factory=list)
    dashboard: Optional[DashboardData] = None
    lines_processed: int = 0

    def __len__(self) -> int:
        return len(self.groups) + len(self.hierarchy) + len(self.modules) + len(self.asserts)

    def extend(self, other: "RecordBatch") -> None:
        """Append another batch's records after this batch's records."""
        self.groups.extend(other.groups)
        self.hierarchy.extend(other.hierarchy)
        self.modules.extend(other.modules)
        self.asserts.extend(other.asserts)
        if other.dashboard is not None:
            self.dashboard = other.dashboard
        self.lines_processed += other.lines_processed

    def commit(self, db: CoverageDatabase) -> None:
        """Insert every record into ``db`` in collection order."""
        for group in self.groups:
            db.insert_group(group)
        for instance in self.hierarchy:
            db.insert_hierarchy_instance(instance)
        for module in self.modules:
            db.insert_module(module)
        for record in self.asserts:
            db.insert_assert(record)
        if self.dashboard is not None:
            db.set_dashboard(self.dashboard)


@runtime_checkable
class RecordGrammar(Protocol):
    """Line grammar of one report type.

    ``splittable`` grammars classify every line on its own, so any
    line-aligned byte range can be parsed independently. Grammars that carry
    state between lines must set it to False and are only run sequentially.
    """

    kind: ReportKind
    splittable: bool

    def begin(self, batch: RecordBatch) -> None:
        """Prepare for a new range."""
        ...

    def parse_line(self, line: bytes, batch: RecordBatch) -> None:
        """Classify one line and append any record it holds to ``batch``."""
        ...

    def finish(self, batch: RecordBatch) -> None:
        """Flush state after the last line of a range."""
        ...


class GrammarRegistry:
    """Registry of the available report grammars."""

    _grammars: dict[ReportKind, type] = {}

    @classmethod
    def register(cls, kind: ReportKind, grammar_class: type) -> None:
        """Register a grammar class.

        Args:
            kind: Report type handled by the grammar
            grammar_class: Class whose instances satisfy RecordGrammar
        """
        for attr in ("kind", "splittable", "begin", "parse_line", "finish"):
            if not hasattr(grammar_class, attr):
                raise TypeError(f"{grammar_class} does not implement RecordGrammar ({attr})")
        cls._grammars[kind] = grammar_class

    @classmethod
    def get_grammar(cls, kind: ReportKind) -> RecordGrammar:
        """Instantiate the grammar registered for ``kind``.

        Raises:
            InvalidParameterError: If no grammar is registered for the kind
        """
        try:
            grammar_class = cls._grammars[ReportKind(kind)]
        except (KeyError, ValueError):
            raise InvalidParameterError(f"No grammar registered for {kind!r}") from None
        return grammar_class()

    @classmethod
    def kinds(cls) -> list[ReportKind]:
        return list(cls._grammars)


def scan_range(
    grammar: RecordGrammar,
    buffer,
    start: int,
    end: int,
    batch: RecordBatch,
    pool: Optional[MemoryPool] = None,
) -> RecordBatch:
    """Run ``grammar`` over every line of ``buffer[start:end]``.

    ``start`` must be a line start. Blank lines are skipped. Format errors
    raised by the grammar are anchored to the byte offset of the offending
    line.

    Args:
        grammar: Grammar to drive
        buffer: Mapped file buffer
        start: First byte of the range
        end: One past the last byte of the range
        batch: Batch receiving the records
        pool: Optional arena for the newline index

    Returns:
        The filled batch
    """
    newlines = scanner.find_newlines(buffer, start, end, pool=pool)
    grammar.begin(batch)

    for line_start, line_end in scanner.iter_lines(buffer, start, end, newlines=newlines):
        batch.lines_processed += 1
        if scanner.skip_whitespace(buffer, line_start, line_end) == line_end:
            continue
        try:
            grammar.parse_line(buffer[line_start:line_end], batch)
        except InvalidFormatError as e:
            raise e.at(line_start) from None

    grammar.finish(batch)
    logger.debug(f"{grammar.kind.value}: scanned bytes [{start}, {end}), {len(batch)} records")
    return batch


def parse_mapped(
    grammar: RecordGrammar, mapped: MappedFile, pool: Optional[MemoryPool] = None
) -> RecordBatch:
    """Scan a whole mapped file sequentially into a fresh batch."""
    return scan_range(grammar, mapped.buffer, 0, mapped.size(), RecordBatch(), pool=pool)





# URG prints this in place of a metric that was not collected
MISSING_METRIC = b"--"


def is_metric_row(tokens: list[bytes]) -> bool:
    """True for candidate ``SCORE (PCT COVERED/EXPECTED | --)... NAME`` rows.

    A candidate starts with a number, ends with a name and holds at least one
    metric column between them. Whether its columns are well formed is
    checked by ``parse_metric_row``, which raises instead of skipping the
    row. A summary row ends in a ``COVERED/EXPECTED`` pair, not a name, and
    is never a candidate.
    """
    if len(tokens) < 3 or not scanner.starts_with_digit(tokens[0]):
        return False
    if b"/" in tokens[-1] or tokens[-1] == MISSING_METRIC:
        return False
    return any(b"/" in token or token == MISSING_METRIC for token in tokens[1:-1])


def parse_metric_columns(tokens: list[bytes]) -> list[Optional[CoverageMetrics]]:
    """Parse a run of metric columns; ``--`` columns come back as None.

    Raises:
        InvalidFormatError: A column is neither ``--`` nor ``PCT COVERED/EXPECTED``
    """
    columns: list[Optional[CoverageMetrics]] = []
    pos = 0
    while pos < len(tokens):
        if tokens[pos] == MISSING_METRIC:
            columns.append(None)
            pos += 1
            continue
        if pos + 1 >= len(tokens) or b"/" not in tokens[pos + 1]:
            raise InvalidFormatError(
                f"Expected PCT COVERED/EXPECTED or --, got {b' '.join(tokens[pos:pos + 2])!r}"
            )
        covered, expected = scanner.parse_ratio(tokens[pos + 1])
        check_counts(covered, expected)
        columns.append(CoverageMetrics(covered, expected, parse_score(tokens[pos])))
        pos += 2
    return columns


def parse_metric_row(tokens: list[bytes]) -> tuple[float, CoverageMetrics, str]:
    """Parse a metric row into (total score, summed metric columns, name).

    The counts of every collected column are added up; the score of the sum
    is ``100 * covered / expected`` (0 when nothing is expected).
    """
    total_score = parse_score(tokens[0])
    covered = expected = 0
    for column in parse_metric_columns(tokens[1:-1]):
        if column is not None:
            covered += column.covered
            expected += column.expected
    score = 100.0 * covered / expected if expected else 0.0
    return total_score, CoverageMetrics(covered, expected, score), scanner.decode(tokens[-1])


def parse_score(token: bytes) -> float:
    """Parse a percentage column (``75.5`` or ``75.5%``) within 0 to 100.

    Raises:
        InvalidFormatError: Malformed number or a value outside 0..100
    """
    score = scanner.parse_percent(token)
    if not 0.0 <= score <= 100.0:
        raise InvalidFormatError(f"Score {score} is outside 0..100")
    return score


def check_counts(covered: int, expected: int) -> None:
    """Reject rows that cover more points than they expect."""
    if expected > 0 and covered > expected:
        raise InvalidFormatError(f"Covered count {covered} exceeds expected count {expected}")
