"""Grammar for URG functional coverage group reports."""

from ...core import scanner
from ...core.models import CoverageGroup, CoverageMetrics, ReportKind
from .base import GrammarRegistry, RecordBatch, check_counts, parse_score

# COVERED EXPECTED SCORE INSTANCES WEIGHT GOAL AT_LEAST PER_INSTANCE AUTO_BIN_MAX PRINT_MISSING
NUMERIC_COLUMNS = 10
MIN_FULL_ROW_TOKENS = NUMERIC_COLUMNS + 1


class GroupsGrammar:
    """Parse coverage group rows.

    Two row shapes are recognised; everything else (titles, headers, the
    seven-column summary row, separators) is skipped:

        45  50  90.00  2.00  3  95  2  1  128  32  High priority group  tb.cpu.alu::arithmetic_ops
        test_group1  45/50  90.00%

    The full row carries ten numeric columns, an optional free-text comment
    and the group name as the last token. The compact row is
    ``NAME COVERED/EXPECTED PCT%``.
    """

    kind = ReportKind.GROUPS
    splittable = True

    def begin(self, batch: RecordBatch) -> None:
        pass

    def finish(self, batch: RecordBatch) -> None:
        pass

    def parse_line(self, line: bytes, batch: RecordBatch) -> None:
        tokens = scanner.tokenize(line)

        if len(tokens) >= MIN_FULL_ROW_TOKENS and scanner.starts_with_digit(tokens[0]):
            batch.groups.append(self._parse_full_row(tokens))
        elif len(tokens) == 3 and b"/" in tokens[1] and tokens[2].endswith(b"%"):
            batch.groups.append(self._parse_compact_row(tokens))

    def _parse_full_row(self, tokens: list[bytes]) -> CoverageGroup:
        covered = scanner.parse_uint(tokens[0])
        expected = scanner.parse_uint(tokens[1])
        check_counts(covered, expected)

        comment = b" ".join(tokens[NUMERIC_COLUMNS:-1])
        return CoverageGroup(
            name=scanner.decode(tokens[-1]),
            coverage=CoverageMetrics(covered, expected, parse_score(tokens[2])),
            instances=scanner.parse_double(tokens[3]),
            weight=scanner.parse_uint(tokens[4]),
            goal=scanner.parse_uint(tokens[5]),
            at_least=scanner.parse_uint(tokens[6]),
            per_instance=scanner.parse_uint(tokens[7]),
            auto_bin_max=scanner.parse_uint(tokens[8]),
            print_missing=scanner.parse_uint(tokens[9]),
            comment=scanner.decode(comment),
        )

    def _parse_compact_row(self, tokens: list[bytes]) -> CoverageGroup:
        covered, expected = scanner.parse_ratio(tokens[1])
        check_counts(covered, expected)
        return CoverageGroup(
            name=scanner.decode(tokens[0]),
            coverage=CoverageMetrics(covered, expected, parse_score(tokens[2])),
        )


GrammarRegistry.register(ReportKind.GROUPS, GroupsGrammar)
