"""Grammar for URG module list reports."""

from ...core import scanner
from ...core.models import CoverageMetrics, ModuleEntry, ReportKind
from .base import (
    GrammarRegistry,
    RecordBatch,
    check_counts,
    is_metric_row,
    parse_metric_row,
    parse_score,
)


class ModuleListGrammar:
    """Parse module definition rows.

    Full rows share the hierarchy shape (``95.67  95.67 234/245  cpu_core``).
    Compact rows are ``NAME... COVERED/EXPECTED PCT%`` where the name may
    contain spaces or start with a digit, so they are recognised first.
    """

    kind = ReportKind.MODLIST
    splittable = True

    def begin(self, batch: RecordBatch) -> None:
        pass

    def finish(self, batch: RecordBatch) -> None:
        pass

    def parse_line(self, line: bytes, batch: RecordBatch) -> None:
        tokens = scanner.tokenize(line)

        if len(tokens) >= 3 and tokens[-1].endswith(b"%") and b"/" in tokens[-2]:
            covered, expected = scanner.parse_ratio(tokens[-2])
            check_counts(covered, expected)
            score = parse_score(tokens[-1])
            batch.modules.append(
                ModuleEntry(
                    name=scanner.decode(b" ".join(tokens[:-2])),
                    total_score=score,
                    coverage=CoverageMetrics(covered, expected, score),
                )
            )
        elif is_metric_row(tokens):
            total_score, coverage, name = parse_metric_row(tokens)
            batch.modules.append(ModuleEntry(name=name, total_score=total_score, coverage=coverage))


GrammarRegistry.register(ReportKind.MODLIST, ModuleListGrammar)
