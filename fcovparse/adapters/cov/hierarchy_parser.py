"""Grammar for URG design hierarchy reports."""

from ...core import scanner
from ...core.models import HierarchyInstance, ReportKind
from .base import GrammarRegistry, RecordBatch, is_metric_row, parse_metric_row, parse_score


class HierarchyGrammar:
    """Parse hierarchy instance rows.

    Full rows look like ``85.50  85.50 1234/1445  --  top.cpu``; the counts
    of all collected metric columns are summed and ``--`` marks a metric that
    was not collected. Compact rows are ``top.cpu 82.34%`` (leading
    indentation is ignored) and carry no counts. Module name and depth are
    derived from the dotted instance path.
    """

    kind = ReportKind.HIERARCHY
    splittable = True

    def begin(self, batch: RecordBatch) -> None:
        pass

    def finish(self, batch: RecordBatch) -> None:
        pass

    def parse_line(self, line: bytes, batch: RecordBatch) -> None:
        tokens = scanner.tokenize(line)

        if is_metric_row(tokens):
            total_score, coverage, path = parse_metric_row(tokens)
            batch.hierarchy.append(HierarchyInstance.from_path(path, total_score, coverage))
        elif (
            len(tokens) == 2
            and tokens[1].endswith(b"%")
            and not scanner.starts_with_digit(tokens[0])
        ):
            batch.hierarchy.append(
                HierarchyInstance.from_path(scanner.decode(tokens[0]), parse_score(tokens[1]))
            )


GrammarRegistry.register(ReportKind.HIERARCHY, HierarchyGrammar)
