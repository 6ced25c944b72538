"""Grammar for assertion coverage reports."""

from ...core import scanner
from ...core.models import AssertRecord, AssertStatus, ReportKind
from .base import GrammarRegistry, RecordBatch

STATUS_TOKENS = {status.value.encode(): status for status in AssertStatus}


class AssertGrammar:
    """Parse assertion rows.

    Row shape: ``STATUS HITS|COVERED/EXPECTED NAME [INSTANCE] [FILE:LINE]``,
    for example::

        PASS     1234  check_valid_transaction  tb.cpu.alu  alu.sv:45
        COVERED  1/1   simple_assertion         tb.simple   simple.sv:10

    Lines whose first token is not a known status (titles, the column
    header) are skipped.
    """

    kind = ReportKind.ASSERT
    splittable = True

    def begin(self, batch: RecordBatch) -> None:
        pass

    def finish(self, batch: RecordBatch) -> None:
        pass

    def parse_line(self, line: bytes, batch: RecordBatch) -> None:
        tokens = scanner.tokenize(line)
        if len(tokens) < 3 or tokens[0] not in STATUS_TOKENS:
            return

        status = STATUS_TOKENS[tokens[0]]
        if b"/" in tokens[1]:
            hits, _ = scanner.parse_ratio(tokens[1])
        else:
            hits = scanner.parse_uint(tokens[1])

        record = AssertRecord(name=scanner.decode(tokens[2]), status=status, hits=hits)

        rest = tokens[3:]
        if rest and is_location(rest[-1]):
            file_part, _, line_part = rest.pop().rpartition(b":")
            record.file_location = scanner.decode(file_part)
            record.line_number = scanner.parse_uint(line_part)
        if rest:
            record.instance_path = scanner.decode(rest[0])

        batch.asserts.append(record)


def is_location(token: bytes) -> bool:
    """True for ``FILE:LINE``; scoped names such as ``tb.pkg::inst`` are not locations."""
    file_part, sep, line_part = token.rpartition(b":")
    return bool(sep and file_part and line_part.isdigit()) and not file_part.endswith(b":")


GrammarRegistry.register(ReportKind.ASSERT, AssertGrammar)
