"""Grammar for URG dashboard reports."""

from enum import Enum
from typing import Optional

from ...config import get_logger
from ...core import scanner
from ...core.models import CoverageMetrics, DashboardData, HierarchyInstance, ReportKind
from .base import (
    GrammarRegistry,
    RecordBatch,
    is_metric_row,
    parse_metric_columns,
    parse_metric_row,
    parse_score,
)

logger = get_logger(__name__)

HEADER_FIELDS = {
    b"Date:": "date",
    b"User:": "user",
    b"Version:": "version",
    b"Tool:": "version",
    b"Command line:": "command_line",
}


class _Section(Enum):
    NONE = "none"
    SUMMARY_HEADER = "summary_header"
    SUMMARY_ROW = "summary_row"
    INSTANCE_HEADER = "instance_header"
    INSTANCES = "instances"


class DashboardGrammar:
    """Parse the dashboard header, total summary and top-level instances.

    A dashboard looks like::

        Date: Mon Sep  8 14:06:30 2025
        User: test_engineer
        Version: U-2023.03-SP2-9
        Command line: urg -full64 -dir sim.vdb -report dashboard

        Total Coverage Summary
        SCORE   ASSERT               GROUP
         75.32   68.45 12584/18392   82.19 25847/31456

        Total: 75.32
        Number of Hierarchical instances processed: 2847

        Hierarchical coverage data for top-level instances
        SCORE   ASSERT               NAME
         85.67   85.67 456/532      testbench.cpu_subsystem

    The summary row's meaning depends on the preceding ``SCORE`` header, so
    this grammar keeps state between lines and is never split into chunks.
    Unrecognised lines are ignored and missing fields stay empty; numbers in
    recognised lines are parsed strictly.
    """

    kind = ReportKind.DASHBOARD
    splittable = False

    def __init__(self) -> None:
        self._section = _Section.NONE
        self._columns: list[str] = []
        self._data: Optional[DashboardData] = None

    def begin(self, batch: RecordBatch) -> None:
        self._section = _Section.NONE
        self._columns = []
        self._data = DashboardData()

    def finish(self, batch: RecordBatch) -> None:
        batch.dashboard = self._data
        if self._data is not None and not self._data.is_valid():
            logger.warning("Dashboard report contained no recognisable summary data")
        self._data = None

    def parse_line(self, line: bytes, batch: RecordBatch) -> None:
        data = self._data
        stripped = line.strip()

        for prefix, attr in HEADER_FIELDS.items():
            if stripped.startswith(prefix):
                setattr(data, attr, scanner.decode(stripped[len(prefix):].strip()))
                return

        if stripped.startswith(b"Total Coverage Summary"):
            self._section = _Section.SUMMARY_HEADER
            return
        if stripped.startswith(b"Hierarchical coverage data for top-level instances") or (
            stripped.startswith(b"Hierarchical Coverage:")
        ):
            self._section = _Section.INSTANCE_HEADER
            return
        if stripped.startswith(b"Total:"):
            data.total_score = parse_score(stripped[len(b"Total:"):].strip())
            self._section = _Section.NONE
            return
        if stripped.startswith(b"Number of Hierarchical instances processed:"):
            value = stripped.rpartition(b":")[2].strip()
            data.num_hierarchical_instances = scanner.parse_uint(value)
            return

        tokens = scanner.tokenize(stripped)
        if tokens[0] == b"SCORE":
            self._on_score_header(tokens)
            return

        if self._section is _Section.SUMMARY_ROW and scanner.starts_with_digit(tokens[0]):
            self._parse_summary_row(tokens)
            self._section = _Section.NONE
        elif self._section in (_Section.INSTANCES, _Section.INSTANCE_HEADER):
            self._parse_instance_row(tokens)
        else:
            self._parse_coverage_line(stripped)

    def _on_score_header(self, tokens: list[bytes]) -> None:
        if self._section is _Section.SUMMARY_HEADER:
            self._columns = [scanner.decode(token).upper() for token in tokens[1:]]
            self._section = _Section.SUMMARY_ROW
        elif self._section is _Section.INSTANCE_HEADER:
            self._section = _Section.INSTANCES

    def _parse_summary_row(self, tokens: list[bytes]) -> None:
        data = self._data
        data.total_score = parse_score(tokens[0])

        # "--" columns were not collected and are left out of the metrics
        for column, metrics in zip(self._columns, parse_metric_columns(tokens[1:])):
            if metrics is not None:
                data.metrics[column] = metrics

    def _parse_instance_row(self, tokens: list[bytes]) -> None:
        if is_metric_row(tokens):
            total_score, coverage, path = parse_metric_row(tokens)
            self._data.top_instances.append(
                HierarchyInstance.from_path(path, total_score, coverage)
            )
            self._section = _Section.INSTANCES
        elif len(tokens) == 2 and tokens[1].endswith(b"%"):
            self._data.top_instances.append(
                HierarchyInstance.from_path(
                    scanner.decode(tokens[0]), parse_score(tokens[1])
                )
            )
            self._section = _Section.INSTANCES
        elif self._section is _Section.INSTANCES:
            self._section = _Section.NONE

    def _parse_coverage_line(self, stripped: bytes) -> None:
        # "Total Coverage: 75.67%" / "Line Coverage: 85.23%"
        label, sep, value = stripped.partition(b":")
        if not sep or not label.endswith(b"Coverage") or not value.strip().endswith(b"%"):
            return

        score = parse_score(value.strip())
        name = scanner.decode(label[: -len(b"Coverage")].strip()).upper()
        if name == "TOTAL":
            self._data.total_score = score
        elif name:
            self._data.metrics[name] = CoverageMetrics(score=score)


GrammarRegistry.register(ReportKind.DASHBOARD, DashboardGrammar)
