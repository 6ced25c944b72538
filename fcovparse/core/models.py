"""Core data models for fcovparse."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ReportKind(str, Enum):
    """Supported report types."""
    DASHBOARD = "dashboard"
    GROUPS = "groups"
    HIERARCHY = "hierarchy"
    MODLIST = "modlist"
    ASSERT = "assert"


class ParserMode(str, Enum):
    """Execution strategy of a parser."""
    SEQUENTIAL = "sequential"
    CHUNKED = "chunked"


class AssertStatus(str, Enum):
    """Assertion status column values."""
    PASS = "PASS"
    FAIL = "FAIL"
    COVERED = "COVERED"
    UNCOVERED = "UNCOVERED"
    UNREACHABLE = "UNREACHABLE"


@dataclass
class CoverageMetrics:
    """Covered/expected counts with the reported score."""
    covered: int = 0
    expected: int = 0
    score: float = 0.0

    @property
    def is_full(self) -> bool:
        return self.expected > 0 and self.covered >= self.expected

    def __str__(self) -> str:
        return f"Coverage: {self.covered}/{self.expected} ({self.score:.2f}%)"


@dataclass
class CoverageGroup:
    """Functional coverage group from a groups report."""
    name: str
    coverage: CoverageMetrics = field(default_factory=CoverageMetrics)
    instances: float = 0.0
    weight: int = 1
    goal: int = 100
    at_least: int = 1
    per_instance: int = 0
    auto_bin_max: int = 64
    print_missing: int = 64
    comment: str = ""

    def __post_init__(self) -> None:
        # An empty group scores 0 regardless of the reported column
        if self.coverage.expected == 0:
            self.coverage.score = 0.0

    @property
    def key(self) -> str:
        return self.name

    @property
    def is_empty(self) -> bool:
        return self.coverage.expected == 0

    def meets_goal(self) -> bool:
        """Check whether the group score reaches its goal."""
        return self.coverage.score >= self.goal

    def weighted_score(self) -> float:
        return self.coverage.score * self.weight / 100.0

    def __str__(self) -> str:
        return f"Group: {self.name} - {self.coverage}"


@dataclass
class HierarchyInstance:
    """One instantiation of a module in the design tree."""
    instance_path: str
    module_name: str = ""
    depth_level: int = 0
    total_score: float = 0.0
    coverage: CoverageMetrics = field(default_factory=CoverageMetrics)

    @classmethod
    def from_path(
        cls,
        instance_path: str,
        total_score: float = 0.0,
        coverage: Optional[CoverageMetrics] = None,
    ) -> "HierarchyInstance":
        """Build an instance whose module name and depth derive from its path."""
        return cls(
            instance_path=instance_path,
            module_name=instance_path.rsplit(".", 1)[-1],
            depth_level=instance_path.count("."),
            total_score=total_score,
            coverage=coverage or CoverageMetrics(),
        )

    @property
    def key(self) -> str:
        return self.instance_path

    @property
    def parent_path(self) -> str:
        """Path of the enclosing instance ("" at the root)."""
        head, sep, _ = self.instance_path.rpartition(".")
        return head if sep else ""

    @property
    def path_components(self) -> list[str]:
        return [part for part in self.instance_path.split(".") if part]


@dataclass
class ModuleEntry:
    """Module definition from a module list report."""
    name: str
    total_score: float = 0.0
    coverage: CoverageMetrics = field(default_factory=CoverageMetrics)

    @property
    def key(self) -> str:
        return self.name


@dataclass
class AssertRecord:
    """Assertion coverage record."""
    name: str
    status: AssertStatus
    hits: int = 0
    instance_path: str = ""
    file_location: str = ""
    line_number: int = 0

    @property
    def key(self) -> str:
        return self.name

    @property
    def is_covered(self) -> bool:
        return self.status in (AssertStatus.PASS, AssertStatus.COVERED) and self.hits > 0

    @property
    def is_critical(self) -> bool:
        return self.status == AssertStatus.FAIL

    @property
    def pass_count(self) -> int:
        return self.hits if self.status in (AssertStatus.PASS, AssertStatus.COVERED) else 0

    @property
    def fail_count(self) -> int:
        return 1 if self.status == AssertStatus.FAIL else 0

    @property
    def unreachable_count(self) -> int:
        return 1 if self.status == AssertStatus.UNREACHABLE else 0

    @property
    def full_location(self) -> str:
        """FILE:LINE, or just the file when no line is known."""
        if not self.file_location:
            return ""
        if self.line_number:
            return f"{self.file_location}:{self.line_number}"
        return self.file_location


@dataclass
class DashboardData:
    """Header and summary of a dashboard report."""
    date: str = ""
    user: str = ""
    version: str = ""
    command_line: str = ""
    total_score: float = 0.0
    metrics: dict[str, CoverageMetrics] = field(default_factory=dict)
    num_hierarchical_instances: int = 0
    top_instances: list[HierarchyInstance] = field(default_factory=list)

    def get_metric(self, name: str) -> Optional[CoverageMetrics]:
        """Find a summary metric column by name (case-insensitive)."""
        return self.metrics.get(name.upper())

    def is_valid(self) -> bool:
        return bool(self.date or self.version or self.metrics or self.total_score)


@dataclass
class CoverageStatistics:
    """Aggregate statistics over the coverage groups of a database."""
    overall_coverage_score: float = 0.0
    total_coverage_points: int = 0
    covered_points: int = 0
    num_zero_coverage_groups: int = 0
    num_full_coverage_groups: int = 0
