"""Test core data models."""

import pytest
from fcovparse.core.models import (
    AssertRecord,
    AssertStatus,
    CoverageGroup,
    CoverageMetrics,
    DashboardData,
    HierarchyInstance,
    ModuleEntry,
    ReportKind,
)


class TestCoverageModels:
    """Test coverage-related models."""

    def test_coverage_metrics_defaults(self) -> None:
        """Test CoverageMetrics with default values."""
        metrics = CoverageMetrics()
        assert metrics.covered == 0
        assert metrics.expected == 0
        assert metrics.score == 0.0
        assert metrics.is_full is False

    def test_coverage_metrics_full(self) -> None:
        """Test full coverage detection."""
        assert CoverageMetrics(covered=10, expected=10, score=100.0).is_full is True
        assert CoverageMetrics(covered=9, expected=10, score=90.0).is_full is False

    def test_coverage_group(self) -> None:
        """Test CoverageGroup fields and derived values."""
        group = CoverageGroup(
            name="tb.cpu.alu::arithmetic_ops",
            coverage=CoverageMetrics(covered=45, expected=50, score=90.0),
            weight=3,
            goal=95,
        )
        assert group.key == "tb.cpu.alu::arithmetic_ops"
        assert group.is_empty is False
        assert group.meets_goal() is False
        assert group.weighted_score() == pytest.approx(2.7)

    def test_coverage_group_zero_expected(self) -> None:
        """Test that a group with nothing expected scores zero."""
        group = CoverageGroup(name="empty", coverage=CoverageMetrics(0, 0, 55.0))
        assert group.is_empty is True
        assert group.coverage.score == 0.0

    def test_coverage_group_meets_goal(self) -> None:
        """Test goal comparison."""
        group = CoverageGroup(name="g", coverage=CoverageMetrics(95, 100, 95.0), goal=95)
        assert group.meets_goal() is True


class TestHierarchyModels:
    """Test hierarchy and module models."""

    def test_from_path_derives_module_and_depth(self) -> None:
        """Test that module name and depth come from the path."""
        inst = HierarchyInstance.from_path("top.cpu_subsystem.core0.alu", 92.15)
        assert inst.module_name == "alu"
        assert inst.depth_level == 3
        assert inst.total_score == 92.15
        assert inst.key == "top.cpu_subsystem.core0.alu"

    def test_root_instance(self) -> None:
        """Test a top-level instance."""
        inst = HierarchyInstance.from_path("top")
        assert inst.module_name == "top"
        assert inst.depth_level == 0
        assert inst.parent_path == ""
        assert inst.path_components == ["top"]

    def test_parent_path(self) -> None:
        """Test parent path and components."""
        inst = HierarchyInstance.from_path("top.memory.cache")
        assert inst.parent_path == "top.memory"
        assert inst.path_components == ["top", "memory", "cache"]

    def test_module_entry(self) -> None:
        """Test ModuleEntry."""
        module = ModuleEntry(name="cpu_core", total_score=95.67,
                             coverage=CoverageMetrics(234, 245, 95.67))
        assert module.key == "cpu_core"
        assert module.coverage.covered == 234


class TestAssertRecord:
    """Test assertion records."""

    def test_pass_record(self) -> None:
        """Test a passing assertion with hits."""
        record = AssertRecord(
            name="check_valid_transaction",
            status=AssertStatus.PASS,
            hits=1234,
            instance_path="tb.cpu.alu",
            file_location="alu.sv",
            line_number=45,
        )
        assert record.is_covered is True
        assert record.is_critical is False
        assert record.pass_count == 1234
        assert record.fail_count == 0
        assert record.full_location == "alu.sv:45"

    def test_fail_record(self) -> None:
        """Test a failing assertion."""
        record = AssertRecord(name="check_data_integrity", status=AssertStatus.FAIL)
        assert record.is_covered is False
        assert record.is_critical is True
        assert record.fail_count == 1
        assert record.full_location == ""

    def test_unreachable_record(self) -> None:
        """Test an unreachable assertion."""
        record = AssertRecord(name="dead", status=AssertStatus.UNREACHABLE)
        assert record.unreachable_count == 1
        assert record.is_covered is False

    def test_covered_without_hits(self) -> None:
        """Test that COVERED with zero hits does not count as covered."""
        record = AssertRecord(name="a", status=AssertStatus.COVERED, hits=0)
        assert record.is_covered is False

    def test_location_without_line(self) -> None:
        """Test full location when no line number is known."""
        record = AssertRecord(name="a", status=AssertStatus.PASS, file_location="a.sv")
        assert record.full_location == "a.sv"


class TestDashboardData:
    """Test dashboard model."""

    def test_empty_dashboard_invalid(self) -> None:
        """Test that an empty dashboard is not valid."""
        assert DashboardData().is_valid() is False

    def test_metric_lookup_case_insensitive(self) -> None:
        """Test metric lookup by name."""
        dashboard = DashboardData(metrics={"ASSERT": CoverageMetrics(1, 2, 50.0)})
        assert dashboard.get_metric("assert").covered == 1
        assert dashboard.get_metric("group") is None
        assert dashboard.is_valid() is True

    def test_report_kind_values(self) -> None:
        """Test report kinds can be built from strings."""
        assert ReportKind("groups") is ReportKind.GROUPS
        assert ReportKind("modlist") is ReportKind.MODLIST


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
