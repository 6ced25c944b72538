"""Test the coverage database."""

import pytest
from fcovparse.config.schemas import ScoringWeights
from fcovparse.core.database import CoverageDatabase
from fcovparse.core.models import (
    AssertRecord,
    AssertStatus,
    CoverageGroup,
    CoverageMetrics,
    HierarchyInstance,
    ModuleEntry,
)


def _group(name: str, covered: int, expected: int, weight: int = 1) -> CoverageGroup:
    score = 100.0 * covered / expected if expected else 0.0
    return CoverageGroup(name=name, coverage=CoverageMetrics(covered, expected, score), weight=weight)


class TestCoverageDatabase:
    """Test insertion, lookup and validation."""

    def test_empty_database(self) -> None:
        """Test that a new database is empty and valid."""
        db = CoverageDatabase()
        assert db.is_empty()
        assert db.validate() is True
        assert db.calculate_overall_score() == 0.0
        assert db.get_num_groups() == 0
        assert db.get_num_hierarchy_instances() == 0
        assert db.get_num_modules() == 0
        assert db.get_num_asserts() == 0

    def test_upsert_replaces_fields(self) -> None:
        """Test that a duplicate name keeps one entry with the latest fields."""
        db = CoverageDatabase()
        db.insert_group(_group("a", 1, 10))
        db.insert_group(_group("b", 2, 10))
        db.insert_group(_group("a", 7, 10))

        assert db.get_num_groups() == 2
        assert db.find_group("a").coverage.covered == 7
        assert [group.name for group in db.groups()] == ["a", "b"]

    def test_collections_are_independent(self) -> None:
        """Test that the same key can appear in different collections."""
        db = CoverageDatabase()
        db.insert_group(_group("cpu", 1, 2))
        db.insert_module(ModuleEntry(name="cpu"))
        db.insert_hierarchy_instance(HierarchyInstance.from_path("cpu"))
        db.insert_assert(AssertRecord(name="cpu", status=AssertStatus.PASS, hits=1))

        assert db.get_num_groups() == 1
        assert db.get_num_modules() == 1
        assert db.get_num_hierarchy_instances() == 1
        assert db.get_num_asserts() == 1
        assert db.find_module("cpu") is not None
        assert db.find_assert("cpu") is not None

    def test_validate_detects_bad_key(self) -> None:
        """Test validation of mismatched keys."""
        db = CoverageDatabase()
        group = _group("a", 1, 2)
        db.insert_group(group)
        group.name = "renamed"
        assert db.validate() is False

    def test_validate_detects_empty_key(self) -> None:
        """Test validation of empty keys."""
        db = CoverageDatabase()
        db.insert_module(ModuleEntry(name=""))
        assert db.validate() is False

    def test_validate_detects_negative_counts(self) -> None:
        """Test validation of negative counters."""
        db = CoverageDatabase()
        db.insert_group(CoverageGroup(name="g", coverage=CoverageMetrics(-1, 5, 0.0)))
        assert db.validate() is False

    def test_pattern_and_uncovered(self) -> None:
        """Test substring search and uncovered group listing."""
        db = CoverageDatabase()
        db.insert_group(_group("tb.cpu.alu::ops", 5, 10))
        db.insert_group(_group("tb.cpu.fpu::ops", 0, 10))
        db.insert_group(_group("tb.mem::miss", 0, 4))

        assert [g.name for g in db.get_groups_by_pattern("cpu")] == [
            "tb.cpu.alu::ops",
            "tb.cpu.fpu::ops",
        ]
        assert [g.name for g in db.get_uncovered_groups()] == ["tb.cpu.fpu::ops", "tb.mem::miss"]

    def test_reset(self) -> None:
        """Test that reset empties every collection."""
        db = CoverageDatabase()
        db.insert_group(_group("a", 1, 2))
        db.insert_assert(AssertRecord(name="x", status=AssertStatus.FAIL))
        db.reset()
        assert db.is_empty()
        assert db.dashboard is None

    def test_memory_footprint_grows(self) -> None:
        """Test that the footprint reflects stored entries."""
        db = CoverageDatabase()
        empty = db.memory_footprint()
        for i in range(50):
            db.insert_group(_group(f"g{i}", 1, 2))
        assert db.memory_footprint() > empty


class TestScoring:
    """Test the overall score."""

    def test_groups_only(self) -> None:
        """Test that a single contributing collection gives its own ratio."""
        db = CoverageDatabase()
        db.insert_group(_group("a", 45, 50))
        db.insert_group(_group("b", 30, 40))
        db.insert_group(_group("c", 88, 100))
        assert db.calculate_overall_score() == pytest.approx(100.0 * 163 / 190)

    def test_group_weights(self) -> None:
        """Test weight-weighted group totals."""
        db = CoverageDatabase()
        db.insert_group(_group("a", 10, 10, weight=3))
        db.insert_group(_group("b", 0, 10, weight=1))
        assert db.collection_totals()["groups"] == (30, 40)
        assert db.calculate_overall_score() == pytest.approx(75.0)

    def test_weighted_collections(self) -> None:
        """Test the weighted combination of collections."""
        db = CoverageDatabase()
        db.insert_group(_group("g", 50, 100))
        db.insert_hierarchy_instance(
            HierarchyInstance.from_path("top", 100.0, CoverageMetrics(10, 10, 100.0))
        )
        # groups 50% (w 0.4), hierarchy 100% (w 0.2)
        assert db.calculate_overall_score() == pytest.approx((0.4 * 50 + 0.2 * 100) / 0.6)

    def test_hierarchy_uses_instance_scores(self) -> None:
        """Test that hierarchy totals are the mean SCORE in hundredths."""
        db = CoverageDatabase()
        db.insert_hierarchy_instance(
            HierarchyInstance.from_path("top", 50.0, CoverageMetrics(10, 100, 10.0))
        )
        db.insert_hierarchy_instance(HierarchyInstance.from_path("top.cpu", 82.34))
        assert db.collection_totals()["hierarchy"] == (5000 + 8234, 20000)
        assert db.calculate_overall_score() == pytest.approx((50.0 + 82.34) / 2)

    def test_assert_score(self) -> None:
        """Test that unreachable assertions are excluded."""
        db = CoverageDatabase()
        db.insert_assert(AssertRecord(name="a", status=AssertStatus.PASS, hits=3))
        db.insert_assert(AssertRecord(name="b", status=AssertStatus.FAIL))
        db.insert_assert(AssertRecord(name="c", status=AssertStatus.UNREACHABLE))
        assert db.collection_totals()["asserts"] == (1, 2)
        assert db.calculate_overall_score() == pytest.approx(50.0)

    def test_custom_weights(self) -> None:
        """Test configurable collection weights."""
        weights = ScoringWeights(groups=0.0, hierarchy=0.0, modules=1.0, asserts=0.0)
        db = CoverageDatabase(weights=weights)
        db.insert_group(_group("g", 0, 100))
        db.insert_module(ModuleEntry(name="m", coverage=CoverageMetrics(3, 4, 75.0)))
        assert db.calculate_overall_score() == pytest.approx(75.0)

    def test_recomputed_after_insert(self) -> None:
        """Test that the score follows later inserts."""
        db = CoverageDatabase()
        db.insert_group(_group("a", 10, 10))
        assert db.calculate_overall_score() == pytest.approx(100.0)
        db.insert_group(_group("b", 0, 10))
        assert db.calculate_overall_score() == pytest.approx(50.0)

    def test_order_independent(self) -> None:
        """Test that insertion order does not change the score."""
        groups = [_group(f"g{i}", i, 10 + i, weight=1 + i % 3) for i in range(20)]
        forward = CoverageDatabase()
        backward = CoverageDatabase()
        for group in groups:
            forward.insert_group(group)
        for group in reversed(groups):
            backward.insert_group(group)
        assert forward.calculate_overall_score() == backward.calculate_overall_score()

    def test_statistics(self) -> None:
        """Test group statistics."""
        db = CoverageDatabase()
        db.insert_group(_group("full", 10, 10))
        db.insert_group(_group("zero", 0, 5))
        db.insert_group(_group("part", 3, 6))
        stats = db.generate_statistics()
        assert stats.total_coverage_points == 21
        assert stats.covered_points == 13
        assert stats.num_zero_coverage_groups == 1
        assert stats.num_full_coverage_groups == 1
        assert stats.overall_coverage_score == pytest.approx(100.0 * 13 / 21)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
