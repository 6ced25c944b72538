"""In-memory coverage database: keyed collections plus scoring."""

import sys
from typing import Iterator, Optional

from ..config import get_logger
from ..config.schemas import ScoringWeights
from .models import (
    AssertRecord,
    CoverageGroup,
    CoverageMetrics,
    CoverageStatistics,
    DashboardData,
    HierarchyInstance,
    ModuleEntry,
)

logger = get_logger(__name__)

# Hundredths of a percent in a full score
HIERARCHY_SCORE_SCALE = 10000


class CoverageDatabase:
    """Owns every parsed entry and answers count, score and lookup queries.

    Each collection is keyed (groups and modules by name, hierarchy by
    instance path, asserts by name) and keeps insertion order. Inserting an
    existing key replaces the entry's fields while the entry keeps the
    position of its first insertion.

    Queries are read-only and may run concurrently with each other. They must
    not run concurrently with a parse into the same database, and two parses
    into one database at the same time are not supported.
    """

    def __init__(self, weights: Optional[ScoringWeights] = None) -> None:
        self.weights = weights or ScoringWeights()
        self._groups: dict[str, CoverageGroup] = {}
        self._hierarchy: dict[str, HierarchyInstance] = {}
        self._modules: dict[str, ModuleEntry] = {}
        self._asserts: dict[str, AssertRecord] = {}
        self.dashboard: Optional[DashboardData] = None

    # Mutation

    def insert_group(self, group: CoverageGroup) -> None:
        self._groups[group.key] = group

    def insert_hierarchy_instance(self, instance: HierarchyInstance) -> None:
        self._hierarchy[instance.key] = instance

    def insert_module(self, module: ModuleEntry) -> None:
        self._modules[module.key] = module

    def insert_assert(self, record: AssertRecord) -> None:
        self._asserts[record.key] = record

    def set_dashboard(self, dashboard: DashboardData) -> None:
        self.dashboard = dashboard

    def reset(self) -> None:
        """Drop every entry and the dashboard."""
        self._groups.clear()
        self._hierarchy.clear()
        self._modules.clear()
        self._asserts.clear()
        self.dashboard = None

    def close(self) -> None:
        self.reset()

    # Lookup

    def find_group(self, name: str) -> Optional[CoverageGroup]:
        return self._groups.get(name)

    def find_hierarchy_instance(self, path: str) -> Optional[HierarchyInstance]:
        return self._hierarchy.get(path)

    def find_module(self, name: str) -> Optional[ModuleEntry]:
        return self._modules.get(name)

    def find_assert(self, name: str) -> Optional[AssertRecord]:
        return self._asserts.get(name)

    def groups(self) -> Iterator[CoverageGroup]:
        return iter(self._groups.values())

    def hierarchy(self) -> Iterator[HierarchyInstance]:
        return iter(self._hierarchy.values())

    def modules(self) -> Iterator[ModuleEntry]:
        return iter(self._modules.values())

    def asserts(self) -> Iterator[AssertRecord]:
        return iter(self._asserts.values())

    def get_num_groups(self) -> int:
        return len(self._groups)

    def get_num_hierarchy_instances(self) -> int:
        return len(self._hierarchy)

    def get_num_modules(self) -> int:
        return len(self._modules)

    def get_num_asserts(self) -> int:
        return len(self._asserts)

    def is_empty(self) -> bool:
        return not (self._groups or self._hierarchy or self._modules or self._asserts)

    def get_groups_by_pattern(self, pattern: str) -> list[CoverageGroup]:
        """Groups whose name contains ``pattern``."""
        return [group for name, group in self._groups.items() if pattern in name]

    def get_uncovered_groups(self) -> list[CoverageGroup]:
        return [group for group in self._groups.values() if group.coverage.covered == 0]

    # Consistency

    def validate(self) -> bool:
        """Check keys and counters of every entry.

        Verifies that each entry is stored under a non-empty key equal to its
        own key and that no counter is negative. Semantic checks (such as
        covered <= expected) belong to the grammars and are not repeated here.

        Returns:
            True if the database is internally consistent
        """
        collections = {
            "group": self._groups,
            "hierarchy instance": self._hierarchy,
            "module": self._modules,
            "assert": self._asserts,
        }
        for label, table in collections.items():
            for key, entry in table.items():
                if not key or key != entry.key:
                    logger.debug(f"Invalid {label} key {key!r} (entry key {entry.key!r})")
                    return False
                if not self._counts_valid(entry):
                    logger.debug(f"Negative counter in {label} {key!r}")
                    return False
        return True

    @staticmethod
    def _counts_valid(entry) -> bool:
        if isinstance(entry, AssertRecord):
            return entry.hits >= 0 and entry.line_number >= 0
        coverage: CoverageMetrics = entry.coverage
        return coverage.covered >= 0 and coverage.expected >= 0

    # Scoring

    def collection_totals(self) -> dict[str, tuple[int, int]]:
        """Integer (covered, expected) pair of each collection.

        Groups are weighted by their ``weight`` column. Hierarchy instances
        count their SCORE in hundredths of a percent out of 10000 each, so
        the collection ratio is the mean instance score. Assertions count
        covered assertions over all assertions that are not unreachable.
        """
        group_c = group_e = 0
        for group in self._groups.values():
            group_c += group.weight * group.coverage.covered
            group_e += group.weight * group.coverage.expected

        # Every instance carries a SCORE, compact rows carry nothing else
        hier_c = sum(round(inst.total_score * 100) for inst in self._hierarchy.values())
        hier_e = HIERARCHY_SCORE_SCALE * len(self._hierarchy)

        mod_c = sum(mod.coverage.covered for mod in self._modules.values())
        mod_e = sum(mod.coverage.expected for mod in self._modules.values())

        assert_c = sum(1 for rec in self._asserts.values() if rec.is_covered)
        assert_e = sum(1 for rec in self._asserts.values() if not rec.unreachable_count)

        return {
            "groups": (group_c, group_e),
            "hierarchy": (hier_c, hier_e),
            "modules": (mod_c, mod_e),
            "asserts": (assert_c, assert_e),
        }

    def calculate_overall_score(self) -> float:
        """Weighted aggregate score in percent, recomputed on every call.

        Each collection with a non-zero expected total contributes
        ``100 * covered / expected`` with its configured weight; the result
        is normalised by the weights of the contributing collections. An
        empty database scores 0.0.
        """
        weights = self.weights.as_dict()
        weighted = 0.0
        total_weight = 0.0
        for name, (covered, expected) in self.collection_totals().items():
            weight = weights[name]
            if expected <= 0 or weight <= 0:
                continue
            weighted += weight * 100.0 * covered / expected
            total_weight += weight

        if total_weight == 0.0:
            return 0.0
        return weighted / total_weight

    def generate_statistics(self) -> CoverageStatistics:
        """Summarise group coverage points and the overall score."""
        stats = CoverageStatistics(overall_coverage_score=self.calculate_overall_score())
        for group in self._groups.values():
            stats.total_coverage_points += group.coverage.expected
            stats.covered_points += group.coverage.covered
            if group.coverage.covered == 0:
                stats.num_zero_coverage_groups += 1
            elif group.coverage.is_full:
                stats.num_full_coverage_groups += 1
        return stats

    def memory_footprint(self) -> int:
        """Approximate bytes held by the database's entries."""
        total = sys.getsizeof(self)
        for table in (self._groups, self._hierarchy, self._modules, self._asserts):
            total += sys.getsizeof(table)
            for key, entry in table.items():
                total += sys.getsizeof(key) + sys.getsizeof(entry)
                coverage = getattr(entry, "coverage", None)
                if coverage is not None:
                    total += sys.getsizeof(coverage)
        return total

    def __repr__(self) -> str:
        return (
            f"CoverageDatabase(groups={self.get_num_groups()}, "
            f"hierarchy={self.get_num_hierarchy_instances()}, "
            f"modules={self.get_num_modules()}, asserts={self.get_num_asserts()})"
        )
