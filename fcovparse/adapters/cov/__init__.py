"""Coverage report grammars and parsers."""

# Import all grammars to trigger registration
from .assert_parser import AssertGrammar
from .base import GrammarRegistry, RecordBatch, RecordGrammar, scan_range
from .dashboard_parser import DashboardGrammar
from .groups_parser import GroupsGrammar
from .hierarchy_parser import HierarchyGrammar
from .modlist_parser import ModuleListGrammar

__all__ = [
    "AssertGrammar",
    "DashboardGrammar",
    "GroupsGrammar",
    "HierarchyGrammar",
    "ModuleListGrammar",
    "GrammarRegistry",
    "RecordBatch",
    "RecordGrammar",
    "scan_range",
]
