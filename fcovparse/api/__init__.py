"""Handle registry, export and the C-style library surface."""

from .export import build_report, export_to_json, export_to_xml
from .library import CoverageLibrary, default_library
from .registry import NULL_HANDLE, HandleRegistry

__all__ = [
    "build_report",
    "export_to_json",
    "export_to_xml",
    "CoverageLibrary",
    "default_library",
    "NULL_HANDLE",
    "HandleRegistry",
]
