"""XML and JSON export of a coverage database."""

import json
from pathlib import Path
from typing import Any, Union
from xml.etree import ElementTree as ET

from ..config import get_logger
from ..core.database import CoverageDatabase
from ..core.errors import FileAccessError

logger = get_logger(__name__)


def build_report(db: CoverageDatabase) -> dict[str, Any]:
    """Collect the exported document from the database's query API.

    The ``groups`` and ``hierarchy`` sections are omitted when empty. Scores
    are rounded to two decimals.
    """
    report: dict[str, Any] = {
        "summary": {
            "total_groups": db.get_num_groups(),
            "total_hierarchy_instances": db.get_num_hierarchy_instances(),
            "total_modules": db.get_num_modules(),
            "total_asserts": db.get_num_asserts(),
            "overall_score": round(db.calculate_overall_score(), 2),
        }
    }

    if db.get_num_groups():
        report["groups"] = [
            {
                "name": group.name,
                "covered": group.coverage.covered,
                "expected": group.coverage.expected,
                "score": round(group.coverage.score, 2),
            }
            for group in db.groups()
        ]

    if db.get_num_hierarchy_instances():
        report["hierarchy"] = [
            {
                "path": inst.instance_path,
                "module": inst.module_name,
                "depth": inst.depth_level,
                "score": round(inst.total_score, 2),
            }
            for inst in db.hierarchy()
        ]

    return report


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def export_to_xml(db: CoverageDatabase, path: Union[str, Path]) -> None:
    """Write the coverage report as XML.

    Args:
        db: Database to export
        path: Output file

    Raises:
        FileAccessError: If the file cannot be written
    """
    report = build_report(db)
    root = ET.Element("coverage_report")

    summary = ET.SubElement(root, "summary")
    for key, value in report["summary"].items():
        ET.SubElement(summary, key).text = _format_value(value)

    for section, item_tag in (("groups", "group"), ("hierarchy", "instance")):
        if section not in report:
            continue
        section_elem = ET.SubElement(root, section)
        for item in report[section]:
            item_elem = ET.SubElement(section_elem, item_tag)
            for key, value in item.items():
                ET.SubElement(item_elem, key).text = _format_value(value)

    tree = ET.ElementTree(root)
    ET.indent(tree, space="  ")
    try:
        tree.write(str(path), encoding="utf-8", xml_declaration=True)
    except OSError as e:
        raise FileAccessError(f"Cannot write XML report to {path}: {e}") from e
    logger.debug(f"Exported XML report to {path}")


def export_to_json(db: CoverageDatabase, path: Union[str, Path]) -> None:
    """Write the coverage report as JSON under a ``coverage_report`` key.

    Args:
        db: Database to export
        path: Output file

    Raises:
        FileAccessError: If the file cannot be written
    """
    document = {"coverage_report": build_report(db)}
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2)
            f.write("\n")
    except OSError as e:
        raise FileAccessError(f"Cannot write JSON report to {path}: {e}") from e
    logger.debug(f"Exported JSON report to {path}")
