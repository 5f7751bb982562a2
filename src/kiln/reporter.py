"""Module graph reporters.

This module provides the ProjectReporter class for rendering a
CommonJsProject's resolution state as text, JSON or GraphML.
"""

from __future__ import annotations

import json
from xml.etree.ElementTree import Element, SubElement, tostring

from kiln.project import CommonJsProject

GRAPHML_NS = "http://graphml.graphdrawing.org/xmlns"
YWORKS_NS = "http://www.yworks.com/xml/graphml"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"


class ProjectReporter:
    """Render resolution results in various formats.

    Example:
        >>> project = CommonJsProject(["lib/"])
        >>> project.require("main")
        >>> print(ProjectReporter().report_text(project, no_color=True))
    """

    def report_text(self, project: CommonJsProject, no_color: bool = False) -> str:
        """Generate human-readable text report.

        Args:
            project: The resolved project.
            no_color: If True, disable ANSI color codes.

        Returns:
            Formatted text report.
        """
        lines = [project.describe()]
        report = project.report

        if report.errors:
            header = f"WARNINGS ({len(report.errors)}):"
            if not no_color:
                header = f"\033[33m{header}\033[0m"  # Yellow
            lines.append(header)
            for error in report.errors:
                lines.append(f"  ! {error.message}")
            lines.append("")

        if report.cycles:
            lines.append(f"CYCLES ({len(report.cycles)}):")
            for specifier, requested_by in report.cycles:
                lines.append(f"  ~ {requested_by} -> {specifier}")
            lines.append("")

        lines.append("Summary:")
        lines.append(f"  Modules: {len(project.current_modules)}")
        lines.append(f"  Not found: {len(report.not_found)}")
        lines.append(f"  Duplicates: {len(report.duplicates)}")
        lines.append(f"  Parse failures: {len(report.parse_failures)}")

        return "\n".join(lines)

    def report_json(self, project: CommonJsProject) -> str:
        """Generate JSON report."""
        return json.dumps(project.to_dict(), indent=2)

    def report_graphml(self, project: CommonJsProject) -> str:
        """Generate a GraphML document of the module dependency graph.

        One node per current module, one edge per recorded dependency.
        Edges may point at ignored or unresolved modules.
        """
        graphml = Element(
            "graphml",
            {
                "xmlns": GRAPHML_NS,
                "xmlns:y": YWORKS_NS,
                "xmlns:xsi": XSI_NS,
                "xsi:schemaLocation": f"{GRAPHML_NS} {GRAPHML_NS}/1.0/graphml.xsd",
            },
        )
        SubElement(graphml, "key", {"id": "d0", "for": "node", "yfiles.type": "nodegraphics"})
        SubElement(graphml, "key", {"id": "d1", "for": "edge", "yfiles.type": "edgegraphics"})
        graph = SubElement(graphml, "graph", {"id": "commonjs", "edgedefault": "directed"})

        for name in project.current_modules:
            node = SubElement(graph, "node", {"id": name})
            data = SubElement(node, "data", {"key": "d0"})
            shape = SubElement(data, "y:ShapeNode")
            label = SubElement(shape, "y:NodeLabel", {"textColor": "#000000"})
            label.text = name

        for name, module in project.current_modules.items():
            for dep in module.deps:
                SubElement(graph, "edge", {"source": name, "target": dep})

        body = tostring(graphml, encoding="unicode")
        return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}\n'
