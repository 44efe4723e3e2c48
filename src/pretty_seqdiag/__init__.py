"""pretty-seqdiag — Build and lay out seqdiag sequence diagrams."""

from __future__ import annotations

from .types import Box, LayoutOptions, Point, Size, TextMeasurer
from .statements import (
    AttributeAssignment,
    AttributeStmt,
    DiagramAst,
    EdgeStmt,
    EdgeTarget,
    GroupStmt,
    NodeStmt,
    SeparatorStmt,
)
from .model import ActivationBar, Diagram, Edge, Group, Message, Node, Separator
from .builder import build_diagram
from .metrics import Metrics, layout_diagram

__all__ = [
    "build_and_layout",
    "build_diagram",
    "layout_diagram",
    "Metrics",
    "LayoutOptions",
    "TextMeasurer",
    "Box",
    "Point",
    "Size",
    "Diagram",
    "Node",
    "Edge",
    "Separator",
    "Message",
    "Group",
    "ActivationBar",
    "DiagramAst",
    "AttributeAssignment",
    "AttributeStmt",
    "NodeStmt",
    "EdgeStmt",
    "EdgeTarget",
    "GroupStmt",
    "SeparatorStmt",
]


def build_and_layout(
    ast: DiagramAst | None,
    measure: TextMeasurer | None = None,
    options: LayoutOptions | None = None,
) -> tuple[Diagram, Metrics] | None:
    """Build a diagram from a parsed statement tree and lay it out.

    Returns None when there is no tree to build from.
    """
    diagram = build_diagram(ast)
    if diagram is None:
        return None
    return diagram, layout_diagram(diagram, measure, options)
