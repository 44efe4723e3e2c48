from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

# ============================================================================
# Statement tree
#
# The ordered statement list produced by the seqdiag text parser. The parser
# itself lives outside this package; the builder only consumes these shapes.
# ============================================================================

AttributeValue = Union[str, int, float, None]
SeparatorType = Literal["===", "..."]


@dataclass(slots=True)
class AttributeAssignment:
    """A single `name = value` option, e.g. the `label = "x"` in `A [label = "x"]`."""
    name: str
    # None for bare flags such as `[diagonal]`
    value: AttributeValue = None


@dataclass(slots=True)
class AttributeStmt:
    """Diagram-level (or group-level) `name = value;` statement."""
    name: str
    value: AttributeValue = None


@dataclass(slots=True)
class NodeStmt:
    name: str
    options: list[AttributeAssignment] = field(default_factory=list)


@dataclass(slots=True)
class EdgeTarget:
    # Operator token, e.g. "->", "<--", "=>"
    op: str
    target: str


@dataclass(slots=True)
class EdgeStmt:
    from_: str
    # One (op, target) pair per hop of the chain `A -> B -> C`
    to: list[EdgeTarget] = field(default_factory=list)
    options: list[AttributeAssignment] = field(default_factory=list)


@dataclass(slots=True)
class GroupStmt:
    statements: list[NodeStmt | AttributeStmt] = field(default_factory=list)


@dataclass(slots=True)
class SeparatorStmt:
    label: str
    type: SeparatorType


Statement = Union[NodeStmt, EdgeStmt, GroupStmt, SeparatorStmt, AttributeStmt]


@dataclass(slots=True)
class DiagramAst:
    """Root of the statement tree: `seqdiag { ... }`."""
    statements: list[Statement] = field(default_factory=list)
