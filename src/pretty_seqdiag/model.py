from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Literal, Union

from .attributes import Configurable

# ============================================================================
# Diagram model
#
# Semantic representation of a seqdiag source: nodes laid out left to right,
# messages (edges and separators) stacked top to bottom in source order,
# groups clustering contiguous nodes, and the activation bars derived from
# the message sequence.
#
# Identity matters here: nodes are shared between edges, groups and bars, so
# every entity compares by identity (eq=False) and can be used as a dict key.
# ============================================================================

Direction = Literal["forward", "back"]
ArrowDirection = Literal["right", "left", "self"]
LineStyle = Literal["solid", "dashed", "dotted"]
GroupShape = Literal["box", "line"]
SeparatorKind = Literal["divider", "delayed"]

LINE_STYLES = ("solid", "dashed", "dotted")
GROUP_SHAPES = ("box", "line")


@dataclass(slots=True, eq=False)
class Diagram(Configurable):
    """Root aggregate produced by the builder and consumed by the layout engine."""

    nodes: list[Node] = field(default_factory=list)
    # Edges and separators in source order
    messages: list[Message] = field(default_factory=list)
    groups: list[Group] = field(default_factory=list)
    activation_bars: list[ActivationBar] = field(default_factory=list)
    # node id -> nesting depth at each message index
    activation_depths: dict[str, list[int]] = field(default_factory=dict)

    node_width: int = 120
    node_height: int = 40
    span_width: int = 60
    span_height: int = 20
    activation: bool = True
    default_fontsize: int = 11
    default_fontfamily: str | None = None
    default_node_color: str = "white"
    default_group_color: str = "orange"
    default_linecolor: str = "black"
    default_textcolor: str = "black"

    boolean_attributes: ClassVar[dict[str, str]] = {
        "activation": "activation",
    }
    integer_attributes: ClassVar[dict[str, str]] = {
        "node_width": "node_width",
        "node_height": "node_height",
        "span_width": "span_width",
        "span_height": "span_height",
        "default_fontsize": "default_fontsize",
    }
    string_attributes: ClassVar[dict[str, str]] = {
        "default_fontfamily": "default_fontfamily",
        "default_node_color": "default_node_color",
        "default_group_color": "default_group_color",
        "default_linecolor": "default_linecolor",
        "default_textcolor": "default_textcolor",
    }

    @property
    def edges(self) -> list[Edge]:
        return [m for m in self.messages if isinstance(m, Edge)]

    @property
    def separators(self) -> list[Separator]:
        return [m for m in self.messages if isinstance(m, Separator)]

    def find_node(self, node_id: str) -> Node | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


@dataclass(slots=True, eq=False)
class Node(Configurable):
    id: str
    label: str
    width: int = 120
    height: int = 40
    color: str = "white"
    textcolor: str = "black"
    fontsize: int = 11
    fontfamily: str | None = None
    # Starts with an open top-level activation bar
    activated: bool = False

    boolean_attributes: ClassVar[dict[str, str]] = {"activated": "activated"}
    integer_attributes: ClassVar[dict[str, str]] = {
        "width": "width",
        "height": "height",
        "fontsize": "fontsize",
    }
    string_attributes: ClassVar[dict[str, str]] = {
        "label": "label",
        "color": "color",
        "textcolor": "textcolor",
        "fontfamily": "fontfamily",
    }

    @classmethod
    def for_diagram(cls, node_id: str, diagram: Diagram) -> Node:
        """Create a node whose visual defaults come from the diagram."""
        return cls(
            id=node_id,
            label=node_id,
            width=diagram.node_width,
            height=diagram.node_height,
            color=diagram.default_node_color,
            textcolor=diagram.default_textcolor,
            fontsize=diagram.default_fontsize,
            fontfamily=diagram.default_fontfamily,
        )


@dataclass(slots=True, eq=False)
class Edge(Configurable):
    from_: Node
    op: str
    to: Node
    # from_ sits at or before to in column order when the edge was built
    left_to_right: bool = True
    label: str | None = None
    return_: str | None = None
    color: str = "black"
    textcolor: str = "black"
    fontsize: int = 11
    fontfamily: str | None = None
    # Derived from op in __post_init__, then overridable
    direction: Direction = "forward"
    style: LineStyle = "solid"
    asynchronous: bool = False
    diagonal: bool = False
    failed: bool = False
    activate: bool = True

    boolean_attributes: ClassVar[dict[str, str]] = {
        "diagonal": "diagonal",
        "failed": "failed",
        "activate": "activate",
        "async": "asynchronous",
    }
    enum_attributes: ClassVar[dict[str, tuple[str, tuple[str, ...]]]] = {
        "style": ("style", LINE_STYLES),
    }
    integer_attributes: ClassVar[dict[str, str]] = {"fontsize": "fontsize"}
    string_attributes: ClassVar[dict[str, str]] = {
        "label": "label",
        "return": "return_",
        "color": "color",
        "textcolor": "textcolor",
    }

    def __post_init__(self) -> None:
        self.direction = "forward" if self.op.endswith(">") else "back"
        self.asynchronous = self.op.startswith("<<") or self.op.endswith(">>")
        self.style = "dashed" if "--" in self.op else "solid"

    @classmethod
    def for_diagram(cls, from_: Node, op: str, to: Node, diagram: Diagram) -> Edge:
        """Create an edge, fixing left_to_right from the current node order."""
        left_to_right = diagram.nodes.index(from_) <= diagram.nodes.index(to)
        return cls(
            from_=from_,
            op=op,
            to=to,
            left_to_right=left_to_right,
            color=diagram.default_linecolor,
            textcolor=diagram.default_textcolor,
            fontsize=diagram.default_fontsize,
            fontfamily=diagram.default_fontfamily,
        )

    def is_self_referenced(self) -> bool:
        return self.from_ is self.to

    def arrow_direction(self) -> ArrowDirection:
        if self.is_self_referenced():
            return "self"
        if self.left_to_right == (self.direction == "forward"):
            return "right"
        return "left"


@dataclass(slots=True, eq=False)
class Separator:
    label: str
    type: SeparatorKind = "divider"


Message = Union[Edge, Separator]


@dataclass(slots=True, eq=False)
class ActivationBar:
    node: Node
    # Opening message
    from_: Message
    # Closing message; None while open (through the end of the diagram)
    to: Message | None = None
    # 1 = outermost
    depth: int = 1
    # Open before the first message rather than opened by from_
    top_level: bool = False


@dataclass(slots=True, eq=False)
class Group(Configurable):
    nodes: list[Node] = field(default_factory=list)
    label: str | None = None
    color: str = "orange"
    shape: GroupShape = "box"
    style: LineStyle = "solid"

    enum_attributes: ClassVar[dict[str, tuple[str, tuple[str, ...]]]] = {
        "shape": ("shape", GROUP_SHAPES),
        "style": ("style", LINE_STYLES),
    }
    string_attributes: ClassVar[dict[str, str]] = {
        "label": "label",
        "color": "color",
    }

    @classmethod
    def for_diagram(cls, diagram: Diagram) -> Group:
        return cls(color=diagram.default_group_color)
