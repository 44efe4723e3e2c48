from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .model import ActivationBar, Diagram, Edge, Group, Node, Separator, SeparatorKind
from .statements import (
    AttributeStmt,
    DiagramAst,
    EdgeStmt,
    GroupStmt,
    NodeStmt,
    SeparatorStmt,
)

# ============================================================================
# Diagram model builder
#
# Turns the parsed statement list into a Diagram in one forward pass:
#   1. Apply diagram-level attributes (nodes and edges copy their defaults
#      from the diagram when they are created, so these must come first)
#   2. Build nodes, edges (chains and synchronous calls), groups, separators
#   3. Reorder nodes so every group occupies contiguous columns
#   4. Resolve activation bars and the per-node depth series
#
# Nothing here raises on bad input: rejected attributes, duplicate group
# membership and unmatched closing messages are logged and skipped.
# ============================================================================

log = logging.getLogger(__name__)

# Synchronous call: expands into a call edge and an auto-generated reply
SYNC_CALL_OP = "=>"
SYNC_CALL_FORWARD_OP = "->"
SYNC_CALL_REPLY_OP = "<-"

SEPARATOR_TYPES: dict[str, SeparatorKind] = {
    "===": "divider",
    "...": "delayed",
}


@dataclass(slots=True)
class _BuildContext:
    """State threaded through the build pass."""
    diagram: Diagram
    # node id -> node
    nodes: dict[str, Node] = field(default_factory=dict)
    # node id -> the group that owns it
    owners: dict[str, Group] = field(default_factory=dict)


def build_diagram(ast: DiagramAst | None) -> Diagram | None:
    """Build a Diagram from a parsed statement tree.

    Returns None when there is no tree (the parser failed); callers should
    treat that as "nothing to lay out".
    """
    if ast is None:
        return None

    ctx = _BuildContext(diagram=Diagram())

    # 1. Diagram-level defaults
    for stmt in ast.statements:
        if isinstance(stmt, AttributeStmt):
            ctx.diagram.set_attribute(stmt.name, stmt.value)

    # 2. Entities, in source order
    for stmt in ast.statements:
        if isinstance(stmt, NodeStmt):
            _build_node(ctx, stmt)
        elif isinstance(stmt, EdgeStmt):
            _build_edge(ctx, stmt)
        elif isinstance(stmt, GroupStmt):
            _build_group(ctx, stmt)
        elif isinstance(stmt, SeparatorStmt):
            _build_separator(ctx, stmt)

    # 3. Cluster grouped nodes
    ctx.diagram.nodes = reorder_nodes(ctx.diagram.nodes, ctx.diagram.groups)

    # 4. Activation bars
    resolve_activation_bars(ctx.diagram)

    log.debug(
        "built diagram: %d nodes, %d messages, %d groups, %d activation bars",
        len(ctx.diagram.nodes),
        len(ctx.diagram.messages),
        len(ctx.diagram.groups),
        len(ctx.diagram.activation_bars),
    )
    return ctx.diagram


def _find_or_build_node(ctx: _BuildContext, name: str) -> Node:
    """Return the node named `name`, creating it on first reference."""
    node = ctx.nodes.get(name)
    if node is not None:
        return node

    node = Node.for_diagram(name, ctx.diagram)
    # The first node seeds the top-level activation bar
    if not ctx.diagram.nodes and ctx.diagram.activation:
        node.activated = True
    ctx.nodes[name] = node
    ctx.diagram.nodes.append(node)
    return node


def _build_node(ctx: _BuildContext, stmt: NodeStmt) -> Node:
    node = _find_or_build_node(ctx, stmt.name)
    node.set_attributes(stmt.options)
    return node


def _build_edge(ctx: _BuildContext, stmt: EdgeStmt) -> None:
    if not stmt.to:
        return
    from_ = _find_or_build_node(ctx, stmt.from_)
    _build_edge_hop(ctx, stmt, from_, 0)


def _build_edge_hop(ctx: _BuildContext, stmt: EdgeStmt, from_: Node, index: int) -> None:
    """Build hop `index` of an edge chain, then the rest of the chain.

    A synchronous call (`A => B`) produces its reply only after every later
    hop, so `A => B => C` reads A->B, B->C, B<-C, A<-B.
    """
    hop = stmt.to[index]
    to = _find_or_build_node(ctx, hop.target)
    diagram = ctx.diagram

    is_sync_call = hop.op == SYNC_CALL_OP
    op = SYNC_CALL_FORWARD_OP if is_sync_call else hop.op
    edge = Edge.for_diagram(from_, op, to, diagram)
    edge.set_attributes(stmt.options)
    diagram.messages.append(edge)

    if index + 1 < len(stmt.to):
        _build_edge_hop(ctx, stmt, to, index + 1)

    if is_sync_call:
        reply = Edge.for_diagram(from_, SYNC_CALL_REPLY_OP, to, diagram)
        reply.set_attributes(o for o in stmt.options if o.name not in ("label", "return"))
        reply.style = "dashed"
        reply.label = edge.return_
        diagram.messages.append(reply)


def _build_group(ctx: _BuildContext, stmt: GroupStmt) -> Group:
    group = Group.for_diagram(ctx.diagram)

    for sub in stmt.statements:
        if isinstance(sub, AttributeStmt):
            group.set_attribute(sub.name, sub.value)

    for sub in stmt.statements:
        if not isinstance(sub, NodeStmt):
            continue
        node = _build_node(ctx, sub)
        owner = ctx.owners.get(node.id)
        if owner is group:
            continue
        if owner is not None:
            log.warning("node %r already belongs to another group; skipped", node.id)
            continue
        ctx.owners[node.id] = group
        group.nodes.append(node)

    ctx.diagram.groups.append(group)
    return group


def _build_separator(ctx: _BuildContext, stmt: SeparatorStmt) -> Separator:
    separator = Separator(label=stmt.label, type=SEPARATOR_TYPES.get(stmt.type, "divider"))
    ctx.diagram.messages.append(separator)
    return separator


# ============================================================================
# Node reordering
# ============================================================================


def reorder_nodes(nodes: list[Node], groups: list[Group]) -> list[Node]:
    """Return `nodes` with every group's members pulled into contiguous columns.

    The first member of a group to appear keeps its position; the remaining
    members follow it in their original relative order. Ungrouped nodes keep
    their relative order.
    """
    owner: dict[Node, Group] = {}
    for group in groups:
        for node in group.nodes:
            owner.setdefault(node, group)

    # First pass: pick the target order. Second pass: materialize it.
    placed: set[Node] = set()
    order: list[Node] = []
    for node in nodes:
        if node in placed:
            continue
        group = owner.get(node)
        if group is None:
            order.append(node)
            placed.add(node)
            continue
        for member in nodes:
            if owner.get(member) is group and member not in placed:
                order.append(member)
                placed.add(member)

    return order


# ============================================================================
# Activation bars
# ============================================================================


def _opens_or_closes(edge: Edge) -> bool:
    """Whether an edge can open or close an activation bar."""
    return edge.activate and not edge.failed and not edge.is_self_referenced()


def resolve_activation_bars(diagram: Diagram) -> None:
    """Compute the activation bars and per-node depth series of a diagram.

    Forward edges open a bar on their target one level deeper than the
    target's current depth; backward edges close the target's most recently
    opened bar that is still open. Bars left open run to the end of the
    diagram (to = None).
    """
    messages = diagram.messages
    if not messages:
        return

    if not diagram.activation:
        diagram.activation_bars = []
        diagram.activation_depths = {node.id: [0] * len(messages) for node in diagram.nodes}
        return

    depths: dict[str, int] = {}
    bars: list[ActivationBar] = []
    for node in diagram.nodes:
        depths[node.id] = 1 if node.activated else 0
        if node.activated:
            bars.append(ActivationBar(node=node, from_=messages[0], depth=1, top_level=True))

    series: dict[str, list[int]] = {node.id: [] for node in diagram.nodes}

    for message in messages:
        if isinstance(message, Edge) and _opens_or_closes(message):
            target = message.to
            if message.direction == "forward":
                depth = depths.get(target.id, 0) + 1
                bars.append(ActivationBar(node=target, from_=message, depth=depth))
                depths[target.id] = depth
            else:
                bar = next(
                    (b for b in reversed(bars) if b.node is target and b.to is None),
                    None,
                )
                if bar is None:
                    log.warning("no open activation bar on %r to close", target.id)
                else:
                    bar.to = message
                    depths[target.id] -= 1

        for node in diagram.nodes:
            series[node.id].append(depths[node.id])

    diagram.activation_bars = bars
    diagram.activation_depths = series
