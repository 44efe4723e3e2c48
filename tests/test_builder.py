"""Tests for the diagram model builder.

Covers: node declarations and merging, edge chains, synchronous calls and
their replies, operator-derived edge flags, diagram/node/edge attributes,
groups and node reordering, separators.
"""
from __future__ import annotations

import logging

import pytest

from pretty_seqdiag.builder import build_diagram, reorder_nodes
from pretty_seqdiag.model import Edge, Group, Node, Separator
from pretty_seqdiag.statements import (
    AttributeAssignment,
    AttributeStmt,
    DiagramAst,
    EdgeStmt,
    EdgeTarget,
    GroupStmt,
    NodeStmt,
    SeparatorStmt,
)


def opts(**options) -> list[AttributeAssignment]:
    # `return_` -> `return`
    return [AttributeAssignment(name.rstrip("_"), value) for name, value in options.items()]


def node(name: str, **options) -> NodeStmt:
    return NodeStmt(name, opts(**options))


def edge(from_: str, *hops: str, **options) -> EdgeStmt:
    """edge("A", "->", "B", "->", "C") is `A -> B -> C`."""
    targets = [EdgeTarget(op, target) for op, target in zip(hops[::2], hops[1::2])]
    return EdgeStmt(from_, targets, opts(**options))


def build(*statements):
    diagram = build_diagram(DiagramAst(list(statements)))
    assert diagram is not None
    return diagram


def ids(nodes: list[Node]) -> list[str]:
    return [n.id for n in nodes]


def hops(diagram) -> list[tuple[str, str, str]]:
    return [(e.from_.id, e.op, e.to.id) for e in diagram.edges]


# ============================================================================
# Diagram construction
# ============================================================================


class TestBuildDiagram:
    def test_no_tree_means_no_diagram(self):
        assert build_diagram(None) is None

    def test_empty_diagram(self):
        d = build()
        assert d.nodes == []
        assert d.messages == []
        assert d.groups == []
        assert d.activation_bars == []

    def test_node_definitions(self):
        d = build(node("A"), node("B"))
        assert len(d.messages) == 0
        assert ids(d.nodes) == ["A", "B"]
        assert d.nodes[0].label == "A"
        assert d.nodes[1].label == "B"

    def test_redeclared_node_merges_attributes(self):
        d = build(node("A"), node("B"), node("A", label="Alice", color="red"))
        assert ids(d.nodes) == ["A", "B"]
        assert d.nodes[0].label == "Alice"
        assert d.nodes[0].color == "red"

    def test_node_attributes(self):
        d = build(node("B", width=24, height=96, label="Bob"))
        assert d.nodes[0].width == 24
        assert d.nodes[0].height == 96
        assert d.nodes[0].label == "Bob"

    def test_edges_reuse_declared_nodes(self):
        d = build(node("A", label="Alice"), edge("A", "->", "B"), edge("B", "->", "A"))
        assert ids(d.nodes) == ["A", "B"]
        assert d.edges[1].to is d.nodes[0]


# ============================================================================
# Diagram attributes
# ============================================================================


class TestDiagramAttributes:
    def test_assigns_sizes(self):
        d = build(
            AttributeStmt("node_height", 123),
            AttributeStmt("node_width", 456),
            AttributeStmt("span_height", 789),
            AttributeStmt("span_width", 123),
        )
        assert d.node_height == 123
        assert d.node_width == 456
        assert d.span_height == 789
        assert d.span_width == 123

    def test_defaults_apply_to_nodes_declared_before_the_attribute(self):
        d = build(node("A"), AttributeStmt("node_width", 456), node("B", width=10))
        assert d.nodes[0].width == 456
        assert d.nodes[1].width == 10

    def test_default_colors_and_fonts_flow_into_entities(self):
        d = build(
            AttributeStmt("default_node_color", "lightblue"),
            AttributeStmt("default_linecolor", "gray"),
            AttributeStmt("default_textcolor", "navy"),
            AttributeStmt("default_fontsize", 14),
            AttributeStmt("default_fontfamily", "serif"),
            edge("A", "->", "B"),
        )
        a = d.nodes[0]
        assert a.color == "lightblue"
        assert a.textcolor == "navy"
        assert a.fontsize == 14
        assert a.fontfamily == "serif"
        e = d.edges[0]
        assert e.color == "gray"
        assert e.fontsize == 14

    def test_bad_diagram_attribute_is_ignored(self, caplog):
        with caplog.at_level(logging.WARNING):
            d = build(AttributeStmt("node_width", "wide"), AttributeStmt("bogus", 1))
        assert d.node_width == 120
        assert len(caplog.records) == 2


# ============================================================================
# Edges and chains
# ============================================================================


class TestEdges:
    def test_chain_and_synchronous_calls(self):
        d = build(edge("A", "->", "B", "->", "C"), edge("D", "=>", "E", "=>", "F"))
        assert hops(d) == [
            ("A", "->", "B"),
            ("B", "->", "C"),
            ("D", "->", "E"),
            ("E", "->", "F"),
            ("E", "<-", "F"),
            ("D", "<-", "E"),
        ]
        assert ids(d.nodes) == ["A", "B", "C", "D", "E", "F"]

    def test_chain_threads_targets(self):
        d = build(edge("A", "->", "B", "<-", "C", "-->", "D"))
        edges = d.edges
        assert len(edges) == 3
        for prev, nxt in zip(edges, edges[1:]):
            assert nxt.from_ is prev.to

    def test_synchronous_call_emits_solid_call_and_dashed_reply(self):
        d = build(edge("A", "=>", "B", label="get", return_="value"))
        call, reply = d.edges
        assert call.direction == "forward"
        assert call.style == "solid"
        assert call.label == "get"
        assert reply.direction == "back"
        assert reply.style == "dashed"
        assert reply.label == "value"
        assert reply.from_ is call.from_
        assert reply.to is call.to

    def test_synchronous_call_without_return_has_no_reply_label(self):
        d = build(edge("A", "=>", "B", label="get"))
        assert d.edges[1].label is None

    def test_synchronous_reply_shares_call_attributes(self):
        d = build(edge("A", "=>", "B", color="red", activate="false"))
        call, reply = d.edges
        assert call.color == reply.color == "red"
        assert call.activate is False
        assert reply.activate is False

    def test_options_apply_to_every_hop(self):
        d = build(edge("A", "->", "B", "->", "C", label="x"))
        assert [e.label for e in d.edges] == ["x", "x"]

    def test_diagonal_flag(self):
        d = build(edge("A", "->", "B", diagonal=None))
        assert len(d.edges) == 1
        assert d.edges[0].diagonal is True

    @pytest.mark.parametrize(
        "op, direction, style, asynchronous",
        [
            ("->", "forward", "solid", False),
            ("-->", "forward", "dashed", False),
            ("->>", "forward", "solid", True),
            ("-->>", "forward", "dashed", True),
            ("<-", "back", "solid", False),
            ("<--", "back", "dashed", False),
            ("<<-", "back", "solid", True),
            ("<<--", "back", "dashed", True),
        ],
    )
    def test_operator_flags(self, op, direction, style, asynchronous):
        e = build(edge("A", op, "B")).edges[0]
        assert e.op == op
        assert e.direction == direction
        assert e.style == style
        assert e.asynchronous is asynchronous

    def test_style_attribute_overrides_operator(self):
        e = build(edge("A", "->", "B", style="dotted")).edges[0]
        assert e.style == "dotted"


class TestArrowDirection:
    def test_directions(self):
        d = build(
            node("A"),
            node("B"),
            edge("A", "->", "B"),
            edge("A", "<-", "B"),
            edge("B", "->", "A"),
            edge("B", "<-", "A"),
            edge("A", "->", "A"),
        )
        assert [e.arrow_direction() for e in d.edges] == ["right", "left", "left", "right", "self"]

    def test_self_reference_iff_same_node(self):
        d = build(edge("A", "->", "A"), edge("A", "->", "B"))
        assert d.edges[0].is_self_referenced()
        assert not d.edges[1].is_self_referenced()

    def test_left_to_right_is_fixed_at_construction(self):
        d = build(
            node("A"),
            node("B"),
            node("C"),
            edge("B", "->", "C"),
            GroupStmt([node("A"), node("C")]),
        )
        assert ids(d.nodes) == ["A", "C", "B"]
        assert d.edges[0].left_to_right is True
        assert d.edges[0].arrow_direction() == "right"


# ============================================================================
# Groups
# ============================================================================


class TestGroups:
    def test_group_with_attributes_and_nodes(self):
        d = build(
            GroupStmt([
                AttributeStmt("label", "backend"),
                AttributeStmt("color", "blue"),
                AttributeStmt("shape", "line"),
                node("A"),
                node("B", label="Bob"),
            ])
        )
        assert len(d.groups) == 1
        g = d.groups[0]
        assert g.label == "backend"
        assert g.color == "blue"
        assert g.shape == "line"
        assert ids(g.nodes) == ["A", "B"]
        assert g.nodes[1].label == "Bob"
        assert ids(d.nodes) == ["A", "B"]

    def test_group_color_defaults_from_diagram(self):
        d = build(AttributeStmt("default_group_color", "pink"), GroupStmt([node("A")]))
        assert d.groups[0].color == "pink"

    def test_node_stays_in_its_first_group(self, caplog):
        with caplog.at_level(logging.WARNING):
            d = build(GroupStmt([node("A"), node("B")]), GroupStmt([node("B"), node("C")]))
        assert ids(d.groups[0].nodes) == ["A", "B"]
        assert ids(d.groups[1].nodes) == ["C"]
        assert "B" in caplog.text

    def test_repeated_member_in_same_group_is_kept_once(self, caplog):
        with caplog.at_level(logging.WARNING):
            d = build(GroupStmt([node("A"), node("A")]))
        assert ids(d.groups[0].nodes) == ["A"]
        assert caplog.records == []

    def test_grouped_nodes_become_contiguous(self):
        d = build(
            node("A"),
            node("B"),
            node("C"),
            node("D"),
            GroupStmt([node("B"), node("D")]),
        )
        assert ids(d.nodes) == ["A", "B", "D", "C"]

    def test_several_groups(self):
        d = build(
            node("A"),
            node("B"),
            node("C"),
            node("D"),
            node("E"),
            GroupStmt([node("C"), node("A")]),
            GroupStmt([node("B"), node("E")]),
        )
        assert ids(d.nodes) == ["A", "C", "B", "E", "D"]


class TestReorderNodes:
    def test_without_groups_order_is_unchanged(self):
        nodes = [Node(id=n, label=n) for n in "ABC"]
        assert reorder_nodes(nodes, []) == nodes

    def test_ungrouped_nodes_keep_relative_order(self):
        a, b, c, d, e = (Node(id=n, label=n) for n in "ABCDE")
        group = Group(nodes=[e, b])
        result = reorder_nodes([a, b, c, d, e], [group])
        assert ids(result) == ["A", "B", "E", "C", "D"]
        ungrouped = [n for n in result if n not in (b, e)]
        assert ids(ungrouped) == ["A", "C", "D"]

    def test_members_keep_their_own_relative_order(self):
        a, b, c, d = (Node(id=n, label=n) for n in "ABCD")
        group = Group(nodes=[d, a, c])
        assert ids(reorder_nodes([a, b, c, d], [group])) == ["A", "C", "D", "B"]

    def test_does_not_mutate_input(self):
        nodes = [Node(id=n, label=n) for n in "ABC"]
        snapshot = list(nodes)
        reorder_nodes(nodes, [Group(nodes=[nodes[2], nodes[0]])])
        assert nodes == snapshot


# ============================================================================
# Separators
# ============================================================================


class TestSeparators:
    def test_separator_kinds_and_order(self):
        d = build(
            edge("A", "->", "B"),
            SeparatorStmt("divide", "==="),
            edge("A", "<-", "B"),
            SeparatorStmt("later", "..."),
        )
        kinds = [type(m).__name__ for m in d.messages]
        assert kinds == ["Edge", "Separator", "Edge", "Separator"]
        assert d.separators[0].type == "divider"
        assert d.separators[0].label == "divide"
        assert d.separators[1].type == "delayed"
        assert isinstance(d.messages[1], Separator)
        assert isinstance(d.messages[2], Edge)
