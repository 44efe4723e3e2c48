from __future__ import annotations

from .model import ActivationBar, Diagram, Edge, Group, Message, Node, Separator
from .styles import estimate_text_size
from .types import Box, LayoutOptions, Size, TextMeasurer

# ============================================================================
# Sequence diagram layout engine
#
# Grid-based layout (no graph solver -- columns follow node order, rows follow
# message order).
#
# Layout strategy:
#   1. Column widths alternate [span, node, span, node, ..., span]
#   2. Row heights are [span, tallest node, (span, message) * N, span, span];
#      the doubled trailing span leaves room for bars that never close
#   3. Every box is a prefix sum over those arrays
#   4. Edge endpoints stop at the outer edge of the topmost activation bar,
#      using the depth series computed by the builder
#
# Metrics never mutates the diagram; identical inputs give identical boxes.
# ============================================================================

# Vertical room a diagonal edge takes, relative to the diagram's node height
DIAGONAL_HEIGHT_RATIO = 3 / 4


class Metrics:
    def __init__(
        self,
        diagram: Diagram,
        measure: TextMeasurer | None = None,
        options: LayoutOptions | None = None,
    ) -> None:
        self.diagram = diagram
        self.measure = measure or estimate_text_size
        self.options = options or LayoutOptions()

        self._node_index: dict[Node, int] = {node: i for i, node in enumerate(diagram.nodes)}
        self._message_index: dict[Message, int] = {
            message: i for i, message in enumerate(diagram.messages)
        }

        self.widths: list[float] = []
        self.heights: list[float] = []
        self._calculate()

    def _calculate(self) -> None:
        diagram = self.diagram

        # widths
        for node in diagram.nodes:
            self.widths.append(diagram.span_width)
            self.widths.append(node.width)
        self.widths.append(diagram.span_width)

        # heights
        self.heights.append(diagram.span_height)
        self.heights.append(max((node.height for node in diagram.nodes), default=0))
        for message in diagram.messages:
            self.heights.append(diagram.span_height)
            self.heights.append(self._content_height(message))
        self.heights.append(diagram.span_height)
        self.heights.append(diagram.span_height)

    def _content_height(self, message: Message) -> float:
        diagram = self.diagram
        if isinstance(message, Separator):
            height = 2 * self.options.separator_margin
            if message.label:
                height += self.measure(
                    message.label, diagram.default_fontfamily, diagram.default_fontsize
                ).height
            return height

        height = 0.0
        if message.label:
            height += self.measure(message.label, message.fontfamily, message.fontsize).height
        if message.diagonal:
            height += diagram.node_height * DIAGONAL_HEIGHT_RATIO
        return height

    # ------------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------------

    def _bottom(self) -> float:
        """Bottom of lifelines, groups and open activation bars."""
        return self.size().height - self.diagram.span_height

    def _row(self, message: Message) -> tuple[float, float]:
        """(top, height) of a message's content row."""
        index = self._message_index[message]
        row = index * 2 + 3
        return sum(self.heights[:row]), self.heights[row]

    def _depth(self, node: Node, index: int) -> int:
        series = self.diagram.activation_depths.get(node.id)
        if not series:
            return 0
        return series[index]

    def _target_depth(self, node: Node, index: int) -> int:
        """Depth of an edge's target: a bar closed by this edge still counts."""
        if index > 0:
            before = self._depth(node, index - 1)
        else:
            before = 1 if node.activated and self.diagram.activation else 0
        return max(before, self._depth(node, index))

    def _left_end(self, x: float, depth: int) -> float:
        """Right edge of the topmost bar, for the endpoint on the arrow's left."""
        return x + depth * self.options.activation_bar_width / 2

    def _right_end(self, x: float, depth: int) -> float:
        """Left edge of the topmost bar, for the endpoint on the arrow's right."""
        if depth == 0:
            return x
        return x + (depth - 2) * self.options.activation_bar_width / 2

    def _bar_anchor(self, message: Message) -> float:
        box = self.message(message)
        if isinstance(message, Edge) and message.diagonal:
            return box.bottom()
        return box.top()

    # ------------------------------------------------------------------------
    # Public boxes
    # ------------------------------------------------------------------------

    def size(self) -> Size:
        return Size(sum(self.widths), sum(self.heights))

    def node(self, node: Node) -> Box:
        index = self._node_index[node]
        x = sum(self.widths[: index * 2 + 1])
        y = self.heights[0] + (self.heights[1] - node.height) / 2
        return Box(x, y, node.width, node.height)

    def lifeline(self, node: Node) -> Box:
        box = self.node(node)
        return Box(box.center().x, box.bottom(), 0, self._bottom() - box.bottom())

    def edge(self, edge: Edge) -> Box:
        index = self._message_index[edge]
        y, height = self._row(edge)
        from_x = self.node(edge.from_).center().x
        from_depth = self._depth(edge.from_, index)

        if edge.is_self_referenced():
            width = edge.from_.width / 2 + self.diagram.span_width / 2
            if edge.failed:
                width /= 2
            return Box(self._left_end(from_x, from_depth), y, width, height)

        to_x = self.node(edge.to).center().x
        to_depth = self._target_depth(edge.to, index)
        if from_x <= to_x:
            left = self._left_end(from_x, from_depth)
            right = self._right_end(to_x, to_depth)
        else:
            left = self._left_end(to_x, to_depth)
            right = self._right_end(from_x, from_depth)
        width = right - left

        if edge.failed:
            # The arrow stops halfway from where it starts
            width /= 2
            starts_left = (from_x <= to_x) == (edge.direction == "forward")
            if not starts_left:
                left += width

        return Box(left, y, width, height)

    def separator(self, separator: Separator) -> Box:
        y, height = self._row(separator)
        span_width = self.diagram.span_width
        return Box(span_width / 2, y, self.size().width - span_width, height)

    def message(self, message: Message) -> Box:
        if isinstance(message, Separator):
            return self.separator(message)
        return self.edge(message)

    def group(self, group: Group) -> Box:
        if not group.nodes:
            return Box(0, 0, 0, 0)

        boxes = [self.node(node) for node in group.nodes]
        left = min(box.left() for box in boxes)
        right = max(box.right() for box in boxes)
        top = self.heights[0]
        margin = self.options.group_margin
        return Box(left, top, right - left, self._bottom() - top).extend(
            top=self.diagram.span_height / 2, left=margin, right=margin, bottom=0
        )

    def activation_bar(self, bar: ActivationBar) -> Box:
        bar_width = self.options.activation_bar_width
        x = self.node(bar.node).center().x + (bar.depth - 2) * bar_width / 2
        if bar.top_level:
            # Already open when the first message starts
            top = self.message(bar.from_).top()
        else:
            top = self._bar_anchor(bar.from_)
        bottom = self._bar_anchor(bar.to) if bar.to is not None else self._bottom()
        return Box(x, top, bar_width, bottom - top)


def layout_diagram(
    diagram: Diagram,
    measure: TextMeasurer | None = None,
    options: LayoutOptions | None = None,
) -> Metrics:
    """Lay out a built diagram. Returns the Metrics the renderer draws from."""
    return Metrics(diagram, measure, options)
