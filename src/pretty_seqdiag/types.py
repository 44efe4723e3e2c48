from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

# ============================================================================
# Geometry primitives
# ============================================================================


@dataclass(slots=True)
class Point:
    x: float
    y: float


@dataclass(slots=True)
class Size:
    width: float
    height: float

    def move(self, x: float, y: float) -> Box:
        """Place this size at (x, y)."""
        return Box(x, y, self.width, self.height)


@dataclass(slots=True, init=False)
class Box:
    """Axis-aligned rectangle: top-left coordinate plus size."""
    coordinate: Point
    width: float
    height: float

    def __init__(self, x: float, y: float, width: float, height: float) -> None:
        self.coordinate = Point(x, y)
        self.width = width
        self.height = height

    def top(self) -> float:
        return self.coordinate.y

    def left(self) -> float:
        return self.coordinate.x

    def right(self) -> float:
        return self.coordinate.x + self.width

    def bottom(self) -> float:
        return self.coordinate.y + self.height

    def center(self) -> Point:
        return Point(self.coordinate.x + self.width / 2, self.coordinate.y + self.height / 2)

    def size(self) -> Size:
        return Size(self.width, self.height)

    def extend(
        self,
        amount: float = 0,
        *,
        top: float | None = None,
        left: float | None = None,
        right: float | None = None,
        bottom: float | None = None,
    ) -> Box:
        """Return a copy padded by `amount` on every side, or per side if given."""
        top = amount if top is None else top
        left = amount if left is None else left
        right = amount if right is None else right
        bottom = amount if bottom is None else bottom
        return Box(
            self.coordinate.x - left,
            self.coordinate.y - top,
            self.width + left + right,
            self.height + top + bottom,
        )


# ============================================================================
# Layout options -- user-facing configuration
# ============================================================================

# (label, font family, font size) -> rendered size
TextMeasurer = Callable[[str, Optional[str], float], Size]


@dataclass(slots=True)
class LayoutOptions:
    # Width of an activation bar; nested bars shift by half of it
    activation_bar_width: float = 8
    # Horizontal padding between a group's outermost nodes and its border
    group_margin: float = 16
    # Vertical padding above and below a separator label
    separator_margin: float = 8
