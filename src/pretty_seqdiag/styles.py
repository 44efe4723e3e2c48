from __future__ import annotations

from .types import Size

# ============================================================================
# Font metrics -- character width estimates used when the host does not
# supply a real text measurer.
# ============================================================================

# Font weight assumed for message and separator labels
LABEL_FONT_WEIGHT = 400

LINE_HEIGHT = 1.2


def estimate_text_width(text: str, font_size: float, font_weight: int) -> float:
    """Average character width in px at the given font size and weight (proportional font)."""
    if font_weight >= 600:
        width_ratio = 0.58
    elif font_weight >= 500:
        width_ratio = 0.55
    else:
        width_ratio = 0.52
    return len(text) * font_size * width_ratio


def estimate_text_size(label: str, font_family: str | None, font_size: float) -> Size:
    """Default text measurer: one line per "\\n", widest line wins."""
    lines = label.split("\n")
    width = max(estimate_text_width(line, font_size, LABEL_FONT_WEIGHT) for line in lines)
    return Size(width, len(lines) * font_size * LINE_HEIGHT)
