"""Declarative overlay mark types.

Marks describe *what* to draw, not *how*. :func:`facelens.viz.renderer.render_marks`
interprets marks and produces pixels.

All coordinates are pixels in the displayed frame. Colors are BGR tuples.
Mark types are frozen dataclasses, comparable with ``==`` for testing.

Example:
    >>> from facelens.viz.marks import RoundedBoxMark, BarMark
    >>> marks = [
    ...     RoundedBoxMark(x=40, y=60, w=120, h=150, color=(82, 82, 255)),
    ...     BarMark(x=40, y=52, w=108.0, h=4, color=(82, 82, 255)),
    ... ]
"""

from dataclasses import dataclass
from typing import Tuple, Union

Color = Tuple[int, int, int]


@dataclass(frozen=True)
class RoundedBoxMark:
    """Rounded bounding box with glow and translucent fill."""

    x: float
    y: float
    w: float
    h: float
    color: Color
    radius: int = 8
    thickness: int = 3
    glow: int = 10  # blur radius of the glow, 0 disables it
    fill_alpha: float = 0x20 / 255.0


@dataclass(frozen=True)
class LandmarksMark:
    """Point set with polyline groups.

    ``groups`` are ``(start, end, closed)`` index ranges, end exclusive.
    """

    points: Tuple[Tuple[float, float], ...]
    groups: Tuple[Tuple[int, int, bool], ...] = ()
    line_color: Color = (255, 255, 0)
    point_color: Color = (255, 0, 255)
    point_radius: int = 1
    line_thickness: int = 1


@dataclass(frozen=True)
class TextLine:
    """One line of text inside a :class:`TagMark`, offset from its origin."""

    text: str
    dx: int
    dy: int
    font_scale: float = 0.45
    bold: bool = False


@dataclass(frozen=True)
class TagMark:
    """Filled rounded rectangle with border and text lines.

    Used for the per-face info panel and the dominant expression tag.
    """

    x: float
    y: float
    w: float
    h: float
    color: Color
    lines: Tuple[TextLine, ...] = ()
    alpha: float = 0xCC / 255.0
    radius: int = 5
    border_color: Color = (255, 255, 255)
    text_color: Color = (255, 255, 255)


@dataclass(frozen=True)
class BarMark:
    """Solid bar. ``w`` is the filled width in pixels."""

    x: float
    y: float
    w: float
    h: float
    color: Color
    alpha: float = 0xAA / 255.0


@dataclass(frozen=True)
class LabelMark:
    """Plain text label, optionally on a background box."""

    text: str
    x: float
    y: float
    color: Color = (255, 255, 255)
    background: Union[Color, None] = None
    font_scale: float = 0.45


Mark = Union[RoundedBoxMark, LandmarksMark, TagMark, BarMark, LabelMark]

__all__ = [
    "Color",
    "Mark",
    "RoundedBoxMark",
    "LandmarksMark",
    "TextLine",
    "TagMark",
    "BarMark",
    "LabelMark",
]
