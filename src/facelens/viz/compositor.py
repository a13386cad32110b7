"""Overlay compositor - face records to marks to pixels.

The compositor is split in two steps:

- :func:`annotate_faces` turns FaceRecords into declarative marks
  (colors, text and geometry, no pixels).
- :func:`compose_overlay` renders those marks over a copy of the frame.

Every call is a full redraw. Nothing from a previous frame survives.

Example:
    >>> marks = annotate_faces(store.faces)
    >>> overlay = compose_overlay(frame, store.faces, status=store.status)
"""

import math
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from facelens.errors import Status
from facelens.types import FaceRecord
from facelens.viz.marks import (
    BarMark,
    Color,
    LabelMark,
    LandmarksMark,
    Mark,
    RoundedBoxMark,
    TagMark,
    TextLine,
)
from facelens.viz.renderer import render_marks

PALETTE_HEX = (
    "#FF5252",
    "#FF4081",
    "#E040FB",
    "#7C4DFF",
    "#536DFE",
    "#448AFF",
    "#40C4FF",
    "#18FFFF",
    "#64FFDA",
    "#69F0AE",
    "#B2FF59",
    "#EEFF41",
)


def hex_to_bgr(value: str) -> Color:
    """Convert ``#RRGGBB`` to a BGR tuple."""
    text = value.lstrip("#")
    r, g, b = int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16)
    return (b, g, r)


PALETTE: Tuple[Color, ...] = tuple(hex_to_bgr(h) for h in PALETTE_HEX)

WHITE: Color = (255, 255, 255)
DARK: Color = (40, 40, 40)
ERROR_RED: Color = (60, 60, 220)

# 68-point contour groups: (start, end exclusive, closed)
LANDMARK_GROUPS: Tuple[Tuple[int, int, bool], ...] = (
    (0, 17, False),   # jaw
    (17, 22, False),  # right brow
    (22, 27, False),  # left brow
    (27, 36, False),  # nose
    (36, 42, True),   # right eye
    (42, 48, True),   # left eye
    (48, 60, True),   # outer mouth
    (60, 68, True),   # inner mouth
)
LANDMARK_LINE_COLOR: Color = (255, 255, 0)
LANDMARK_POINT_COLOR: Color = (255, 0, 255)

DOMINANT_THRESHOLD = 0.2
BREAKDOWN_THRESHOLD = 0.1

TAG_OFFSET_Y = 25
TAG_SIZE = (120, 20)
INFO_OFFSET_Y = 90
INFO_SIZE = (180, 80)
INFO_MIN_X = 10
BAR_OFFSET_Y = 8
BAR_HEIGHT = 4


def color_for(index: int) -> Color:
    """Palette color of the face at ``index``, wrapping after 12."""
    return PALETTE[index % len(PALETTE)]


def js_round(value: float) -> int:
    """Round half up (23.5 -> 24, -0.5 -> 0)."""
    return int(math.floor(value + 0.5))


def format_percent(probability: float) -> str:
    return f"{js_round(probability * 100)}%"


def dominant_expression(expressions: Optional[Mapping[str, float]]) -> Optional[Tuple[str, float]]:
    """Highest-probability expression; the first one wins ties."""
    if not expressions:
        return None
    best_name, best_p = None, -1.0
    for name, p in expressions.items():
        if p > best_p:
            best_name, best_p = name, p
    return best_name, best_p


def sorted_expressions(expressions: Optional[Mapping[str, float]]) -> List[Tuple[str, float]]:
    """Expressions by descending probability, stable for ties."""
    if not expressions:
        return []
    return sorted(expressions.items(), key=lambda item: item[1], reverse=True)


def info_lines(face: FaceRecord) -> Tuple[str, str, str]:
    """Text of the per-face info panel."""
    return (
        f"Face {face.index + 1}",
        f"Age: {js_round(face.age)}",
        f"{face.gender.value} ({format_percent(face.gender_probability)})",
    )


def expression_label(name: str, probability: float) -> str:
    return f"{name} ({format_percent(probability)})"


def annotate_faces(
    faces: Sequence[FaceRecord],
    show_expression_breakdown: bool = False,
) -> List[Mark]:
    """Build overlay marks for a face list.

    Colors follow list position, so the i-th face always gets
    ``PALETTE[i % 12]``.

    Args:
        faces: Faces in displayed-frame pixels.
        show_expression_breakdown: Also list every expression with
            probability >= 0.1 under the box.

    Returns:
        Marks in draw order.
    """
    marks: List[Mark] = []

    for i, face in enumerate(faces):
        color = color_for(i)
        box = face.box

        marks.append(RoundedBoxMark(x=box.x, y=box.y, w=box.width, h=box.height, color=color))

        if face.landmarks is not None:
            marks.append(
                LandmarksMark(
                    points=face.landmarks,
                    groups=LANDMARK_GROUPS,
                    line_color=LANDMARK_LINE_COLOR,
                    point_color=LANDMARK_POINT_COLOR,
                )
            )

        dominant = dominant_expression(face.expressions)
        if dominant is not None and dominant[1] > DOMINANT_THRESHOLD:
            name, p = dominant
            marks.append(
                TagMark(
                    x=box.x,
                    y=box.y - TAG_OFFSET_Y,
                    w=TAG_SIZE[0],
                    h=TAG_SIZE[1],
                    color=color,
                    lines=(TextLine(expression_label(name, p), dx=5, dy=15),),
                    radius=4,
                    border_color=WHITE,
                )
            )

        title, age_text, gender_text = info_lines(face)
        marks.append(
            TagMark(
                x=max(INFO_MIN_X, box.x),
                y=box.y - INFO_OFFSET_Y,
                w=INFO_SIZE[0],
                h=INFO_SIZE[1],
                color=color,
                lines=(
                    TextLine(title, dx=10, dy=20, font_scale=0.5, bold=True),
                    TextLine(age_text, dx=10, dy=40),
                    TextLine(gender_text, dx=10, dy=60),
                ),
                border_color=WHITE,
            )
        )

        marks.append(
            BarMark(
                x=box.x,
                y=box.y - BAR_OFFSET_Y,
                w=box.width * face.score,
                h=BAR_HEIGHT,
                color=color,
            )
        )

        if show_expression_breakdown:
            marks.extend(_breakdown_marks(face, color))

    return marks


def _breakdown_marks(face: FaceRecord, color: Color) -> List[Mark]:
    marks: List[Mark] = []
    y = face.box.y + face.box.height + 18
    for name, p in sorted_expressions(face.expressions):
        if p < BREAKDOWN_THRESHOLD:
            continue
        marks.append(LabelMark(text=expression_label(name, p), x=face.box.x, y=y, color=color, background=DARK))
        y += 18
    return marks


def status_marks(status: Optional[Status], width: int) -> List[Mark]:
    """Banner marks for an error status (none when OK)."""
    if status is None or not status.is_error:
        return []
    text = f"{status.kind.value}: {status.message}" if status.message else status.kind.value
    return [
        TagMark(
            x=0,
            y=0,
            w=width,
            h=28,
            color=ERROR_RED,
            lines=(TextLine(text, dx=10, dy=19, font_scale=0.55),),
            radius=0,
            border_color=ERROR_RED,
        )
    ]


def compose_overlay(
    frame: np.ndarray,
    faces: Sequence[FaceRecord],
    status: Optional[Status] = None,
    show_expression_breakdown: bool = False,
) -> np.ndarray:
    """Render the full overlay for ``faces`` over a copy of ``frame``.

    With no faces and no error status the result equals ``frame``.
    """
    marks = annotate_faces(faces, show_expression_breakdown=show_expression_breakdown)
    marks.extend(status_marks(status, frame.shape[1]))
    return render_marks(frame, marks)


def expression_summary(faces: Sequence[FaceRecord]) -> Dict[int, Optional[str]]:
    """Dominant expression label per face index (None when below threshold)."""
    summary: Dict[int, Optional[str]] = {}
    for face in faces:
        dominant = dominant_expression(face.expressions)
        if dominant is not None and dominant[1] > DOMINANT_THRESHOLD:
            summary[face.index] = expression_label(*dominant)
        else:
            summary[face.index] = None
    return summary


__all__ = [
    "PALETTE",
    "PALETTE_HEX",
    "LANDMARK_GROUPS",
    "hex_to_bgr",
    "color_for",
    "js_round",
    "format_percent",
    "dominant_expression",
    "sorted_expressions",
    "info_lines",
    "expression_label",
    "annotate_faces",
    "status_marks",
    "compose_overlay",
    "expression_summary",
]
