"""Mark renderer - draws Mark objects onto frames using cv2.

The input frame is never modified. Translucent marks are
blended inside their own bounding region only.

Example:
    >>> from facelens.viz.renderer import render_marks
    >>> from facelens.viz.marks import BarMark
    >>> output = render_marks(frame, [BarMark(x=10, y=10, w=50, h=4, color=(0, 255, 0))])
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence, Tuple

import cv2
import numpy as np

from facelens.viz.marks import (
    BarMark,
    LabelMark,
    LandmarksMark,
    Mark,
    RoundedBoxMark,
    TagMark,
)

FONT = cv2.FONT_HERSHEY_SIMPLEX

Region = Tuple[int, int, int, int]  # x0, y0, x1, y1


def render_marks(frame: np.ndarray, marks: Sequence[Mark]) -> np.ndarray:
    """Render a list of marks onto a copy of ``frame``.

    Args:
        frame: BGR image (H, W, 3).
        marks: Marks in draw order.

    Returns:
        Annotated copy, or ``frame`` itself when there are no marks.
    """
    if not marks:
        return frame

    output = frame.copy()

    for mark in marks:
        if isinstance(mark, RoundedBoxMark):
            _render_rounded_box(output, mark)
        elif isinstance(mark, LandmarksMark):
            _render_landmarks(output, mark)
        elif isinstance(mark, TagMark):
            _render_tag(output, mark)
        elif isinstance(mark, BarMark):
            _render_bar(output, mark)
        elif isinstance(mark, LabelMark):
            _render_label(output, mark)

    return output


def rounded_rect_points(x: float, y: float, w: float, h: float, radius: float) -> np.ndarray:
    """Polygon (N, 2) int32 approximating a rounded rectangle."""
    r = int(max(0.0, min(radius, w / 2.0, h / 2.0)))
    x0, y0 = int(round(x)), int(round(y))
    x1, y1 = int(round(x + w)), int(round(y + h))
    if r == 0:
        return np.array([[x0, y0], [x1, y0], [x1, y1], [x0, y1]], dtype=np.int32)

    corners = (
        ((x1 - r, y0 + r), 270),
        ((x1 - r, y1 - r), 0),
        ((x0 + r, y1 - r), 90),
        ((x0 + r, y0 + r), 180),
    )
    pts = []
    for center, start in corners:
        pts.extend(cv2.ellipse2Poly(center, (r, r), 0, start, start + 90, 15))
    return np.array(pts, dtype=np.int32)


def _shift(poly: np.ndarray, offset: Tuple[int, int]) -> np.ndarray:
    return (poly - np.array(offset, dtype=np.int32)).astype(np.int32)


def _clip_region(image: np.ndarray, x0: float, y0: float, x1: float, y1: float) -> Optional[Region]:
    h, w = image.shape[:2]
    rx0 = max(0, int(np.floor(x0)))
    ry0 = max(0, int(np.floor(y0)))
    rx1 = min(w, int(np.ceil(x1)))
    ry1 = min(h, int(np.ceil(y1)))
    if rx1 <= rx0 or ry1 <= ry0:
        return None
    return rx0, ry0, rx1, ry1


def _blend(
    image: np.ndarray,
    region: Optional[Region],
    alpha: float,
    draw: Callable[[np.ndarray, Tuple[int, int]], None],
) -> None:
    """Draw onto a copy of ``region`` and alpha-blend it back."""
    if region is None or alpha <= 0:
        return
    x0, y0, x1, y1 = region
    roi = image[y0:y1, x0:x1]
    layer = roi.copy()
    draw(layer, (x0, y0))
    roi[:] = cv2.addWeighted(layer, alpha, roi, 1.0 - alpha, 0)


def _render_rounded_box(image: np.ndarray, mark: RoundedBoxMark) -> None:
    poly = rounded_rect_points(mark.x, mark.y, mark.w, mark.h, mark.radius)

    if mark.glow > 0:
        pad = mark.glow * 2 + mark.thickness
        region = _clip_region(image, mark.x - pad, mark.y - pad, mark.x + mark.w + pad, mark.y + mark.h + pad)
        if region is not None:
            x0, y0, x1, y1 = region
            roi = image[y0:y1, x0:x1]
            glow = np.zeros_like(roi)
            cv2.polylines(glow, [_shift(poly, (x0, y0))], True, mark.color, mark.thickness + 2, cv2.LINE_AA)
            glow = cv2.GaussianBlur(glow, (0, 0), sigmaX=mark.glow / 2.0)
            roi[:] = cv2.add(roi, glow)

    region = _clip_region(image, mark.x, mark.y, mark.x + mark.w + 1, mark.y + mark.h + 1)
    _blend(
        image,
        region,
        mark.fill_alpha,
        lambda layer, off: cv2.fillPoly(layer, [_shift(poly, off)], mark.color, cv2.LINE_AA),
    )
    cv2.polylines(image, [poly], True, mark.color, mark.thickness, cv2.LINE_AA)


def _render_landmarks(image: np.ndarray, mark: LandmarksMark) -> None:
    pts = np.round(np.asarray(mark.points, dtype=np.float64)).astype(np.int32)
    if pts.size == 0:
        return

    for start, end, closed in mark.groups:
        segment = pts[start:end]
        if len(segment) >= 2:
            cv2.polylines(image, [segment], closed, mark.line_color, mark.line_thickness, cv2.LINE_AA)

    for px, py in pts:
        cv2.circle(image, (int(px), int(py)), mark.point_radius, mark.point_color, -1, cv2.LINE_AA)


def _render_tag(image: np.ndarray, mark: TagMark) -> None:
    poly = rounded_rect_points(mark.x, mark.y, mark.w, mark.h, mark.radius)
    region = _clip_region(image, mark.x, mark.y, mark.x + mark.w + 1, mark.y + mark.h + 1)
    _blend(
        image,
        region,
        mark.alpha,
        lambda layer, off: cv2.fillPoly(layer, [_shift(poly, off)], mark.color, cv2.LINE_AA),
    )
    cv2.polylines(image, [poly], True, mark.border_color, 1, cv2.LINE_AA)

    for line in mark.lines:
        org = (int(round(mark.x + line.dx)), int(round(mark.y + line.dy)))
        thickness = 2 if line.bold else 1
        cv2.putText(image, line.text, org, FONT, line.font_scale, mark.text_color, thickness, cv2.LINE_AA)


def _render_bar(image: np.ndarray, mark: BarMark) -> None:
    if mark.w <= 0 or mark.h <= 0:
        return
    x0, y0 = int(round(mark.x)), int(round(mark.y))
    x1, y1 = int(round(mark.x + mark.w)), int(round(mark.y + mark.h))
    if x1 <= x0:
        x1 = x0 + 1
    region = _clip_region(image, x0, y0, x1, y1)
    _blend(
        image,
        region,
        mark.alpha,
        lambda layer, off: cv2.rectangle(layer, (x0 - off[0], y0 - off[1]), (x1 - off[0] - 1, y1 - off[1] - 1), mark.color, -1),
    )


def _render_label(image: np.ndarray, mark: LabelMark) -> None:
    x, y = int(round(mark.x)), int(round(mark.y))
    if mark.background is not None:
        label_size = cv2.getTextSize(mark.text, FONT, mark.font_scale, 1)[0]
        cv2.rectangle(
            image,
            (x - 2, y - label_size[1] - 4),
            (x + label_size[0] + 4, y + 4),
            mark.background,
            -1,
        )
    cv2.putText(image, mark.text, (x, y), FONT, mark.font_scale, mark.color, 1, cv2.LINE_AA)
