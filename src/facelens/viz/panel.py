"""Side panel - read-only summary of the current face list.

:func:`build_panel` derives what the panel shows from ``(faces, is_processing)``;
:func:`render_panel` draws it into its own image, placed next to the overlay.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from facelens.errors import Status
from facelens.types import FaceRecord
from facelens.viz.compositor import color_for, format_percent, js_round, sorted_expressions
from facelens.viz.marks import Color

FONT = cv2.FONT_HERSHEY_SIMPLEX

BACKGROUND: Color = (30, 30, 30)
CARD_BACKGROUND: Color = (50, 50, 50)
TEXT: Color = (235, 235, 235)
MUTED: Color = (160, 160, 160)
ERROR_RED: Color = (60, 60, 220)

FEATURES = (
    "Start/stop webcam stream",
    "Facial recognition on images",
    "Display captured images with overlays",
    "Show age and gender",
    "Detect multiple faces",
    "Analyze emotions",
)

PROCESSING_TEXT = "Processing face detection..."


@dataclass(frozen=True)
class ExpressionRow:
    name: str
    probability: float

    @property
    def percent_text(self) -> str:
        return format_percent(self.probability)


@dataclass(frozen=True)
class FaceCard:
    """One face entry in the panel."""

    number: int
    color: Color
    age_text: str
    gender_text: str
    expressions: Tuple[ExpressionRow, ...] = ()


@dataclass(frozen=True)
class PanelState:
    """Everything the panel displays.

    Attributes:
        title: Header line.
        is_processing: True while an upload is being analyzed.
        cards: One card per face, in list order.
        status: Error status shown as a footer banner, or None.
    """

    title: str
    is_processing: bool = False
    cards: Tuple[FaceCard, ...] = ()
    status: Optional[Status] = None

    @property
    def is_empty(self) -> bool:
        """True for the "no faces yet" informational state."""
        return not self.is_processing and not self.cards


def panel_title(face_count: int, is_processing: bool) -> str:
    if is_processing:
        return "Analyzing..."
    if face_count > 0:
        return f"Detected Faces ({face_count})"
    return "Detection Results"


def build_panel(
    faces: Sequence[FaceRecord],
    is_processing: bool,
    status: Optional[Status] = None,
) -> PanelState:
    """Derive the panel contents from the store's faces and processing flag."""
    cards: Tuple[FaceCard, ...] = ()
    if not is_processing:
        cards = tuple(
            FaceCard(
                number=i + 1,
                color=color_for(i),
                age_text=f"{js_round(face.age)} years",
                gender_text=f"{face.gender.value} ({format_percent(face.gender_probability)})",
                expressions=tuple(ExpressionRow(n, p) for n, p in sorted_expressions(face.expressions)),
            )
            for i, face in enumerate(faces)
        )
    if status is not None and not status.is_error:
        status = None
    return PanelState(
        title=panel_title(len(faces), is_processing),
        is_processing=is_processing,
        cards=cards,
        status=status,
    )


def render_panel(state: PanelState, height: int, width: int = 360) -> np.ndarray:
    """Draw the panel as a (height, width, 3) BGR image.

    Cards that do not fit in ``height`` are cut off at the bottom.
    """
    panel = np.full((height, width, 3), BACKGROUND, dtype=np.uint8)
    _draw_body(panel, state, height, width)
    if state.status is not None:
        _draw_status(panel, state.status, height, width)
    return panel


def _draw_body(panel: np.ndarray, state: PanelState, height: int, width: int) -> None:
    y = 32
    cv2.putText(panel, state.title, (12, y), FONT, 0.65, TEXT, 2, cv2.LINE_AA)
    y += 14
    cv2.line(panel, (12, y), (width - 12, y), MUTED, 1)
    y += 26

    if state.is_processing:
        cv2.putText(panel, PROCESSING_TEXT, (12, y), FONT, 0.5, MUTED, 1, cv2.LINE_AA)
        return

    if state.is_empty:
        cv2.putText(panel, "No faces detected yet.", (12, y), FONT, 0.5, TEXT, 1, cv2.LINE_AA)
        y += 28
        cv2.putText(panel, "Features:", (12, y), FONT, 0.5, MUTED, 1, cv2.LINE_AA)
        for feature in FEATURES:
            y += 22
            cv2.putText(panel, f"- {feature}", (20, y), FONT, 0.45, MUTED, 1, cv2.LINE_AA)
        return

    for card in state.cards:
        if y >= height:
            break
        y = _draw_card(panel, card, y, width)


def _draw_card(panel: np.ndarray, card: FaceCard, top: int, width: int) -> int:
    rows: List[ExpressionRow] = list(card.expressions)
    card_height = 58 + 20 * len(rows)
    left, right = 8, width - 8
    cv2.rectangle(panel, (left, top), (right, top + card_height), CARD_BACKGROUND, -1)

    # swatch with face number
    cv2.rectangle(panel, (left + 8, top + 8), (left + 36, top + 36), card.color, -1)
    cv2.putText(panel, str(card.number), (left + 15, top + 28), FONT, 0.55, (0, 0, 0), 2, cv2.LINE_AA)
    cv2.putText(panel, card.age_text, (left + 46, top + 20), FONT, 0.5, TEXT, 1, cv2.LINE_AA)
    cv2.putText(panel, card.gender_text, (left + 46, top + 40), FONT, 0.45, MUTED, 1, cv2.LINE_AA)

    y = top + 60
    bar_left, bar_right = left + 120, right - 50
    for row in rows:
        cv2.putText(panel, row.name, (left + 10, y + 4), FONT, 0.42, TEXT, 1, cv2.LINE_AA)
        cv2.rectangle(panel, (bar_left, y - 6), (bar_right, y + 2), MUTED, 1)
        filled = bar_left + int((bar_right - bar_left) * min(1.0, max(0.0, row.probability)))
        if filled > bar_left:
            cv2.rectangle(panel, (bar_left, y - 6), (filled, y + 2), card.color, -1)
        cv2.putText(panel, row.percent_text, (bar_right + 6, y + 4), FONT, 0.42, TEXT, 1, cv2.LINE_AA)
        y += 20

    return top + card_height + 10


def _draw_status(panel: np.ndarray, status: Status, height: int, width: int) -> None:
    text = f"{status.kind.value}: {status.message}" if status.message else status.kind.value
    cv2.rectangle(panel, (0, height - 30), (width, height), ERROR_RED, -1)
    cv2.putText(panel, text[:48], (8, height - 10), FONT, 0.45, TEXT, 1, cv2.LINE_AA)


__all__ = [
    "ExpressionRow",
    "FaceCard",
    "PanelState",
    "FEATURES",
    "PROCESSING_TEXT",
    "panel_title",
    "build_panel",
    "render_panel",
]
