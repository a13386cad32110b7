"""facelens.viz - Overlay compositor, side panel and display.

Example:
    >>> from facelens.viz import compose_overlay, build_panel, LiveWindow
    >>> overlay = compose_overlay(frame, faces)
    >>> window = LiveWindow(title="facelens")
    >>> window.show(overlay, build_panel(faces, is_processing=False))
"""

from facelens.viz.compositor import PALETTE, annotate_faces, color_for, compose_overlay
from facelens.viz.display import LiveWindow, compose_view
from facelens.viz.panel import PanelState, build_panel, render_panel
from facelens.viz.renderer import render_marks

__all__ = [
    "PALETTE",
    "annotate_faces",
    "color_for",
    "compose_overlay",
    "LiveWindow",
    "compose_view",
    "PanelState",
    "build_panel",
    "render_panel",
    "render_marks",
]
