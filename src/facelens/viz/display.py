"""LiveWindow - cv2 window showing the overlay next to the side panel."""

from typing import Optional

import cv2
import numpy as np

from facelens.viz.panel import PanelState, render_panel

KEY_ESC = 27


def compose_view(overlay: np.ndarray, state: PanelState, panel_width: int = 360) -> np.ndarray:
    """Place the rendered panel to the right of ``overlay``."""
    panel = render_panel(state, overlay.shape[0], panel_width)
    return np.hstack([overlay, panel])


class LiveWindow:
    """Display window using cv2.imshow.

    Args:
        title: Window title.
        panel_width: Side panel width in pixels.
        wait_ms: cv2.waitKey delay in milliseconds (0 waits for a key).
    """

    def __init__(self, title: str = "facelens", panel_width: int = 360, wait_ms: int = 1):
        self._title = title
        self._panel_width = panel_width
        self._wait_ms = wait_ms
        self._opened = False

    @property
    def title(self) -> str:
        return self._title

    def show(self, overlay: np.ndarray, state: PanelState) -> Optional[str]:
        """Show one view and poll the keyboard.

        Returns:
            The pressed key as a lowercase character, "esc", or None.
        """
        cv2.imshow(self._title, compose_view(overlay, state, self._panel_width))
        self._opened = True
        key = cv2.waitKey(self._wait_ms) & 0xFF
        if key == 0xFF:
            return None
        if key == KEY_ESC:
            return "esc"
        return chr(key).lower()

    def close(self) -> None:
        """Close the display window."""
        if self._opened:
            cv2.destroyWindow(self._title)
            self._opened = False
