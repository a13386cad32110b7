"""FaceLensApp - wires store, analyzer, scheduler, upload pipeline and window."""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Set

import numpy as np

from facelens.analyzer.adapter import FaceAnalyzer
from facelens.analyzer.base import Analyzer
from facelens.config import AppConfig
from facelens.errors import ModelUnavailableError, Status
from facelens.scheduler import DetectionScheduler
from facelens.sources import CameraSource, FrameSource
from facelens.store import ResultStore, StoreSnapshot
from facelens.upload import UploadPipeline
from facelens.viz.display import LiveWindow
from facelens.viz.panel import build_panel

logger = logging.getLogger(__name__)


class FaceLensApp:
    """Interactive face analysis session.

    Keys: ``s`` starts/stops the live stream, ``u`` analyzes ``image_path``,
    ``q`` or ESC quits.

    Args:
        config: Application configuration.
        analyzer: Analyzer override (default: built from ``config.analyzer``).
        source: Live frame source (default: camera from ``config.camera``).
        window: Window override.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        analyzer: Optional[Analyzer] = None,
        source: Optional[FrameSource] = None,
        window: Optional[LiveWindow] = None,
    ):
        self.config = config or AppConfig()
        self.store = ResultStore()
        self.analyzer = analyzer or FaceAnalyzer.from_settings(self.config.analyzer)

        cam = self.config.camera
        self.source = source or CameraSource(cam.index, cam.width, cam.height)

        display = self.config.display
        self.window = window or LiveWindow(display.title, display.panel_width, display.wait_ms)
        self.scheduler = DetectionScheduler(
            self.analyzer,
            self.store,
            self.config.scheduler,
            on_render=self._on_render,
            show_expression_breakdown=display.show_expression_breakdown,
        )
        self.upload = UploadPipeline(
            self.analyzer,
            self.store,
            self.config.upload,
            scheduler=self.scheduler,
            show_expression_breakdown=display.show_expression_breakdown,
        )

        self._view: Optional[np.ndarray] = None
        self._uploads: Set[asyncio.Task] = set()
        self._unsubscribe = self.store.subscribe(self._on_store_change)

    def initialize(self) -> bool:
        """Load models. On failure the app keeps running with an error status."""
        if not isinstance(self.analyzer, FaceAnalyzer):
            return True
        try:
            self.analyzer.initialize()
        except ModelUnavailableError as e:
            logger.error("Analyzer unavailable: %s", e)
            self.store.set_status(Status.from_error(e))
            return False
        return True

    def toggle_stream(self) -> bool:
        """Start or stop the live stream. Returns whether it is now active."""
        self._view = None
        if self.scheduler.is_running:
            self.scheduler.stop()
            return False
        return self.scheduler.start(self.source)

    def request_upload(self, image_path: Optional[Path]) -> None:
        """Analyze ``image_path`` in the background."""
        task = asyncio.get_running_loop().create_task(self._upload(image_path))
        self._uploads.add(task)
        task.add_done_callback(self._uploads.discard)

    async def _upload(self, image_path: Optional[Path]) -> None:
        result = await self.upload.process(image_path)
        if result is not None:
            self._view = result.overlay

    def current_view(self) -> np.ndarray:
        """Latest composited surface, or the live/blank frame before one exists."""
        if self._view is not None:
            return self._view
        frame = self.source.current_frame() if self.scheduler.is_running else None
        if frame is not None:
            return frame
        cam = self.config.camera
        return np.zeros((cam.height, cam.width, 3), dtype=np.uint8)

    async def run(self, image_path: Optional[Path] = None, autostart: bool = False) -> None:
        """UI loop. Returns when the user quits."""
        self.initialize()
        if autostart:
            self.toggle_stream()
        elif image_path is not None:
            self.request_upload(image_path)

        try:
            while True:
                snap = self.store.snapshot()
                key = self.window.show(
                    self.current_view(),
                    build_panel(snap.faces, snap.is_processing, snap.status),
                )
                if key in ("q", "esc"):
                    break
                if key == "s":
                    self.toggle_stream()
                elif key == "u":
                    if image_path is None:
                        logger.info("No --image given; nothing to upload")
                    else:
                        self.request_upload(image_path)
                await asyncio.sleep(0.001)
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        self.scheduler.stop()
        await self.scheduler.drain()
        if self._uploads:
            await asyncio.gather(*list(self._uploads), return_exceptions=True)
        self._unsubscribe()
        self.window.close()
        if isinstance(self.analyzer, FaceAnalyzer):
            self.analyzer.cleanup()

    def _on_render(self, overlay: np.ndarray) -> None:
        self._view = overlay

    def _on_store_change(self, snap: StoreSnapshot) -> None:
        if snap.status.is_error:
            logger.debug("Status: %s %s", snap.status.kind.value, snap.status.message)
