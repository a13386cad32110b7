"""Detection scheduler - periodic face analysis of a live frame source.

The scheduler polls its frame source on a fixed period. Every tick starts its
own analysis task, so a slow analysis never delays the next tick. Results can
therefore complete out of order; each tick takes a generation token and only
results newer than the last applied one (and issued after the last
:meth:`DetectionScheduler.stop`) reach the store.

Ticks that arrive while the analyzer has no free worker are skipped rather
than queued, so a slow or stalled backend never builds up a backlog of
stale frames.

Example:
    >>> scheduler = DetectionScheduler(analyzer, store, on_render=show)
    >>> scheduler.start(CameraSource(0))
    True
    >>> ...
    >>> scheduler.stop()
"""

import asyncio
import logging
from typing import Callable, Optional, Sequence, Set

import cv2
import numpy as np

from facelens.analyzer.base import Analyzer
from facelens.config import SchedulerConfig
from facelens.errors import DetectionFailedError, FaceLensError, PermissionDeniedError, Status
from facelens.sources import FrameSource
from facelens.store import ResultStore
from facelens.types import FaceRecord, resize_results
from facelens.viz.compositor import compose_overlay

logger = logging.getLogger(__name__)

RenderCallback = Callable[[np.ndarray], None]


class DetectionScheduler:
    """Cancellable periodic analysis loop bound to one result store.

    Args:
        analyzer: Async analyzer (see :class:`facelens.analyzer.Analyzer`).
        store: Store receiving faces, status and the stream-active flag.
        config: Tick period, analyzer options, optional downscale/timeout.
        on_render: Called with each newly composited overlay.
        show_expression_breakdown: Passed through to the compositor.
    """

    def __init__(
        self,
        analyzer: Analyzer,
        store: ResultStore,
        config: Optional[SchedulerConfig] = None,
        on_render: Optional[RenderCallback] = None,
        show_expression_breakdown: bool = False,
    ):
        self._analyzer = analyzer
        self._store = store
        self._config = config or SchedulerConfig()
        self._on_render = on_render
        self._show_breakdown = show_expression_breakdown

        self._source: Optional[FrameSource] = None
        self._task: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()

        self._generation = 0
        self._last_applied = 0
        self._stop_floor = 0

    @property
    def config(self) -> SchedulerConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        return self._task is not None

    @property
    def pending(self) -> int:
        """Number of analysis tasks still in flight."""
        return len(self._pending)

    def start(self, source: FrameSource) -> bool:
        """Acquire ``source`` and begin periodic analysis.

        Must be called from a running event loop.

        Returns:
            False if the source could not be acquired. True otherwise,
            including when already running.
        """
        if self._task is not None:
            return True

        try:
            source.acquire()
        except PermissionDeniedError as e:
            logger.warning("Cannot start stream: %s", e)
            self._store.set_status(Status.from_error(e))
            return False

        self._source = source
        self._store.set_stream_active(True)
        self._task = asyncio.get_running_loop().create_task(self._run(), name="detection-scheduler")
        logger.info("Detection started (period=%.3fs)", self._config.period_sec)
        return True

    def stop(self) -> None:
        """Stop the loop, release the source and clear faces.

        Synchronous and idempotent. Analyses still in flight run to
        completion but their results are discarded.
        """
        if self._task is None and self._source is None:
            return

        self._stop_floor = self._generation
        if self._task is not None:
            self._task.cancel()
            self._task = None
        if self._source is not None:
            self._source.release()
            self._source = None
        self._store.reset_stream()
        logger.info("Detection stopped")

    async def drain(self) -> None:
        """Wait for in-flight analyses to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def max_in_flight(self) -> Optional[int]:
        """Analyses allowed at once before ticks are skipped, None if unbounded."""
        if self._config.max_in_flight > 0:
            return self._config.max_in_flight
        return getattr(self._analyzer, "max_concurrency", None)

    def is_saturated(self) -> bool:
        """True while the analyzer has no free slot for another frame."""
        limit = self.max_in_flight
        if not limit:
            return False
        busy = max(len(self._pending), getattr(self._analyzer, "in_flight", 0))
        return busy >= limit

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._config.period_sec)
            if self.is_saturated():
                logger.debug("Analyzer busy, skipping tick (pending=%d)", len(self._pending))
                continue
            task = asyncio.get_running_loop().create_task(self.tick())
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def tick(self) -> bool:
        """Run one analysis pass on the source's current frame.

        Returns:
            True if the result was applied to the store.
        """
        source = self._source
        if source is None:
            return False
        frame = source.current_frame()
        if frame is None or frame.size == 0:
            return False

        self._generation += 1
        token = self._generation

        natural_size = source.natural_size()
        image, analyzed_size = self._prepare(frame)

        try:
            faces = await self._analyze(image)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not isinstance(e, FaceLensError):
                e = DetectionFailedError(f"Face analysis failed: {e}")
            if self._is_current(token):
                logger.warning("Detection failed: %s", e)
                self._store.set_status(Status.from_error(e))
            return False

        if not self._is_current(token) or not self._store.is_stream_active:
            logger.debug("Dropped stale result (token=%d, last=%d)", token, self._last_applied)
            return False

        faces = resize_results(faces, analyzed_size, natural_size)
        self._last_applied = token
        self._store.apply_result(faces)
        self._render(frame, faces)
        return True

    def _prepare(self, frame: np.ndarray):
        size = self._config.analysis_size
        frame_size = (frame.shape[1], frame.shape[0])
        if size is None or size == frame_size:
            return frame, frame_size
        return cv2.resize(frame, size, interpolation=cv2.INTER_AREA), size

    async def _analyze(self, image: np.ndarray) -> Sequence[FaceRecord]:
        call = self._analyzer.analyze(image, self._config.analyzer_config)
        if self._config.timeout_sec > 0:
            try:
                return await asyncio.wait_for(call, self._config.timeout_sec)
            except asyncio.TimeoutError:
                raise DetectionFailedError(
                    f"Face analysis timed out after {self._config.timeout_sec:.1f}s"
                )
        return await call

    def _is_current(self, token: int) -> bool:
        return token > self._last_applied and token > self._stop_floor

    def _render(self, frame: np.ndarray, faces: Sequence[FaceRecord]) -> None:
        if self._on_render is None:
            return
        overlay = compose_overlay(
            frame,
            faces,
            status=self._store.status,
            show_expression_breakdown=self._show_breakdown,
        )
        try:
            self._on_render(overlay)
        except Exception:
            logger.exception("Render callback failed")


__all__ = ["DetectionScheduler"]
