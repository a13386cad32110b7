"""Async analyzer facade over blocking face/expression backends.

The backends do CPU/GPU work synchronously. :class:`FaceAnalyzer` runs them
on a small thread pool so the event loop stays free while a frame is being
analyzed, and validates raw detections into :class:`FaceRecord` once, here.
"""

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import numpy as np

from facelens.analyzer.base import ExpressionBackend, FaceBackend
from facelens.config import AnalyzerSettings
from facelens.errors import DetectionFailedError, FaceLensError, ModelUnavailableError
from facelens.types import AnalyzerConfig, FaceRecord

logger = logging.getLogger(__name__)


class FaceAnalyzer:
    """Analyzer combining a face backend with an optional expression backend.

    Args:
        face_backend: Detection/landmark/age/gender backend.
        expression_backend: Expression backend, or None to skip expressions.
        device: Device string passed to the backends.
        max_workers: Executor threads for backend calls.

    Example:
        >>> analyzer = FaceAnalyzer.from_settings(AnalyzerSettings())
        >>> analyzer.initialize()
        >>> faces = await analyzer.analyze(frame, AnalyzerConfig())
    """

    def __init__(
        self,
        face_backend: FaceBackend,
        expression_backend: Optional[ExpressionBackend] = None,
        device: str = "cpu",
        max_workers: int = 1,
    ):
        self._face_backend = face_backend
        self._expression_backend = expression_backend
        self._device = device
        self._max_workers = max(1, max_workers)
        self._executor = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="analyzer")
        self._initialized = False
        self._jobs_lock = threading.Lock()
        self._jobs = 0

    @classmethod
    def from_settings(cls, settings: AnalyzerSettings) -> "FaceAnalyzer":
        """Build the default InsightFace + HSEmotion analyzer."""
        from facelens.analyzer.insightface import InsightFaceBackend
        face_backend = InsightFaceBackend(model_name=settings.model_name, models_dir=settings.resolve_models_dir())

        expression_backend = None
        if settings.expression_model:
            from facelens.analyzer.hsemotion import HSEmotionBackend

            expression_backend = HSEmotionBackend(model_name=settings.expression_model)

        return cls(
            face_backend,
            expression_backend,
            device=settings.device,
            max_workers=settings.max_workers,
        )

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def max_concurrency(self) -> int:
        """Number of analyses the executor can run at the same time."""
        return self._max_workers

    @property
    def in_flight(self) -> int:
        """Executor jobs submitted and not yet finished.

        A job whose awaiting caller timed out keeps counting until its
        worker thread returns.
        """
        with self._jobs_lock:
            return self._jobs

    def initialize(self) -> None:
        """Load models.

        Raises:
            ModelUnavailableError: If a backend cannot be initialized.
        """
        if self._initialized:
            return
        try:
            self._face_backend.initialize(self._device)
            if self._expression_backend is not None:
                self._expression_backend.initialize(self._device)
        except Exception as e:
            raise ModelUnavailableError(f"Analyzer backend failed to initialize: {e}") from e
        self._initialized = True

    def analyze_sync(self, frame: np.ndarray, config: AnalyzerConfig) -> List[FaceRecord]:
        """Run detection and expression analysis on the calling thread."""
        if not self._initialized:
            raise ModelUnavailableError("Analyzer not initialized")

        detections = self._face_backend.detect(frame, config)

        if self._expression_backend is not None and detections:
            expressions = self._expression_backend.analyze(frame, [d.bbox for d in detections])
            for det, expr in zip(detections, expressions):
                det.expressions = expr or None

        return [FaceRecord.from_detection(i, det) for i, det in enumerate(detections)]

    async def analyze(self, frame: np.ndarray, config: AnalyzerConfig) -> List[FaceRecord]:
        """Analyze a frame without blocking the event loop.

        Raises:
            ModelUnavailableError: If the analyzer was never initialized.
            DetectionFailedError: If a backend call fails.
        """
        with self._jobs_lock:
            self._jobs += 1
        try:
            job = self._executor.submit(self.analyze_sync, frame, config)
        except RuntimeError as e:
            self._job_done(None)
            raise ModelUnavailableError(f"Analyzer is shut down: {e}") from e
        job.add_done_callback(self._job_done)
        try:
            return await asyncio.wrap_future(job)
        except FaceLensError:
            raise
        except Exception as e:
            raise DetectionFailedError(f"Face analysis failed: {e}") from e

    def _job_done(self, _job) -> None:
        with self._jobs_lock:
            self._jobs -= 1

    def cleanup(self) -> None:
        """Shut down the executor and release backend resources."""
        self._executor.shutdown(wait=False)
        self._face_backend.cleanup()
        if self._expression_backend is not None:
            self._expression_backend.cleanup()
        self._initialized = False


__all__ = ["FaceAnalyzer"]
