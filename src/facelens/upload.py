"""Upload pipeline - one-shot analysis of a still image."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from facelens.analyzer.base import Analyzer
from facelens.config import UploadConfig
from facelens.errors import DetectionFailedError, ErrorKind, FaceLensError, Status
from facelens.scheduler import DetectionScheduler
from facelens.sources import ImageInput, decode_image
from facelens.store import ResultStore
from facelens.types import FaceRecord
from facelens.viz.compositor import compose_overlay

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadResult:
    """Outcome of a successful upload.

    Attributes:
        image: Decoded BGR image.
        faces: Faces found in ``image``.
        overlay: ``image`` with the face overlay drawn on it.
    """

    image: np.ndarray
    faces: Tuple[FaceRecord, ...]
    overlay: np.ndarray


class UploadPipeline:
    """Decode, analyze once and publish the result of a still image.

    Only one upload runs at a time. Calls made while one is processing are
    ignored, not queued.

    Args:
        analyzer: Async analyzer.
        store: Store receiving faces, status and the processing flag.
        config: Analyzer options and live-stream policy.
        scheduler: Live scheduler, stopped first when ``config.stop_stream``.
        show_expression_breakdown: Passed through to the compositor.
    """

    def __init__(
        self,
        analyzer: Analyzer,
        store: ResultStore,
        config: Optional[UploadConfig] = None,
        scheduler: Optional[DetectionScheduler] = None,
        show_expression_breakdown: bool = False,
    ):
        self._analyzer = analyzer
        self._store = store
        self._config = config or UploadConfig()
        self._scheduler = scheduler
        self._show_breakdown = show_expression_breakdown
        self._processing = False

    @property
    def is_processing(self) -> bool:
        return self._processing

    async def process(self, data: Optional[ImageInput]) -> Optional[UploadResult]:
        """Analyze one image and replace the store's faces with the result.

        Args:
            data: Image path, encoded bytes or decoded array. None means
                nothing was selected and is a no-op.

        Returns:
            The result, or None if the call was ignored, rejected or failed.
            Failures are reported through the store status.
        """
        if data is None:
            return None
        if self._processing:
            logger.info("Upload ignored: another image is still processing")
            return None
        if self._store.is_stream_active:
            if self._config.stop_stream and self._scheduler is not None:
                logger.info("Stopping live stream for upload")
                self._scheduler.stop()
            else:
                self._store.set_status(
                    Status(ErrorKind.STREAM_ACTIVE, "Stop the live stream before analyzing an image")
                )
                return None

        self._processing = True
        self._store.set_processing(True)
        try:
            image = await asyncio.to_thread(decode_image, data)
            faces = await self._analyzer.analyze(image, self._config.analyzer_config)
        except FaceLensError as e:
            logger.warning("Upload failed: %s", e)
            self._store.set_status(Status.from_error(e))
            return None
        except Exception as e:
            logger.exception("Upload failed")
            self._store.set_status(Status.from_error(DetectionFailedError(f"Face analysis failed: {e}")))
            return None
        finally:
            self._processing = False
            self._store.set_processing(False)

        self._store.apply_result(faces)
        overlay = compose_overlay(image, faces, show_expression_breakdown=self._show_breakdown)
        logger.info("Upload analyzed: %d face(s)", len(faces))
        return UploadResult(image=image, faces=tuple(faces), overlay=overlay)


__all__ = ["UploadPipeline", "UploadResult"]
