"""Backend protocol definitions for face analysis."""

from typing import Dict, List, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np

from facelens.types import AnalyzerConfig, Detection, FaceRecord


class FaceBackend(Protocol):
    """Protocol for detection + attribute backends.

    Implementations return detections with box, score, and whichever of
    landmarks, age and gender they estimate. Coordinates are pixels in the
    image passed in.
    """

    def initialize(self, device: str = "cpu") -> None:
        """Initialize the backend and load models."""
        ...

    def detect(self, image: np.ndarray, config: AnalyzerConfig) -> List[Detection]:
        """Detect faces in a BGR image."""
        ...

    def cleanup(self) -> None:
        """Release resources and unload models."""
        ...


class ExpressionBackend(Protocol):
    """Protocol for expression classification backends."""

    def initialize(self, device: str = "cpu") -> None:
        ...

    def analyze(
        self, image: np.ndarray, boxes: Sequence[Tuple[float, float, float, float]]
    ) -> List[Dict[str, float]]:
        """Return one emotion -> probability mapping per box."""
        ...

    def cleanup(self) -> None:
        ...


@runtime_checkable
class Analyzer(Protocol):
    """The analyzer contract consumed by the scheduler and upload pipeline.

    ``analyze`` may be slow and may fail; callers await it and handle
    :class:`facelens.errors.FaceLensError`.

    Analyzers backed by a bounded worker pool may also expose
    ``max_concurrency`` and ``in_flight``; the scheduler skips ticks while
    ``in_flight`` has reached ``max_concurrency``.
    """

    async def analyze(self, frame: np.ndarray, config: AnalyzerConfig) -> List[FaceRecord]:
        ...


__all__ = ["FaceBackend", "ExpressionBackend", "Analyzer"]
