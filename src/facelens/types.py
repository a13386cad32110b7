"""Face analysis domain types."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

LANDMARK_COUNT = 68

Point = Tuple[float, float]


class Gender(str, Enum):
    """Gender label reported by the analyzer."""

    MALE = "male"
    FEMALE = "female"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "Gender":
        """Map backend gender output ("male", "M", 1, ...) to a Gender."""
        if isinstance(value, Gender):
            return value
        if isinstance(value, str):
            text = value.strip().lower()
            if text in ("male", "m", "man"):
                return cls.MALE
            if text in ("female", "f", "woman"):
                return cls.FEMALE
        return cls.UNKNOWN


@dataclass(frozen=True)
class Box:
    """Pixel rectangle (x, y, width, height)."""

    x: float
    y: float
    width: float
    height: float

    def scaled(self, sx: float, sy: float) -> "Box":
        return Box(self.x * sx, self.y * sy, self.width * sx, self.height * sy)


@dataclass(frozen=True)
class AnalyzerConfig:
    """Per-call analyzer options.

    Attributes:
        input_size: Detector input resolution (square).
        score_threshold: Minimum detection confidence [0, 1].
    """

    input_size: int = 512
    score_threshold: float = 0.5


@dataclass
class Detection:
    """Raw detection as produced by a backend, before validation.

    Coordinates are pixels in the analyzed image.
    """

    bbox: Tuple[float, float, float, float]  # x, y, w, h in pixels
    score: float
    landmarks: Optional[Sequence[Sequence[float]]] = None
    age: Optional[float] = None
    gender: Any = None
    gender_probability: Optional[float] = None
    expressions: Optional[Mapping[str, float]] = None


@dataclass(frozen=True)
class FaceRecord:
    """One detected face for a single analysis pass.

    ``index`` is the position in the pass's ordered list. It picks the overlay
    color and is not a cross-frame identity.

    Attributes:
        index: Position in the current face list.
        box: Bounding box in displayed-frame pixels.
        score: Detector confidence [0, 1].
        landmarks: 68 (x, y) points, or None when not estimated.
        age: Estimated age in years.
        gender: Gender label.
        gender_probability: Confidence of ``gender`` [0, 1].
        expressions: Emotion name -> probability, or None.
    """

    index: int
    box: Box
    score: float
    landmarks: Optional[Tuple[Point, ...]] = None
    age: float = 0.0
    gender: Gender = Gender.UNKNOWN
    gender_probability: float = 0.0
    expressions: Optional[Dict[str, float]] = field(default=None, hash=False, compare=True)

    @classmethod
    def from_detection(cls, index: int, det: Detection) -> "FaceRecord":
        """Validate a raw backend detection into a FaceRecord."""
        x, y, w, h = (float(v) for v in det.bbox)
        landmarks = None
        if det.landmarks is not None:
            points = tuple((float(p[0]), float(p[1])) for p in det.landmarks)
            if len(points) == LANDMARK_COUNT:
                landmarks = points

        expressions = None
        if det.expressions:
            expressions = {str(k): _clamp01(v) for k, v in det.expressions.items()}

        age = float(det.age) if det.age is not None else 0.0
        if not math.isfinite(age):
            age = 0.0

        return cls(
            index=index,
            box=Box(x, y, max(0.0, w), max(0.0, h)),
            score=_clamp01(det.score),
            landmarks=landmarks,
            age=age,
            gender=Gender.parse(det.gender),
            gender_probability=_clamp01(det.gender_probability or 0.0),
            expressions=expressions,
        )

    def resized(self, sx: float, sy: float) -> "FaceRecord":
        """Return a copy with box and landmarks scaled by (sx, sy)."""
        landmarks = None
        if self.landmarks is not None:
            landmarks = tuple((px * sx, py * sy) for px, py in self.landmarks)
        return FaceRecord(
            index=self.index,
            box=self.box.scaled(sx, sy),
            score=self.score,
            landmarks=landmarks,
            age=self.age,
            gender=self.gender,
            gender_probability=self.gender_probability,
            expressions=self.expressions,
        )


def resize_results(
    faces: Sequence[FaceRecord],
    source_size: Tuple[int, int],
    target_size: Tuple[int, int],
) -> list:
    """Map faces from the analyzed image size to the displayed size.

    Args:
        faces: Faces in ``source_size`` pixel space.
        source_size: (width, height) of the analyzed image.
        target_size: (width, height) of the displayed frame.
    """
    src_w, src_h = source_size
    dst_w, dst_h = target_size
    if src_w <= 0 or src_h <= 0 or (src_w, src_h) == (dst_w, dst_h):
        return list(faces)
    sx = dst_w / float(src_w)
    sy = dst_h / float(src_h)
    return [face.resized(sx, sy) for face in faces]


def _clamp01(value: Any) -> float:
    v = float(value)
    if not math.isfinite(v):
        return 0.0
    return min(1.0, max(0.0, v))


__all__ = [
    "LANDMARK_COUNT",
    "Gender",
    "Box",
    "AnalyzerConfig",
    "Detection",
    "FaceRecord",
    "resize_results",
]
