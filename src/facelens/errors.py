"""Error taxonomy and user-visible status."""

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """Kinds of non-fatal failures surfaced to the user."""

    OK = "ok"
    PERMISSION_DENIED = "permission_denied"
    MODEL_UNAVAILABLE = "model_unavailable"
    DECODE_FAILED = "decode_failed"
    DETECTION_FAILED = "detection_failed"
    STREAM_ACTIVE = "stream_active"


class FaceLensError(Exception):
    """Base class for facelens failures."""

    kind: ErrorKind = ErrorKind.DETECTION_FAILED


class PermissionDeniedError(FaceLensError):
    """Camera could not be opened."""

    kind = ErrorKind.PERMISSION_DENIED


class ModelUnavailableError(FaceLensError):
    """Analyzer backend failed to initialize."""

    kind = ErrorKind.MODEL_UNAVAILABLE


class DecodeFailedError(FaceLensError):
    """Input file is not a readable image."""

    kind = ErrorKind.DECODE_FAILED


class DetectionFailedError(FaceLensError):
    """Analyzer call failed for a frame."""

    kind = ErrorKind.DETECTION_FAILED


@dataclass(frozen=True)
class Status:
    """Latest pipeline status shown as a banner.

    Attributes:
        kind: ErrorKind.OK when the last operation succeeded.
        message: Human-readable detail.
    """

    kind: ErrorKind = ErrorKind.OK
    message: str = ""

    @property
    def is_error(self) -> bool:
        return self.kind is not ErrorKind.OK

    @classmethod
    def from_error(cls, exc: BaseException) -> "Status":
        kind = getattr(exc, "kind", ErrorKind.DETECTION_FAILED)
        return cls(kind=kind, message=str(exc) or type(exc).__name__)


STATUS_OK = Status()

__all__ = [
    "ErrorKind",
    "FaceLensError",
    "PermissionDeniedError",
    "ModelUnavailableError",
    "DecodeFailedError",
    "DetectionFailedError",
    "Status",
    "STATUS_OK",
]
