"""Frame sources: live camera and decoded still images."""

import logging
import threading
from pathlib import Path
from typing import Optional, Protocol, Tuple, Union, runtime_checkable

import cv2
import numpy as np

from facelens.errors import DecodeFailedError, PermissionDeniedError

logger = logging.getLogger(__name__)

ImageInput = Union[str, Path, bytes, bytearray, np.ndarray]


@runtime_checkable
class FrameSource(Protocol):
    """Protocol for pixel sources driven by the detection scheduler."""

    def acquire(self) -> None:
        """Open the underlying resource. Raises PermissionDeniedError."""
        ...

    def release(self) -> None:
        """Close the resource. Safe to call more than once."""
        ...

    def current_frame(self) -> Optional[np.ndarray]:
        """Latest BGR frame, or None if no valid frame is available yet."""
        ...

    def natural_size(self) -> Tuple[int, int]:
        """(width, height) of frames as displayed."""
        ...


class CameraSource:
    """Webcam source backed by cv2.VideoCapture.

    A daemon reader thread keeps only the most recent frame so that the
    scheduler always analyzes what is currently in front of the camera.

    Args:
        index: Camera device index.
        width: Requested capture width.
        height: Requested capture height.
    """

    def __init__(self, index: int = 0, width: int = 1280, height: int = 720):
        self._index = index
        self._width = width
        self._height = height
        self._cap: Optional[cv2.VideoCapture] = None
        self._frame: Optional[np.ndarray] = None
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    def acquire(self) -> None:
        if self._cap is not None:
            return
        cap = cv2.VideoCapture(self._index)
        if not cap.isOpened():
            cap.release()
            raise PermissionDeniedError(f"Cannot open camera {self._index}")
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)
        self._cap = cap
        self._stop.clear()
        self._thread = threading.Thread(target=self._read_loop, name="camera-reader", daemon=True)
        self._thread.start()
        logger.info("Camera %d opened (%dx%d requested)", self._index, self._width, self._height)

    def release(self) -> None:
        if self._cap is None:
            return
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        self._cap.release()
        self._cap = None
        with self._lock:
            self._frame = None
        logger.info("Camera %d released", self._index)

    def current_frame(self) -> Optional[np.ndarray]:
        with self._lock:
            return self._frame

    def natural_size(self) -> Tuple[int, int]:
        frame = self.current_frame()
        if frame is not None:
            return frame.shape[1], frame.shape[0]
        if self._cap is not None:
            w = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
            h = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
            if w > 0 and h > 0:
                return w, h
        return self._width, self._height

    def _read_loop(self) -> None:
        cap = self._cap
        while not self._stop.is_set() and cap is not None:
            ok, image = cap.read()
            if not ok or image is None:
                self._stop.wait(0.01)
                continue
            with self._lock:
                self._frame = image


class StillImageSource:
    """Frame source that always returns the same decoded image."""

    def __init__(self, image: np.ndarray):
        self._image = image
        self._acquired = False

    def acquire(self) -> None:
        self._acquired = True

    def release(self) -> None:
        self._acquired = False

    def current_frame(self) -> Optional[np.ndarray]:
        return self._image if self._acquired else None

    def natural_size(self) -> Tuple[int, int]:
        return self._image.shape[1], self._image.shape[0]


def decode_image(data: ImageInput) -> np.ndarray:
    """Decode a still image to a BGR array.

    Args:
        data: File path, encoded bytes, or an already-decoded array.

    Raises:
        DecodeFailedError: If the input is not a readable image.
    """
    if isinstance(data, np.ndarray):
        image = data
    elif isinstance(data, (bytes, bytearray)):
        buf = np.frombuffer(bytes(data), dtype=np.uint8)
        image = cv2.imdecode(buf, cv2.IMREAD_COLOR) if buf.size else None
    else:
        path = Path(data)
        if not path.is_file():
            raise DecodeFailedError(f"Image file not found: {path}")
        # imdecode handles non-ASCII paths that imread does not
        buf = np.fromfile(str(path), dtype=np.uint8)
        image = cv2.imdecode(buf, cv2.IMREAD_COLOR) if buf.size else None

    if image is None or image.ndim not in (2, 3) or image.size == 0:
        raise DecodeFailedError("Input is not a valid image")
    if image.ndim == 2:
        image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    elif image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image


__all__ = ["FrameSource", "CameraSource", "StillImageSource", "decode_image"]
