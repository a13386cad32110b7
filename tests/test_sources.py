"""Tests for frame sources and image decoding."""

import cv2
import numpy as np
import pytest

from facelens.errors import DecodeFailedError, ErrorKind, PermissionDeniedError
from facelens.sources import CameraSource, FrameSource, StillImageSource, decode_image


def _encode(image, ext=".png"):
    ok, buf = cv2.imencode(ext, image)
    assert ok
    return buf.tobytes()


class TestDecodeImage:
    def test_decode_bytes(self, gray_frame):
        image = decode_image(_encode(gray_frame))
        assert image.shape == gray_frame.shape
        assert np.array_equal(image, gray_frame)

    def test_decode_path(self, tmp_path, gray_frame):
        path = tmp_path / "face.png"
        path.write_bytes(_encode(gray_frame))
        assert decode_image(path).shape == (480, 640, 3)
        assert decode_image(str(path)).shape == (480, 640, 3)

    def test_grayscale_converted_to_bgr(self):
        gray = np.full((20, 30), 77, dtype=np.uint8)
        image = decode_image(gray)
        assert image.shape == (20, 30, 3)

    def test_bgra_converted_to_bgr(self):
        bgra = np.zeros((20, 30, 4), dtype=np.uint8)
        assert decode_image(bgra).shape == (20, 30, 3)

    def test_garbage_bytes(self):
        with pytest.raises(DecodeFailedError):
            decode_image(b"definitely not an image")

    def test_empty_bytes(self):
        with pytest.raises(DecodeFailedError):
            decode_image(b"")

    def test_missing_file(self, tmp_path):
        with pytest.raises(DecodeFailedError) as exc_info:
            decode_image(tmp_path / "missing.jpg")
        assert exc_info.value.kind is ErrorKind.DECODE_FAILED

    def test_not_an_image_file(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(DecodeFailedError):
            decode_image(path)


class TestStillImageSource:
    def test_frame_only_while_acquired(self, gray_frame):
        source = StillImageSource(gray_frame)
        assert source.current_frame() is None

        source.acquire()
        assert source.current_frame() is gray_frame

        source.release()
        source.release()
        assert source.current_frame() is None

    def test_natural_size(self, gray_frame):
        assert StillImageSource(gray_frame).natural_size() == (640, 480)

    def test_is_frame_source(self, gray_frame):
        assert isinstance(StillImageSource(gray_frame), FrameSource)


class TestCameraSource:
    def test_unopenable_camera_raises_permission_denied(self, monkeypatch):
        class ClosedCapture:
            def __init__(self, index):
                self.released = False

            def isOpened(self):
                return False

            def release(self):
                self.released = True

        monkeypatch.setattr(cv2, "VideoCapture", ClosedCapture)
        source = CameraSource(index=7)

        with pytest.raises(PermissionDeniedError):
            source.acquire()
        assert not source.is_open
        assert source.current_frame() is None

    def test_release_without_acquire(self):
        source = CameraSource()
        source.release()
        assert source.natural_size() == (1280, 720)
