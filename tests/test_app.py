"""Tests for FaceLensApp with a scripted window and mock analyzer."""

import asyncio

import cv2
import numpy as np

from facelens.analyzer import FaceAnalyzer
from facelens.app import FaceLensApp
from facelens.config import AppConfig
from facelens.errors import ErrorKind
from facelens.sources import StillImageSource


class ScriptedWindow:
    """Window stand-in that presses keys in order.

    After the scripted keys it waits (returning None) until ``until``
    holds, then quits.
    """

    def __init__(self, keys, until=None, max_idle=2000):
        self._keys = list(keys)
        self._until = until
        self._max_idle = max_idle
        self._idle = 0
        self.views = []
        self.panels = []
        self.closed = False

    def show(self, overlay, state):
        self.views.append(overlay)
        self.panels.append(state)
        if self._keys:
            return self._keys.pop(0)
        if self._until is not None and not self._until() and self._idle < self._max_idle:
            self._idle += 1
            return None
        return "q"

    def close(self):
        self.closed = True


class FailingBackend:
    def initialize(self, device="cpu"):
        raise RuntimeError("model file missing")

    def detect(self, image, config):
        return []

    def cleanup(self):
        pass


def _config():
    return AppConfig.from_dict({"scheduler": {"period_sec": 0.01}})


class TestFaceLensApp:
    def test_stream_toggle_and_quit(self, make_analyzer, make_face, gray_frame):
        app = FaceLensApp(
            _config(),
            analyzer=make_analyzer([[make_face()]]),
            source=StillImageSource(gray_frame),
        )
        window = ScriptedWindow(["s"], until=lambda: len(app.store.faces) > 0)
        app.window = window

        asyncio.run(app.run())

        assert window.closed
        assert any(p.title == "Detected Faces (1)" for p in window.panels)
        assert not app.scheduler.is_running
        assert app.store.faces == ()
        assert not app.store.is_stream_active

    def test_upload_key(self, make_analyzer, make_face, gray_frame, tmp_path):
        path = tmp_path / "face.png"
        ok, buf = cv2.imencode(".png", gray_frame)
        assert ok
        path.write_bytes(buf.tobytes())

        app = FaceLensApp(_config(), analyzer=make_analyzer([[make_face()]]), source=StillImageSource(gray_frame))
        window = ScriptedWindow(["u"], until=lambda: len(app.store.faces) > 0)
        app.window = window

        asyncio.run(app.run(image_path=path))

        assert len(app.store.faces) == 1
        assert not np.array_equal(window.views[-1], gray_frame)

    def test_blank_view_before_stream(self, make_analyzer, gray_frame):
        app = FaceLensApp(_config(), analyzer=make_analyzer(), source=StillImageSource(gray_frame))
        view = app.current_view()
        assert view.shape == (720, 1280, 3)
        assert not view.any()

    def test_model_unavailable_sets_status(self, gray_frame):
        app = FaceLensApp(
            _config(),
            analyzer=FaceAnalyzer(FailingBackend()),
            source=StillImageSource(gray_frame),
            window=ScriptedWindow([]),
        )
        assert app.initialize() is False
        assert app.store.status.kind is ErrorKind.MODEL_UNAVAILABLE
