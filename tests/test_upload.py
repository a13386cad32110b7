"""Tests for UploadPipeline with mock analyzers."""

import asyncio

import cv2
import numpy as np

from facelens.config import SchedulerConfig, UploadConfig
from facelens.errors import DetectionFailedError, ErrorKind
from facelens.scheduler import DetectionScheduler
from facelens.sources import StillImageSource
from facelens.store import ResultStore
from facelens.types import AnalyzerConfig
from facelens.upload import UploadPipeline, UploadResult


def _face_changes(snapshots, initial=()):
    """Count snapshots whose face list differs from the one before."""
    changes, previous = 0, initial
    for snap in snapshots:
        if snap.faces is not previous and snap.faces != previous:
            changes += 1
        previous = snap.faces
    return changes


class TestUploadPipeline:
    def test_none_is_noop(self, make_analyzer):
        store = ResultStore()
        writes = []
        store.subscribe(writes.append)
        analyzer = make_analyzer()

        result = asyncio.run(UploadPipeline(analyzer, store).process(None))

        assert result is None
        assert writes == []
        assert analyzer.calls == []

    def test_success(self, make_analyzer, make_face, gray_frame):
        store = ResultStore()
        face = make_face()
        analyzer = make_analyzer([[face]])

        result = asyncio.run(UploadPipeline(analyzer, store).process(gray_frame))

        assert isinstance(result, UploadResult)
        assert result.faces == (face,)
        assert result.overlay.shape == gray_frame.shape
        assert not np.array_equal(result.overlay, gray_frame)
        assert store.faces == (face,)
        assert not store.is_processing
        assert not store.status.is_error
        assert analyzer.calls[0][1] == AnalyzerConfig(input_size=416, score_threshold=0.5)

    def test_encoded_bytes(self, make_analyzer, gray_frame):
        ok, buf = cv2.imencode(".png", gray_frame)
        assert ok
        result = asyncio.run(UploadPipeline(make_analyzer(), ResultStore()).process(buf.tobytes()))
        assert result.image.shape == gray_frame.shape

    def test_zero_faces_overlay_equals_image(self, make_analyzer, gray_frame):
        store = ResultStore()
        result = asyncio.run(UploadPipeline(make_analyzer([[]]), store).process(gray_frame))
        assert result.faces == ()
        assert np.array_equal(result.overlay, result.image)
        assert store.faces == ()

    def test_processing_flag_lifecycle(self, make_analyzer, make_face, gray_frame):
        store = ResultStore()
        flags = []
        store.subscribe(lambda snap: flags.append(snap.is_processing))

        asyncio.run(UploadPipeline(make_analyzer([[make_face()]]), store).process(gray_frame))

        assert flags[0] is True
        assert flags[-1] is False
        assert not store.is_processing

    def test_second_call_while_processing_ignored(self, make_analyzer, make_face, gray_frame):
        store = ResultStore()
        snapshots = []
        store.subscribe(snapshots.append)
        analyzer = make_analyzer([[make_face()]], delays=[0.05])
        pipeline = UploadPipeline(analyzer, store)

        async def scenario():
            return await asyncio.gather(pipeline.process(gray_frame), pipeline.process(gray_frame))

        first, second = asyncio.run(scenario())

        assert first is not None
        assert second is None
        assert len(analyzer.calls) == 1
        assert _face_changes(snapshots) == 1
        assert not pipeline.is_processing

    def test_decode_failure_keeps_faces(self, make_analyzer, make_face):
        store = ResultStore()
        previous = (make_face(),)
        store.set_faces(previous)
        analyzer = make_analyzer()

        result = asyncio.run(UploadPipeline(analyzer, store).process(b"not an image"))

        assert result is None
        assert store.faces == previous
        assert store.status.kind is ErrorKind.DECODE_FAILED
        assert not store.is_processing
        assert analyzer.calls == []

    def test_missing_file(self, make_analyzer, tmp_path):
        store = ResultStore()
        result = asyncio.run(UploadPipeline(make_analyzer(), store).process(tmp_path / "missing.png"))
        assert result is None
        assert store.status.kind is ErrorKind.DECODE_FAILED

    def test_analyzer_failure_keeps_faces(self, make_analyzer, make_face, gray_frame):
        store = ResultStore()
        previous = (make_face(),)
        store.set_faces(previous)

        pipeline = UploadPipeline(make_analyzer([DetectionFailedError("model crashed")]), store)
        result = asyncio.run(pipeline.process(gray_frame))

        assert result is None
        assert store.faces == previous
        assert store.status.kind is ErrorKind.DETECTION_FAILED
        assert not store.is_processing
        assert not pipeline.is_processing

    def test_unexpected_exception_reported(self, make_analyzer, gray_frame):
        store = ResultStore()
        result = asyncio.run(UploadPipeline(make_analyzer([ValueError("bad tensor")]), store).process(gray_frame))
        assert result is None
        assert store.status.kind is ErrorKind.DETECTION_FAILED
        assert not store.is_processing

    def test_usable_after_failure(self, make_analyzer, make_face, gray_frame):
        store = ResultStore()
        face = make_face()
        pipeline = UploadPipeline(make_analyzer([DetectionFailedError("once"), [face]]), store)

        assert asyncio.run(pipeline.process(gray_frame)) is None
        assert asyncio.run(pipeline.process(gray_frame)) is not None
        assert store.faces == (face,)
        assert not store.status.is_error


class TestUploadDuringStream:
    def test_rejected_while_stream_active(self, make_analyzer, gray_frame):
        store = ResultStore()
        store.set_stream_active(True)
        analyzer = make_analyzer()

        result = asyncio.run(UploadPipeline(analyzer, store).process(gray_frame))

        assert result is None
        assert store.status.kind is ErrorKind.STREAM_ACTIVE
        assert store.is_stream_active
        assert analyzer.calls == []

    def test_stop_stream_option(self, make_analyzer, make_face, gray_frame):
        face = make_face()

        async def scenario():
            store = ResultStore()
            analyzer = make_analyzer([[face]])
            scheduler = DetectionScheduler(analyzer, store, SchedulerConfig(period_sec=60.0))
            scheduler.start(StillImageSource(gray_frame))
            pipeline = UploadPipeline(analyzer, store, UploadConfig(stop_stream=True), scheduler=scheduler)
            result = await pipeline.process(gray_frame)
            return result, scheduler.is_running, store.snapshot()

        result, running, snap = asyncio.run(scenario())
        assert result is not None
        assert running is False
        assert snap.is_stream_active is False
        assert snap.faces == (face,)
