"""Tests for ResultStore."""

import pytest

from facelens.errors import STATUS_OK, ErrorKind, Status
from facelens.store import ResultStore, StoreSnapshot


class TestResultStore:
    def test_initial_snapshot(self):
        store = ResultStore()
        assert store.snapshot() == StoreSnapshot()
        assert store.faces == ()
        assert not store.is_stream_active
        assert not store.is_processing
        assert store.status == STATUS_OK

    def test_set_faces_replaces_list(self, make_face):
        store = ResultStore()
        store.set_faces([make_face(index=0), make_face(index=1)])
        store.set_faces([make_face(index=0)])
        assert len(store.faces) == 1

    def test_snapshots_are_immutable_values(self, make_face):
        store = ResultStore()
        before = store.snapshot()
        store.set_faces([make_face()])
        assert before.faces == ()
        assert len(store.snapshot().faces) == 1

    def test_apply_result_clears_error(self, make_face):
        store = ResultStore()
        store.set_status(Status(ErrorKind.DETECTION_FAILED, "boom"))
        store.apply_result([make_face()])
        assert store.status == STATUS_OK
        assert len(store.faces) == 1

    def test_reset_stream_single_write(self, make_face):
        store = ResultStore()
        store.set_faces([make_face()])
        store.set_stream_active(True)

        seen = []
        store.subscribe(seen.append)
        store.reset_stream()

        assert len(seen) == 1
        assert seen[0].faces == ()
        assert seen[0].is_stream_active is False

    def test_reset_stream_keeps_status(self):
        store = ResultStore()
        store.set_status(Status(ErrorKind.DETECTION_FAILED, "boom"))
        store.reset_stream()
        assert store.status.kind is ErrorKind.DETECTION_FAILED


class TestSubscriptions:
    def test_subscriber_receives_new_snapshot(self):
        store = ResultStore()
        seen = []
        store.subscribe(seen.append)
        store.set_processing(True)
        assert [s.is_processing for s in seen] == [True]

    def test_unsubscribe(self):
        store = ResultStore()
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        store.set_processing(True)
        assert seen == []

    def test_failing_subscriber_does_not_block_others(self, caplog):
        store = ResultStore()
        seen = []

        def broken(snapshot):
            raise RuntimeError("subscriber bug")

        store.subscribe(broken)
        store.subscribe(seen.append)
        store.set_stream_active(True)

        assert len(seen) == 1
        assert store.is_stream_active
        assert "subscriber" in caplog.text.lower()


class TestStatus:
    def test_from_error_uses_kind(self):
        from facelens.errors import DecodeFailedError

        status = Status.from_error(DecodeFailedError("bad file"))
        assert status.kind is ErrorKind.DECODE_FAILED
        assert status.message == "bad file"
        assert status.is_error

    def test_from_plain_exception(self):
        status = Status.from_error(ValueError())
        assert status.kind is ErrorKind.DETECTION_FAILED
        assert status.message == "ValueError"

    @pytest.mark.parametrize("kind", [k for k in ErrorKind if k is not ErrorKind.OK])
    def test_is_error(self, kind):
        assert Status(kind).is_error
        assert not STATUS_OK.is_error
