"""Result store - owned holder of the current face list and session flags.

The store keeps one immutable :class:`StoreSnapshot`. Every write swaps in a
new snapshot and notifies subscribers, so readers never see a partially
updated face list.

Example:
    >>> store = ResultStore()
    >>> unsubscribe = store.subscribe(lambda snap: print(len(snap.faces)))
    >>> store.set_faces([])
    0
"""

import logging
import threading
from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Tuple

from facelens.errors import STATUS_OK, Status
from facelens.types import FaceRecord

logger = logging.getLogger(__name__)

Subscriber = Callable[["StoreSnapshot"], None]


@dataclass(frozen=True)
class StoreSnapshot:
    """Committed session state.

    Attributes:
        faces: Face list from the latest applied pass.
        is_stream_active: Whether the live camera stream is running.
        is_processing: Whether a still-image upload is being analyzed.
        status: Latest status (error banner source).
    """

    faces: Tuple[FaceRecord, ...] = ()
    is_stream_active: bool = False
    is_processing: bool = False
    status: Status = STATUS_OK


class ResultStore:
    """Session state container with a read/subscribe API."""

    def __init__(self) -> None:
        self._snapshot = StoreSnapshot()
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()

    # --- Reads -----------------------------------------------------------

    def snapshot(self) -> StoreSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def faces(self) -> Tuple[FaceRecord, ...]:
        return self.snapshot().faces

    @property
    def is_stream_active(self) -> bool:
        return self.snapshot().is_stream_active

    @property
    def is_processing(self) -> bool:
        return self.snapshot().is_processing

    @property
    def status(self) -> Status:
        return self.snapshot().status

    # --- Writes ----------------------------------------------------------

    def set_faces(self, faces: Iterable[FaceRecord]) -> None:
        """Replace the face list wholesale."""
        self._commit(faces=tuple(faces))

    def set_stream_active(self, active: bool) -> None:
        self._commit(is_stream_active=bool(active))

    def set_processing(self, processing: bool) -> None:
        self._commit(is_processing=bool(processing))

    def set_status(self, status: Status) -> None:
        self._commit(status=status)

    def apply_result(self, faces: Iterable[FaceRecord]) -> None:
        """Commit a successful pass: new faces and an OK status together."""
        self._commit(faces=tuple(faces), status=STATUS_OK)

    def reset_stream(self) -> None:
        """Clear faces and the stream-active flag in one write."""
        self._commit(faces=(), is_stream_active=False)

    # --- Subscriptions ---------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback invoked with each new snapshot.

        Returns:
            A function that removes the subscription.
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _commit(self, **changes) -> None:
        with self._lock:
            self._snapshot = replace(self._snapshot, **changes)
            snapshot = self._snapshot
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Store subscriber %r failed", callback)


__all__ = ["ResultStore", "StoreSnapshot"]
