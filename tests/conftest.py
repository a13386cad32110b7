"""Shared fixtures for facelens tests.

All analyzers are mocks - NO ML models needed.
"""

import asyncio

import numpy as np
import pytest

from facelens.types import Box, FaceRecord, Gender


class MockAnalyzer:
    """Async analyzer returning scripted results.

    Each call consumes the next entry of ``results`` (a face list or an
    exception to raise) and sleeps for the matching entry of ``delays``.
    Once the script runs out the last entry is repeated.
    """

    def __init__(self, results=None, delays=None):
        self._results = list(results) if results is not None else [[]]
        self._delays = list(delays) if delays is not None else [0.0]
        self.calls = []

    async def analyze(self, frame, config):
        idx = len(self.calls)
        self.calls.append((frame.shape, config))
        delay = self._delays[min(idx, len(self._delays) - 1)]
        if delay:
            await asyncio.sleep(delay)
        result = self._results[min(idx, len(self._results) - 1)]
        if isinstance(result, BaseException):
            raise result
        return list(result)


@pytest.fixture
def blank_frame():
    """640x480 black frame."""
    return np.zeros((480, 640, 3), dtype=np.uint8)


@pytest.fixture
def gray_frame():
    """640x480 mid-gray frame."""
    return np.full((480, 640, 3), 128, dtype=np.uint8)


@pytest.fixture
def make_face():
    """Factory fixture for FaceRecords."""
    def _make(
        index=0,
        box=(200.0, 150.0, 100.0, 120.0),
        score=0.9,
        landmarks=None,
        age=30.0,
        gender=Gender.FEMALE,
        gender_probability=0.9,
        expressions=None,
    ):
        return FaceRecord(
            index=index,
            box=Box(*box),
            score=score,
            landmarks=landmarks,
            age=age,
            gender=gender,
            gender_probability=gender_probability,
            expressions=expressions,
        )
    return _make


@pytest.fixture
def make_analyzer():
    """Factory fixture for MockAnalyzer."""
    def _make(results=None, delays=None):
        return MockAnalyzer(results=results, delays=delays)
    return _make


@pytest.fixture
def landmarks_68():
    """68 points on a grid inside the default face box."""
    return tuple((200.0 + (i % 10) * 10, 150.0 + (i // 10) * 15) for i in range(68))
