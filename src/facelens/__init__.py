"""facelens - Face detection, landmarks, age/gender and expression overlay.

Quick Start:
    >>> import asyncio
    >>> from facelens import FaceAnalyzer, ResultStore, UploadPipeline
    >>> from facelens.config import AnalyzerSettings
    >>> analyzer = FaceAnalyzer.from_settings(AnalyzerSettings())
    >>> analyzer.initialize()
    >>> store = ResultStore()
    >>> result = asyncio.run(UploadPipeline(analyzer, store).process("face.jpg"))
    >>> print(f"Found {len(store.faces)} faces")

Live stream:
    >>> scheduler = DetectionScheduler(analyzer, store, on_render=show)
    >>> scheduler.start(CameraSource(0))    # inside a running event loop
    >>> scheduler.stop()
"""

__version__ = "0.1.0"

from facelens.analyzer import Analyzer, FaceAnalyzer
from facelens.config import AppConfig, SchedulerConfig, UploadConfig
from facelens.errors import ErrorKind, FaceLensError, Status
from facelens.scheduler import DetectionScheduler
from facelens.sources import CameraSource, StillImageSource, decode_image
from facelens.store import ResultStore, StoreSnapshot
from facelens.types import AnalyzerConfig, Box, FaceRecord, Gender
from facelens.upload import UploadPipeline, UploadResult
from facelens.viz import build_panel, compose_overlay

__all__ = [
    "__version__",
    "Analyzer",
    "FaceAnalyzer",
    "AppConfig",
    "SchedulerConfig",
    "UploadConfig",
    "ErrorKind",
    "FaceLensError",
    "Status",
    "DetectionScheduler",
    "CameraSource",
    "StillImageSource",
    "decode_image",
    "ResultStore",
    "StoreSnapshot",
    "AnalyzerConfig",
    "Box",
    "FaceRecord",
    "Gender",
    "UploadPipeline",
    "UploadResult",
    "build_panel",
    "compose_overlay",
]
