"""CLI utility functions."""

import logging
import os
import sys

NOISY_LOGGERS = ("insightface", "onnxruntime", "PIL", "matplotlib")


def suppress_thirdparty_noise():
    """Suppress Qt and OpenCV warnings for cleaner CLI output."""
    os.environ.setdefault("QT_LOGGING_RULES", "*.debug=false;qt.qpa.*=false")
    if os.environ.get("XDG_SESSION_TYPE") == "wayland":
        os.environ.setdefault("QT_QPA_PLATFORM", "xcb")
    os.environ.setdefault("OPENCV_LOG_LEVEL", "ERROR")
    os.environ.setdefault("ORT_LOG_LEVEL", "ERROR")


def configure_log_levels():
    """Quiet third-party loggers below WARNING."""
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class StderrFilter:
    """Filter stderr to suppress Qt/OpenCV warnings."""

    SUPPRESS_PATTERNS = (
        "QFontDatabase:",
        "Note that Qt no longer ships fonts",
        "XDG_SESSION_TYPE=wayland",
        "qt.qpa.",
    )

    def __init__(self, stream=None):
        self._stream = stream if stream is not None else sys.stderr

    def install(self):
        if not isinstance(sys.stderr, StderrFilter):
            sys.stderr = self
        return self

    def write(self, text):
        if not any(p in text for p in self.SUPPRESS_PATTERNS):
            self._stream.write(text)

    def flush(self):
        self._stream.flush()

    def __getattr__(self, name):
        return getattr(self._stream, name)


def build_config(args):
    """AppConfig from ``--config`` with command-line overrides applied."""
    from facelens.config import AppConfig

    config_path = getattr(args, "config", None)
    config = AppConfig.from_yaml(config_path) if config_path else AppConfig()

    if getattr(args, "device", None):
        config.analyzer.device = args.device
    if getattr(args, "camera", None) is not None:
        config.camera.index = args.camera
    if getattr(args, "period", None) is not None:
        config.scheduler.period_sec = args.period
    if getattr(args, "stop_stream", False):
        config.upload.stop_stream = True
    if getattr(args, "breakdown", False):
        config.display.show_expression_breakdown = True
    return config
