"""Configuration classes for facelens.

Example:
    >>> from facelens.config import AppConfig
    >>> config = AppConfig.from_dict({"scheduler": {"period_sec": 0.5}})
    >>> config.scheduler.period_sec
    0.5
"""

import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from facelens.types import AnalyzerConfig


@dataclass
class SchedulerConfig:
    """Live detection loop settings.

    Attributes:
        period_sec: Tick period of the polling loop.
        input_size: Detector input size for live frames.
        score_threshold: Minimum detection confidence.
        analysis_size: Optional (width, height) to downscale frames before
            analysis. Results are mapped back to the natural frame size.
        timeout_sec: Per-analysis timeout (0 = wait indefinitely).
        max_in_flight: Analyses allowed in flight before ticks are skipped
            (0 = the analyzer's own concurrency, unbounded if it has none).
    """

    period_sec: float = 0.3
    input_size: int = 512
    score_threshold: float = 0.5
    analysis_size: Optional[Tuple[int, int]] = None
    timeout_sec: float = 0.0
    max_in_flight: int = 0

    def __post_init__(self) -> None:
        if self.period_sec <= 0:
            raise ValueError(f"period_sec must be positive, got {self.period_sec}")
        if self.max_in_flight < 0:
            raise ValueError(f"max_in_flight must be >= 0, got {self.max_in_flight}")
        if self.analysis_size is not None:
            self.analysis_size = (int(self.analysis_size[0]), int(self.analysis_size[1]))

    @property
    def analyzer_config(self) -> AnalyzerConfig:
        return AnalyzerConfig(input_size=self.input_size, score_threshold=self.score_threshold)


@dataclass
class UploadConfig:
    """Still-image pipeline settings.

    Attributes:
        input_size: Detector input size for uploaded images.
        score_threshold: Minimum detection confidence.
        stop_stream: Stop an active live stream instead of rejecting the upload.
    """

    input_size: int = 416
    score_threshold: float = 0.5
    stop_stream: bool = False

    @property
    def analyzer_config(self) -> AnalyzerConfig:
        return AnalyzerConfig(input_size=self.input_size, score_threshold=self.score_threshold)


@dataclass
class AnalyzerSettings:
    """Backend selection for the face analyzer.

    Attributes:
        model_name: InsightFace model pack.
        expression_model: HSEmotion model name ("" disables expressions).
        device: "cpu" or "cuda:N".
        models_dir: Model root override. Falls back to
            ``$FACELENS_MODELS_DIR``, then ``$FACELENS_HOME/models``, then
            ``~/.facelens/models``.
        max_workers: Executor threads running the blocking backends.
    """

    model_name: str = "buffalo_l"
    expression_model: str = "enet_b0_8_best_vgaf"
    device: str = "cpu"
    models_dir: Optional[str] = None
    max_workers: int = 1

    def resolve_models_dir(self) -> Path:
        """Return the model root, creating it if it doesn't exist."""
        value = self.models_dir or os.environ.get("FACELENS_MODELS_DIR")
        if value:
            models_dir = Path(value)
            if not models_dir.is_absolute():
                models_dir = Path.cwd() / models_dir
        else:
            home = os.environ.get("FACELENS_HOME")
            models_dir = (Path(home) if home else Path.home() / ".facelens") / "models"
        models_dir.mkdir(parents=True, exist_ok=True)
        return models_dir


@dataclass
class CameraConfig:
    index: int = 0
    width: int = 1280
    height: int = 720


@dataclass
class DisplayConfig:
    """Window settings.

    Attributes:
        title: Window title.
        panel_width: Side panel width in pixels.
        show_expression_breakdown: Draw all expressions under each box.
        wait_ms: cv2.waitKey delay per UI iteration. The wait blocks the
            event loop, so keep it at a few milliseconds.
    """

    title: str = "facelens"
    panel_width: int = 360
    show_expression_breakdown: bool = False
    wait_ms: int = 1


@dataclass
class AppConfig:
    """Complete configuration for the facelens application."""

    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    analyzer: AnalyzerSettings = field(default_factory=AnalyzerSettings)
    camera: CameraConfig = field(default_factory=CameraConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AppConfig":
        """Create AppConfig from a dictionary (e.g., loaded from YAML).

        Unknown keys are ignored; missing keys keep their defaults.
        """
        data = data or {}
        return cls(
            scheduler=_build(SchedulerConfig, data.get("scheduler")),
            upload=_build(UploadConfig, data.get("upload")),
            analyzer=_build(AnalyzerSettings, data.get("analyzer")),
            camera=_build(CameraConfig, data.get("camera")),
            display=_build(DisplayConfig, data.get("display")),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "AppConfig":
        """Load AppConfig from a YAML file.

        Raises:
            ImportError: If PyYAML is not installed.
            FileNotFoundError: If the file doesn't exist.
        """
        try:
            import yaml
        except ImportError:
            raise ImportError(
                "PyYAML is required for YAML config support. "
                "Install it with: pip install pyyaml"
            )

        with open(yaml_path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = asdict(self)
        size = data["scheduler"]["analysis_size"]
        if size is not None:
            data["scheduler"]["analysis_size"] = list(size)
        return data


def _build(cls, section: Optional[Dict[str, Any]]):
    if not section:
        return cls()
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in section.items() if k in known})


__all__ = [
    "SchedulerConfig",
    "UploadConfig",
    "AnalyzerSettings",
    "CameraConfig",
    "DisplayConfig",
    "AppConfig",
]
