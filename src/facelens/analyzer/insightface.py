"""InsightFace backend for detection, 68-point landmarks, age and gender."""

import contextlib
import io
import logging
import threading
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np

from facelens.types import AnalyzerConfig, Detection

logger = logging.getLogger(__name__)


class InsightFaceBackend:
    """Face analysis backend using InsightFace model packs.

    Runs the SCRFD detector, the 3D-68 landmark model and the genderage
    attribute model. Gender probability is the softmax of the genderage
    head's two gender logits.

    Args:
        model_name: Model pack (default: "buffalo_l").
        models_dir: Root directory holding ``insightface/models/<pack>``.

    Example:
        >>> backend = InsightFaceBackend()
        >>> backend.initialize("cpu")
        >>> detections = backend.detect(image, AnalyzerConfig())
        >>> backend.cleanup()
    """

    MODULES = ["detection", "landmark_3d_68", "genderage"]

    def __init__(self, model_name: str = "buffalo_l", models_dir: Optional[Path] = None):
        self._model_name = model_name
        self._models_dir = models_dir
        self._app: Optional[object] = None
        self._ctx_id = -1
        self._prepared: Optional[Tuple[Tuple[int, int], float]] = None
        self._initialized = False
        self._actual_provider = "unknown"
        self._prepare_lock = threading.Lock()

    def initialize(self, device: str = "cpu") -> None:
        """Initialize InsightFace FaceAnalysis."""
        if self._initialized:
            return

        try:
            from insightface.app import FaceAnalysis
            import onnxruntime as ort

            ort.set_default_logger_severity(3)
            available_providers = ort.get_available_providers()
            logger.debug("Available ONNX providers: %s", available_providers)

            if device.startswith("cuda"):
                self._ctx_id = int(device.split(":")[-1]) if ":" in device else 0
                if "CUDAExecutionProvider" in available_providers:
                    providers = ["CUDAExecutionProvider", "CPUExecutionProvider"]
                    self._actual_provider = "CUDA"
                else:
                    providers = ["CPUExecutionProvider"]
                    self._actual_provider = "CPU (CUDA unavailable)"
                    logger.warning("CUDAExecutionProvider not available, falling back to CPU")
            else:
                self._ctx_id = -1
                providers = ["CPUExecutionProvider"]
                self._actual_provider = "CPU"

            fa_kwargs = dict(
                name=self._model_name,
                providers=providers,
                allowed_modules=self.MODULES,
            )
            if self._models_dir is not None:
                fa_kwargs["root"] = str(Path(self._models_dir) / "insightface")
            # insightface prints model discovery to stdout
            with contextlib.redirect_stdout(io.StringIO()):
                self._app = FaceAnalysis(**fa_kwargs)
            self._initialized = True
            logger.info("InsightFace initialized (model=%s, provider=%s)", self._model_name, self._actual_provider)

        except ImportError:
            raise ImportError(
                "insightface is required for InsightFaceBackend. "
                "Install with: pip install insightface onnxruntime"
            )
        except Exception as e:
            logger.error("Failed to initialize InsightFace: %s", e)
            raise

    def _ensure_prepared(self, config: AnalyzerConfig) -> None:
        det_size = (config.input_size, config.input_size)
        key = (det_size, config.score_threshold)
        with self._prepare_lock:
            if self._prepared == key:
                return
            with contextlib.redirect_stdout(io.StringIO()):
                self._app.prepare(ctx_id=self._ctx_id, det_thresh=config.score_threshold, det_size=det_size)
            self._prepared = key
            logger.debug("InsightFace prepared with det_size=%s det_thresh=%.2f", det_size, config.score_threshold)

    def detect(self, image: np.ndarray, config: AnalyzerConfig) -> List[Detection]:
        """Detect faces and estimate landmarks, age and gender.

        Args:
            image: BGR image as numpy array (H, W, 3).
            config: Detector input size and score threshold.

        Returns:
            Detections in pixel coordinates of ``image``.
        """
        if not self._initialized or self._app is None:
            raise RuntimeError("Backend not initialized. Call initialize() first.")

        self._ensure_prepared(config)
        faces = self._app.get(image)
        results = []

        for face in faces:
            if face.det_score < config.score_threshold:
                continue

            # x1, y1, x2, y2 -> x, y, w, h
            x1, y1, x2, y2 = (float(v) for v in face.bbox[:4])

            landmarks = None
            lmk = getattr(face, "landmark_3d_68", None)
            if lmk is not None:
                landmarks = np.asarray(lmk)[:, :2].tolist()

            age, gender, gender_prob = self._gender_age(image, face)

            results.append(
                Detection(
                    bbox=(x1, y1, x2 - x1, y2 - y1),
                    score=float(face.det_score),
                    landmarks=landmarks,
                    age=age,
                    gender=gender,
                    gender_probability=gender_prob,
                )
            )

        return results

    def _gender_age(self, image: np.ndarray, face) -> Tuple[Optional[float], str, float]:
        """Run the genderage head and keep the gender confidence.

        FaceAnalysis.get() stores only the argmax, so the aligned crop is
        re-run here to read both gender logits.
        """
        model = self._app.models.get("genderage")
        if model is None:
            return None, "unknown", 0.0

        import cv2
        from insightface.utils import face_align

        x1, y1, x2, y2 = face.bbox[:4]
        w, h = x2 - x1, y2 - y1
        center = ((x2 + x1) / 2.0, (y2 + y1) / 2.0)
        size = model.input_size[0]
        scale = size / (max(w, h) * 1.5)
        aimg, _ = face_align.transform(image, center, size, scale, 0)
        blob = cv2.dnn.blobFromImage(
            aimg,
            1.0 / model.input_std,
            tuple(aimg.shape[0:2][::-1]),
            (model.input_mean, model.input_mean, model.input_mean),
            swapRB=True,
        )
        pred = model.session.run(model.output_names, {model.input_name: blob})[0][0]

        logits = np.asarray(pred[:2], dtype=np.float64)
        probs = np.exp(logits - logits.max())
        probs /= probs.sum()
        # genderage index 1 is male
        is_male = int(np.argmax(probs)) == 1
        gender = "male" if is_male else "female"
        age = float(pred[2]) * 100.0
        return age, gender, float(probs.max())

    def cleanup(self) -> None:
        """Release InsightFace resources."""
        self._app = None
        self._prepared = None
        self._initialized = False
        logger.info("InsightFace backend cleaned up")

    @property
    def provider(self) -> str:
        return self._actual_provider
