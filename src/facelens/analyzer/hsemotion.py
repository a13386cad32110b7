"""HSEmotion backend for fast expression analysis."""

import logging
from typing import Dict, List, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)


class HSEmotionBackend:
    """Expression analysis backend using HSEmotion-ONNX.

    Classifies 8 emotions per face crop with an EfficientNet model:
    Anger, Contempt, Disgust, Fear, Happiness, Neutral, Sadness, Surprise.
    Probabilities are returned in that model order under standard names.

    Args:
        model_name: HSEmotion model variant (default: "enet_b0_8_best_vgaf").

    Example:
        >>> backend = HSEmotionBackend()
        >>> backend.initialize("cpu")
        >>> expressions = backend.analyze(image, [(x, y, w, h)])
    """

    EMOTIONS = [
        "Anger",
        "Contempt",
        "Disgust",
        "Fear",
        "Happiness",
        "Neutral",
        "Sadness",
        "Surprise",
    ]

    # HSEmotion names -> displayed names
    EMOTION_MAP = {
        "Anger": "angry",
        "Contempt": "contempt",
        "Disgust": "disgusted",
        "Fear": "fearful",
        "Happiness": "happy",
        "Neutral": "neutral",
        "Sadness": "sad",
        "Surprise": "surprised",
    }

    def __init__(self, model_name: str = "enet_b0_8_best_vgaf"):
        self._model_name = model_name
        self._model = None
        self._initialized = False

    def initialize(self, device: str = "cpu") -> None:
        """Initialize HSEmotion recognizer."""
        if self._initialized:
            return

        try:
            from hsemotion_onnx.facial_emotions import HSEmotionRecognizer

            self._model = HSEmotionRecognizer(model_name=self._model_name)
            self._initialized = True
            logger.info("HSEmotion backend initialized (model=%s)", self._model_name)

        except ImportError:
            raise ImportError(
                "hsemotion-onnx is required for HSEmotionBackend. "
                "Install with: pip install hsemotion-onnx"
            )
        except Exception as e:
            logger.error("Failed to initialize HSEmotion: %s", e)
            raise

    def analyze(
        self, image: np.ndarray, boxes: Sequence[Tuple[float, float, float, float]]
    ) -> List[Dict[str, float]]:
        """Classify expressions for each face box.

        Args:
            image: BGR image as numpy array (H, W, 3).
            boxes: Face boxes (x, y, w, h) in pixels.

        Returns:
            One emotion -> probability dict per box (empty for degenerate crops).
        """
        if not self._initialized or self._model is None:
            raise RuntimeError("Backend not initialized. Call initialize() first.")

        import cv2

        results = []
        img_h, img_w = image.shape[:2]

        for x, y, w, h in boxes:
            # Expand bbox slightly for better recognition
            pad = int(max(w, h) * 0.1)
            x1 = max(0, int(x) - pad)
            y1 = max(0, int(y) - pad)
            x2 = min(img_w, int(x + w) + pad)
            y2 = min(img_h, int(y + h) + pad)

            face_img = image[y1:y2, x1:x2]
            if face_img.size == 0:
                results.append({})
                continue

            face_rgb = cv2.cvtColor(face_img, cv2.COLOR_BGR2RGB)
            _, scores = self._model.predict_emotions(face_rgb, logits=False)

            emotions = {}
            for i, score in enumerate(scores):
                if i < len(self.EMOTIONS):
                    name = self.EMOTIONS[i]
                    emotions[self.EMOTION_MAP.get(name, name.lower())] = float(score)
            results.append(emotions)

        return results

    def cleanup(self) -> None:
        """Release HSEmotion resources."""
        self._model = None
        self._initialized = False
        logger.info("HSEmotion backend cleaned up")
