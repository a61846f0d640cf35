"""
Face detector adapters.

The pipeline only needs two things from a detector: whether its model is
loaded (`ready`) and `detect(image) -> List[Detection]` in source pixels.
`MediaPipeFaceDetector` is the default backend; tests substitute a fake
returning fixture boxes.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

import numpy as np
from PIL import Image

try:
    import mediapipe as mp
    _HAS_MEDIAPIPE = True
except Exception:
    mp = None
    _HAS_MEDIAPIPE = False

from domain.models import BoundingBox, Detection

logger = logging.getLogger(__name__)


class FaceDetector(Protocol):
    """Capability the batch pipeline consumes."""

    @property
    def ready(self) -> bool:
        ...

    def detect(self, image: Image.Image) -> List[Detection]:
        ...


def _relative_to_pixel_box(xmin: float, ymin: float, width: float, height: float, img_w: int, img_h: int) -> Optional[BoundingBox]:
    """Convert a relative box to clamped pixel coords; None when nothing is left inside the image."""
    l = max(0.0, xmin * img_w)
    t = max(0.0, ymin * img_h)
    r = min(float(img_w), (xmin + width) * img_w)
    b = min(float(img_h), (ymin + height) * img_h)
    if r - l <= 0 or b - t <= 0:
        return None
    return BoundingBox(x=l, y=t, width=r - l, height=b - t)


class MediaPipeFaceDetector:
    """
    MediaPipe face detection backend.

    The model is stateful and not shared across threads; call `load()` once
    before the first batch and `close()` when done (or use it as a context
    manager).
    """

    def __init__(self, min_confidence: float = 0.5, model_selection: int = 1):
        self.min_confidence = min_confidence
        self.model_selection = model_selection
        self._model = None

    @property
    def ready(self) -> bool:
        return self._model is not None

    def load(self) -> "MediaPipeFaceDetector":
        if self._model is not None:
            return self
        if not _HAS_MEDIAPIPE:
            raise RuntimeError("mediapipe is not installed; cannot load the face detector")
        mp_face = mp.solutions.face_detection
        self._model = mp_face.FaceDetection(
            model_selection=self.model_selection,
            min_detection_confidence=self.min_confidence,
        )
        logger.info(
            "face_detector: loaded mediapipe model_selection=%s min_confidence=%.2f",
            self.model_selection,
            self.min_confidence,
        )
        return self

    def close(self) -> None:
        if self._model is not None:
            self._model.close()
            self._model = None

    def __enter__(self) -> "MediaPipeFaceDetector":
        return self.load()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def detect(self, image: Image.Image) -> List[Detection]:
        """Return detections in source pixels, in the order MediaPipe reports them."""
        if self._model is None:
            raise RuntimeError("face detector used before load()")

        img_w, img_h = image.size
        arr = np.array(image.convert("RGB"))
        results = self._model.process(arr)

        detections: List[Detection] = []
        for det in results.detections or []:
            rbox = det.location_data.relative_bounding_box
            box = _relative_to_pixel_box(rbox.xmin, rbox.ymin, rbox.width, rbox.height, img_w, img_h)
            if box is None:
                continue
            payload: Dict[str, Any] = {
                "score": float(det.score[0]) if det.score else 0.0,
                "keypoints": [
                    (kp.x * img_w, kp.y * img_h) for kp in det.location_data.relative_keypoints
                ],
            }
            detections.append(Detection(box=box, payload=payload))
        return detections
