import sys
from io import BytesIO
from pathlib import Path
from typing import Dict, List

from PIL import Image

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from domain.models import BoundingBox, Detection  # noqa: E402


class FakeDetector:
    """Deterministic detector keyed on image size: {(w, h): [boxes]}."""

    def __init__(self, boxes_by_size: Dict[tuple, List[tuple]] = None, ready: bool = True):
        self.boxes_by_size = boxes_by_size or {}
        self._ready = ready
        self.calls = 0

    @property
    def ready(self) -> bool:
        return self._ready

    def detect(self, image):
        self.calls += 1
        boxes = self.boxes_by_size.get(image.size, [])
        return [Detection(box=BoundingBox(*b), payload={"score": 0.9}) for b in boxes]


def make_image_bytes(size=(200, 200), color=(200, 120, 80), fmt="JPEG") -> bytes:
    img = Image.new("RGB", size, color)
    buf = BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()
