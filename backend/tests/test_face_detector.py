from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from PIL import Image

from services import face_detector as fd


def _mp_detection(xmin, ymin, width, height, score=0.9):
    return SimpleNamespace(
        score=[score],
        location_data=SimpleNamespace(
            relative_bounding_box=SimpleNamespace(xmin=xmin, ymin=ymin, width=width, height=height),
            relative_keypoints=[SimpleNamespace(x=0.5, y=0.5)],
        ),
    )


@pytest.fixture
def fake_mediapipe(monkeypatch):
    model = MagicMock()
    mp = MagicMock()
    mp.solutions.face_detection.FaceDetection.return_value = model
    monkeypatch.setattr(fd, "mp", mp)
    monkeypatch.setattr(fd, "_HAS_MEDIAPIPE", True)
    return mp, model


def test_relative_box_clamped_to_image():
    box = fd._relative_to_pixel_box(-0.1, 0.5, 0.3, 0.6, 200, 100)
    assert (box.x, box.y) == (0.0, 50.0)
    assert box.width == pytest.approx(40.0)
    assert box.height == pytest.approx(50.0)


def test_relative_box_outside_image_dropped():
    assert fd._relative_to_pixel_box(1.2, 0.1, 0.1, 0.1, 200, 100) is None


def test_not_ready_until_loaded(fake_mediapipe):
    mp, _ = fake_mediapipe
    detector = fd.MediaPipeFaceDetector(min_confidence=0.6, model_selection=0)
    assert detector.ready is False
    detector.load()
    assert detector.ready is True
    mp.solutions.face_detection.FaceDetection.assert_called_once_with(
        model_selection=0, min_detection_confidence=0.6
    )


def test_detect_converts_to_pixels(fake_mediapipe):
    _, model = fake_mediapipe
    model.process.return_value = SimpleNamespace(detections=[
        _mp_detection(0.1, 0.2, 0.25, 0.5, score=0.8),
        _mp_detection(2.0, 2.0, 0.1, 0.1),
    ])

    with fd.MediaPipeFaceDetector() as detector:
        dets = detector.detect(Image.new("RGB", (400, 200)))
    assert detector.ready is False
    model.close.assert_called_once()

    assert len(dets) == 1
    box = dets[0].box
    assert (box.x, box.y) == pytest.approx((40.0, 40.0))
    assert (box.width, box.height) == pytest.approx((100.0, 100.0))
    assert dets[0].payload["score"] == pytest.approx(0.8)
    assert dets[0].payload["keypoints"] == [(200.0, 100.0)]


def test_no_detections(fake_mediapipe):
    _, model = fake_mediapipe
    model.process.return_value = SimpleNamespace(detections=None)
    detector = fd.MediaPipeFaceDetector().load()
    assert detector.detect(Image.new("RGB", (10, 10))) == []


def test_detect_before_load_raises():
    with pytest.raises(RuntimeError):
        fd.MediaPipeFaceDetector().detect(Image.new("RGB", (10, 10)))


def test_load_without_mediapipe(monkeypatch):
    monkeypatch.setattr(fd, "_HAS_MEDIAPIPE", False)
    detector = fd.MediaPipeFaceDetector()
    with pytest.raises(RuntimeError):
        detector.load()
    assert detector.ready is False
