"""
Batch face crop pipeline.

Processes a batch of image sources one at a time, in input order:

1. Decode the image (EXIF orientation applied)
2. Run the face detector
3. Select faces (main / all)
4. For each selected face: crop rectangle -> output size -> render -> name

A failure anywhere in 1-4 is contained to that file: its name goes into
`failed_images` and the batch moves on. Only precondition violations
(detector not ready, empty batch) stop a run before it starts.
"""
from __future__ import annotations

from io import BytesIO
import logging
import re
from typing import List, Optional, Sequence, Set, Union

from PIL import Image, ImageOps

from domain.models import (
    BatchResult,
    CropMode,
    CroppedArtifact,
    DecodeFailure,
    DetectorNotReadyError,
    EmptyBatchError,
    ImageSource,
    NoFaceDetected,
    RunOptions,
)
from services.crop_renderer import OUTPUT_EXTENSION, render_crop
from services.face_detector import FaceDetector
from services.face_geometry import DPI, HEAD_SCALE, crop_rectangle, output_size
from services.face_selector import select_faces

logger = logging.getLogger(__name__)

_EXTENSION_RE = re.compile(r"\.[^/.]+$")


def strip_extension(filename: str) -> str:
    """Drop the last extension: "a/portrait.jpg" -> "a/portrait"."""
    return _EXTENSION_RE.sub("", filename)


def artifact_name(source_name: str, mode: CropMode, index: int) -> str:
    """Output name for the `index`-th (1-based) face of a source."""
    base = strip_extension(source_name)
    if mode == CropMode.ALL:
        return f"{base}_face{index}{OUTPUT_EXTENSION}"
    return f"{base}{OUTPUT_EXTENSION}"


def _unique_name(name: str, *used: Set[str]) -> str:
    def in_use(candidate):
        return any(candidate in names for names in used)

    if not in_use(name):
        return name
    stem = strip_extension(name)
    ext = name[len(stem):]
    n = 2
    while in_use(f"{stem}_{n}{ext}"):
        n += 1
    return f"{stem}_{n}{ext}"


def decode_image(data: bytes) -> Image.Image:
    """Decode image bytes into a fully loaded, upright PIL image."""
    try:
        img = Image.open(BytesIO(data))
        img.load()
        return ImageOps.exif_transpose(img)
    except Exception as e:
        raise DecodeFailure(str(e)) from e


class FaceCropPipeline:
    """
    Runs batches against one detector.

    `results` always holds the outcome of the most recent run; a new run
    replaces it.
    """

    def __init__(self, detector: FaceDetector, scale: float = HEAD_SCALE, dpi: int = DPI):
        self.detector = detector
        self.scale = scale
        self.dpi = dpi
        self.results = BatchResult()

    def run(
        self,
        sources: Sequence[ImageSource],
        options: Optional[RunOptions] = None,
        mode: Union[CropMode, str] = CropMode.MAIN,
    ) -> BatchResult:
        """
        Crop faces from every source.

        Raises:
            DetectorNotReadyError: the detector model is not loaded
            EmptyBatchError: no sources were given
            ValueError: unknown mode
        """
        mode = CropMode(mode)
        options = options or RunOptions()
        if not self.detector.ready:
            raise DetectorNotReadyError("Face detector is not ready; load the model before running a batch")
        if not sources:
            raise EmptyBatchError("No input images to process")

        artifacts: List[CroppedArtifact] = []
        failed: List[str] = []
        taken: Set[str] = set()

        for source in sources:
            try:
                produced = self._process(source, options, mode, taken)
            except Exception:
                logger.exception("batch_pipeline: failed to crop %s", source.name)
                failed.append(source.name)
                continue
            artifacts.extend(produced)
            taken.update(a.name for a in produced)

        logger.info(
            "batch_pipeline: mode=%s files=%d artifacts=%d failed=%d",
            mode.value,
            len(sources),
            len(artifacts),
            len(failed),
        )
        self.results = BatchResult(artifacts=artifacts, failed_images=failed)
        return self.results

    def _process(self, source: ImageSource, options: RunOptions, mode: CropMode, taken: Set[str]) -> List[CroppedArtifact]:
        img = decode_image(source.read_bytes())

        detections = self.detector.detect(img)
        if not detections:
            raise NoFaceDetected(f"No face detected in {source.name}")

        selected = select_faces(detections, mode, img.size)

        produced: List[CroppedArtifact] = []
        own: Set[str] = set()
        for idx, det in enumerate(selected, start=1):
            rect = crop_rectangle(det.box, self.scale)
            spec = output_size(rect, options.width_inch, options.height_inch, dpi=self.dpi)
            data = render_crop(img, rect, spec, dpi=self.dpi)
            name = _unique_name(artifact_name(source.name, mode, idx), taken, own)
            own.add(name)
            produced.append(CroppedArtifact(name=name, image_data=data))
        return produced
