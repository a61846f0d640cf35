"""
Core domain models for the face crop pipeline.
These are framework-agnostic and can be used across all services.
"""
import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple


class CropMode(str, Enum):
    """Which detections are kept per image."""
    MAIN = "main"  # Single most prominent face
    ALL = "all"


class IngestionMode(str, Enum):
    """How the caller supplied the batch."""
    FILES = "files"
    FOLDER = "folder"
    ARCHIVE = "archive"


# ============================================
# Errors
# ============================================

class FaceCropError(Exception):
    """Base class for face crop failures."""


class PreconditionError(FaceCropError):
    """A run was started in a state where it cannot proceed."""


class DetectorNotReadyError(PreconditionError):
    pass


class EmptyBatchError(PreconditionError):
    pass


class DecodeFailure(FaceCropError):
    """The input could not be loaded as an image."""


class NoFaceDetected(FaceCropError, ValueError):
    """The detector found no faces."""


class RenderFailure(FaceCropError):
    """Drawing or encoding the crop failed."""


# ============================================
# Geometry
# ============================================

@dataclass(frozen=True)
class BoundingBox:
    """
    Face box in source-image pixels.

    Origin is top-left with axes increasing right/down.
    """
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        if self.x < 0 or self.y < 0:
            raise ValueError(f"Bounding box origin must be non-negative, got ({self.x}, {self.y})")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Bounding box size must be positive, got {self.width}x{self.height}")

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


@dataclass(frozen=True)
class Detection:
    """One face returned by a detector. `payload` is carried through untouched."""
    box: BoundingBox
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SelectionCandidate:
    detection: Detection
    area: float
    distance_from_center: float


@dataclass(frozen=True)
class CropRectangle:
    """Source region to crop. Only the lower bound (0, 0) is clamped."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class OutputSpec:
    width: int
    height: int


# ============================================
# Run inputs
# ============================================

@dataclass(frozen=True)
class RunOptions:
    """
    Physical output size for a run.

    A size of None (or 0) means the axis follows the detected crop.
    """
    width_inch: Optional[float] = None
    height_inch: Optional[float] = None

    def __post_init__(self):
        for label, value in (("width_inch", self.width_inch), ("height_inch", self.height_inch)):
            if value is not None and value < 0:
                raise ValueError(f"{label} must be non-negative, got {value}")


@dataclass
class ImageSource:
    """A named, loadable input image."""
    name: str
    read: Callable[[], bytes]

    def read_bytes(self) -> bytes:
        return self.read()

    @classmethod
    def from_bytes(cls, name: str, data: bytes) -> "ImageSource":
        return cls(name=name, read=lambda: data)


@dataclass
class IngestedBatch:
    """Flat, ordered list of sources plus the folder/archive label, if any."""
    mode: IngestionMode
    sources: List[ImageSource] = field(default_factory=list)
    label: Optional[str] = None


# ============================================
# Results
# ============================================

@dataclass(frozen=True)
class CroppedArtifact:
    """One rendered crop: output file name plus PNG bytes."""
    name: str
    image_data: bytes

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.image_data).decode("ascii")
        return f"data:image/png;base64,{encoded}"


@dataclass
class BatchResult:
    """
    Outcome of one pipeline run.

    Every input contributes either one or more artifacts or exactly one
    entry in `failed_images`.
    """
    artifacts: List[CroppedArtifact] = field(default_factory=list)
    failed_images: List[str] = field(default_factory=list)

    @property
    def artifact_names(self) -> List[str]:
        return [a.name for a in self.artifacts]
