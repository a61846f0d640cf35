"""
Crop geometry for detected faces.

Pure functions: given a face box, compute its center, the scaled crop
rectangle around it, and the output pixel size of the rendered crop.

The crop is the face box scaled by HEAD_SCALE around its own center, so the
output includes hair, chin and a little of the shoulders. Physical sizes are
converted to pixels at DPI.
"""
from __future__ import annotations

from typing import Optional, Tuple

from domain.models import BoundingBox, CropRectangle, OutputSpec

DPI = 96
HEAD_SCALE = 1.5


def center(box: BoundingBox) -> Tuple[float, float]:
    """Return the (cx, cy) center of a box."""
    return (box.x + box.width / 2, box.y + box.height / 2)


def crop_rectangle(box: BoundingBox, scale: float = HEAD_SCALE) -> CropRectangle:
    """
    Scale a face box around its center.

    The origin is clamped at (0, 0); width and height keep their scaled
    values even when the rectangle then runs past the image edge.
    """
    if scale <= 0:
        raise ValueError(f"scale must be positive, got {scale}")
    cx, cy = center(box)
    new_w = box.width * scale
    new_h = box.height * scale
    x = max(cx - new_w / 2, 0)
    y = max(cy - new_h / 2, 0)
    return CropRectangle(x=x, y=y, width=new_w, height=new_h)


def _resolve_axis(inches: Optional[float], fallback: float, dpi: float) -> int:
    # None and 0 both mean "not supplied"
    if inches:
        return int(inches * dpi)
    return int(fallback)


def output_size(
    rect: CropRectangle,
    width_inch: Optional[float] = None,
    height_inch: Optional[float] = None,
    dpi: float = DPI,
) -> OutputSpec:
    """
    Resolve the output pixel size for a crop.

    Each axis is resolved on its own: a supplied physical size wins,
    otherwise the axis follows the crop rectangle. Fractional pixels are
    truncated.
    """
    return OutputSpec(
        width=_resolve_axis(width_inch, rect.width, dpi),
        height=_resolve_axis(height_inch, rect.height, dpi),
    )
