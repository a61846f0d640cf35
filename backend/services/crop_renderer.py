"""
Crop renderer.

Maps a source rectangle onto an output surface of an exact size and encodes
the result as PNG. The rectangle is stretched to fill the surface; aspect
ratio is not preserved when an explicit physical size asks for a different
shape.

Parts of the rectangle that fall outside the source image come out as
transparent pixels.
"""
from __future__ import annotations

from io import BytesIO
import logging

from PIL import Image

from domain.models import CropRectangle, OutputSpec, RenderFailure
from services.face_geometry import DPI

logger = logging.getLogger(__name__)

OUTPUT_FORMAT = "PNG"
OUTPUT_EXTENSION = ".png"


def render_crop_image(image: Image.Image, rect: CropRectangle, spec: OutputSpec) -> Image.Image:
    """Return the RGBA surface for a crop without encoding it."""
    if spec.width < 1 or spec.height < 1:
        raise RenderFailure(f"Output size must be at least 1x1, got {spec.width}x{spec.height}")
    if rect.width <= 0 or rect.height <= 0:
        raise RenderFailure(f"Crop rectangle is empty: {rect}")

    src = image if image.mode == "RGBA" else image.convert("RGBA")
    extent = (rect.x, rect.y, rect.x + rect.width, rect.y + rect.height)
    # EXTENT maps the source box onto the whole destination; out-of-range reads fill with 0 (transparent)
    return src.transform(
        (spec.width, spec.height),
        Image.Transform.EXTENT,
        extent,
        resample=Image.Resampling.BILINEAR,
    )


def render_crop(image: Image.Image, rect: CropRectangle, spec: OutputSpec, dpi: int = DPI) -> bytes:
    """
    Render `rect` of `image` into a `spec`-sized PNG.

    Returns:
        Encoded PNG bytes

    Raises:
        RenderFailure: if the surface cannot be drawn or encoded
    """
    try:
        surface = render_crop_image(image, rect, spec)
        output = BytesIO()
        surface.save(output, format=OUTPUT_FORMAT, dpi=(dpi, dpi))
        return output.getvalue()
    except RenderFailure:
        raise
    except Exception as e:
        logger.debug("render_crop failed for %s -> %s", rect, spec, exc_info=True)
        raise RenderFailure(f"Failed to render crop {rect}: {e}") from e
