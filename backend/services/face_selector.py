"""
Face selection policies.

`main` keeps the single most prominent face: the largest box, ties broken
by the box center closest to the image center. `all` keeps every face in
the order the detector returned them.
"""
from __future__ import annotations

import math
from typing import List, Sequence, Tuple, Union

from domain.models import CropMode, Detection, NoFaceDetected, SelectionCandidate
from services.face_geometry import center


def rank_candidates(detections: Sequence[Detection], image_size: Tuple[int, int]) -> List[SelectionCandidate]:
    """Order detections by area (desc) then distance to image center (asc).

    The sort is stable, so detections that tie on both keys keep detector order.
    """
    img_w, img_h = image_size
    img_cx = img_w / 2
    img_cy = img_h / 2

    candidates = []
    for det in detections:
        cx, cy = center(det.box)
        candidates.append(
            SelectionCandidate(
                detection=det,
                area=det.box.width * det.box.height,
                distance_from_center=math.hypot(cx - img_cx, cy - img_cy),
            )
        )
    return sorted(candidates, key=lambda c: (-c.area, c.distance_from_center))


def select_faces(
    detections: Sequence[Detection],
    mode: Union[CropMode, str],
    image_size: Tuple[int, int],
) -> List[Detection]:
    """
    Pick the detections to crop for one image.

    Args:
        detections: Detector output for the image
        mode: "main" or "all"
        image_size: (width, height) of the source image

    Returns:
        One detection in main mode, all of them in all mode.

    Raises:
        NoFaceDetected: if `detections` is empty
        ValueError: on an unknown mode
    """
    mode = CropMode(mode)
    if not detections:
        raise NoFaceDetected("cannot select from an empty detection set")

    if mode == CropMode.ALL:
        return list(detections)
    return [rank_candidates(detections, image_size)[0].detection]
