"""
Result export helpers.

Turns a BatchResult into what the user sees: one failure message per failed
file and a zip archive bundling every crop.
"""
from __future__ import annotations

import zipfile
from io import BytesIO
from typing import List, Optional, Sequence

from domain.models import CroppedArtifact

DEFAULT_ARCHIVE_NAME = "cropped_faces.zip"


def failure_messages(failed_images: Sequence[str]) -> List[str]:
    """One message per failed file, numbered by its position among the failures."""
    total = len(failed_images)
    return [
        f"Failed to detect face in: {name} ({idx}/{total})"
        for idx, name in enumerate(failed_images, start=1)
    ]


def archive_filename(label: Optional[str] = None) -> str:
    """Name of the download archive for a folder/archive label."""
    if label:
        return f"{label}_cropped.zip"
    return DEFAULT_ARCHIVE_NAME


def build_archive(artifacts: Sequence[CroppedArtifact]) -> bytes:
    """Bundle artifacts into a zip, one entry per artifact name."""
    output = BytesIO()
    with zipfile.ZipFile(output, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for artifact in artifacts:
            zf.writestr(artifact.name, artifact.image_data)
    return output.getvalue()
