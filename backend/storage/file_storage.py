"""
File storage abstraction.

Provides a simple interface for writing crop results to disk.
Currently uses local filesystem.
"""
import shutil
from pathlib import Path, PurePosixPath
from typing import List, Sequence

from domain.models import CroppedArtifact


class FileStorage:
    """
    Local file storage implementation.

    Files are organized as:
    - media/runs/{run_id}/crops/  - Cropped face images
    - media/runs/{run_id}/exports/  - Zip archives for download
    """

    def __init__(self, media_root: str = "media"):
        self.media_root = Path(media_root)
        self.media_root.mkdir(parents=True, exist_ok=True)

    def get_run_crops_dir(self, run_id: str) -> Path:
        """Get the crops directory for a run."""
        path = self.media_root / "runs" / run_id / "crops"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def get_run_exports_dir(self, run_id: str) -> Path:
        """Get the exports directory for a run."""
        path = self.media_root / "runs" / run_id / "exports"
        path.mkdir(parents=True, exist_ok=True)
        return path

    @staticmethod
    def _safe_relative(name: str) -> Path:
        parts = PurePosixPath(name).parts
        if not parts or PurePosixPath(name).is_absolute() or ".." in parts:
            raise ValueError(f"Unsafe output name: {name!r}")
        return Path(*parts)

    def save_artifact(self, run_id: str, artifact: CroppedArtifact) -> str:
        """
        Save one cropped image.

        Artifact names may contain folders (from folder/archive input);
        those are recreated under the run's crops directory.

        Returns:
            Relative path to the saved file
        """
        file_path = self.get_run_crops_dir(run_id) / self._safe_relative(artifact.name)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(artifact.image_data)
        return file_path.relative_to(self.media_root).as_posix()

    def save_artifacts(self, run_id: str, artifacts: Sequence[CroppedArtifact]) -> List[str]:
        """Save every artifact. Returns relative paths in artifact order."""
        return [self.save_artifact(run_id, a) for a in artifacts]

    def save_archive(self, run_id: str, data: bytes, filename: str) -> str:
        """
        Save a zip archive to the run's exports directory.

        Returns:
            Relative path to the saved archive
        """
        file_path = self.get_run_exports_dir(run_id) / self._safe_relative(filename).name
        file_path.write_bytes(data)
        return file_path.relative_to(self.media_root).as_posix()

    def get_absolute_path(self, relative_path: str) -> Path:
        """Convert a relative path to absolute."""
        return self.media_root / relative_path

    def file_exists(self, relative_path: str) -> bool:
        """Check if a file exists."""
        return (self.media_root / relative_path).exists()

    def delete_file(self, relative_path: str) -> bool:
        """Delete a file. Returns True if deleted."""
        path = self.media_root / relative_path
        if path.exists():
            path.unlink()
            return True
        return False

    def delete_run_files(self, run_id: str) -> bool:
        """Delete all files for a run."""
        run_dir = self.media_root / "runs" / run_id
        if run_dir.exists():
            shutil.rmtree(run_dir)
            return True
        return False
