"""Detect and crop faces from a batch of images.

Usage:
    python -m scripts.crop_faces photo1.jpg photo2.png
    python -m scripts.crop_faces --folder ./photos --mode all
    python -m scripts.crop_faces --archive photos.zip --width-inch 2 --height-inch 2 --zip

Crops are written to `{media_root}/runs/{run_id}/crops/`; with `--zip` a
download archive is also written to `{media_root}/runs/{run_id}/exports/`.
Each image that could not be cropped is reported on its own line.
"""

from __future__ import annotations

import argparse
import logging
import uuid
import zipfile
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from backend/.env (optional) before settings are read
load_dotenv(Path(__file__).resolve().parents[1] / ".env")

from domain.models import CropMode, IngestionMode, PreconditionError, RunOptions
from services.batch_pipeline import FaceCropPipeline
from services.face_detector import MediaPipeFaceDetector
from services.ingestion import ingest, register_heif_opener
from services.result_export import archive_filename, build_archive, failure_messages
from settings import settings
from storage.file_storage import FileStorage

logger = logging.getLogger("crop_faces")


def _non_negative_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Detect faces in a batch of images and crop them.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("files", nargs="*", default=[], help="Image files to crop.")
    source.add_argument("--folder", default=None, help="Crop every image in this folder (recursive).")
    source.add_argument("--archive", default=None, help="Crop every image in this zip archive.")
    parser.add_argument("--mode", choices=[m.value for m in CropMode], default=CropMode.MAIN.value,
                        help="main: one face per image; all: every detected face.")
    parser.add_argument("--width-inch", type=_non_negative_float, default=None, help="Output width in inches (96 DPI).")
    parser.add_argument("--height-inch", type=_non_negative_float, default=None, help="Output height in inches (96 DPI).")
    parser.add_argument("--media-root", default=settings.MEDIA_ROOT)
    parser.add_argument("--run-id", default=None, help="Output folder name under runs/ (random if omitted).")
    parser.add_argument("--zip", action=argparse.BooleanOptionalAction, default=settings.CROP_WRITE_ARCHIVE,
                        help="Also write all crops into a single zip archive.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    if not logger.handlers:
        logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    args = build_parser().parse_args(argv)

    try:
        if args.folder:
            batch = ingest(IngestionMode.FOLDER, args.folder)
        elif args.archive:
            batch = ingest(IngestionMode.ARCHIVE, args.archive)
        else:
            batch = ingest(IngestionMode.FILES, args.files)
    except (OSError, zipfile.BadZipFile) as e:
        logger.error("Cannot read input: %s", e)
        return 2

    register_heif_opener()
    options = RunOptions(width_inch=args.width_inch, height_inch=args.height_inch)
    run_id = args.run_id or uuid.uuid4().hex[:12]
    storage = FileStorage(args.media_root)

    detector = MediaPipeFaceDetector(settings.FACE_MIN_CONFIDENCE, settings.FACE_MODEL_SELECTION)
    try:
        detector.load()
    except RuntimeError as e:
        logger.error("%s", e)
        return 2
    try:
        result = FaceCropPipeline(detector).run(batch.sources, options, args.mode)
    except PreconditionError as e:
        logger.error("%s", e)
        return 2
    finally:
        detector.close()

    paths = storage.save_artifacts(run_id, result.artifacts)
    for message in failure_messages(result.failed_images):
        logger.warning(message)

    logger.info("Cropped %d faces from %d images into %s", len(paths), len(batch.sources),
                storage.get_run_crops_dir(run_id))
    if args.zip and result.artifacts:
        archive = storage.save_archive(run_id, build_archive(result.artifacts), archive_filename(batch.label))
        logger.info("  archive: %s", storage.get_absolute_path(archive))

    return 0 if result.artifacts else 1


if __name__ == "__main__":
    raise SystemExit(main())
