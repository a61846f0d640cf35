"""
Batch ingestion.

Resolves a user selection into a flat, ordered list of named image sources.
The caller states what it is handing over (loose files, a folder, or a zip
archive); nothing here guesses the mode from file suffixes.
"""
from __future__ import annotations

import logging
import zipfile
from io import BytesIO
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Iterable, List, Optional, Union

from domain.models import ImageSource, IngestedBatch, IngestionMode

logger = logging.getLogger(__name__)

_ARCHIVE_JUNK_DIRS = {"__MACOSX"}


def register_heif_opener() -> bool:
    """
    Register HEIF/HEIC opener with Pillow if pillow-heif is available.

    Safe to call multiple times.
    """
    try:
        from pillow_heif import register_heif_opener as _register
        _register()
        return True
    except ImportError:
        return False


def _is_hidden(parts: Iterable[str]) -> bool:
    return any(p.startswith(".") or p in _ARCHIVE_JUNK_DIRS for p in parts)


def _is_unsafe_entry(name: str) -> bool:
    """Absolute, drive-rooted or parent-relative archive entry names."""
    posix = PurePosixPath(name.replace("\\", "/"))
    return posix.is_absolute() or bool(PureWindowsPath(name).drive) or ".." in posix.parts


def _path_reader(path: Path):
    return lambda: path.read_bytes()


def ingest_files(paths: Iterable[Union[str, Path]]) -> IngestedBatch:
    """One source per path, in the order given. Names are base names."""
    sources = []
    for p in paths:
        path = Path(p)
        sources.append(ImageSource(name=path.name, read=_path_reader(path)))
    return IngestedBatch(mode=IngestionMode.FILES, sources=sources)


def ingest_folder(folder: Union[str, Path]) -> IngestedBatch:
    """
    Walk a folder recursively, sorted by relative path.

    Hidden files and directories are skipped. Source names are posix paths
    relative to the folder so files in different subfolders stay distinct.
    """
    root = Path(folder)
    if not root.is_dir():
        raise NotADirectoryError(f"Not a folder: {root}")

    files = sorted(
        (p for p in root.rglob("*") if p.is_file()),
        key=lambda p: p.relative_to(root).as_posix(),
    )
    sources: List[ImageSource] = []
    for path in files:
        rel = path.relative_to(root)
        if _is_hidden(rel.parts):
            continue
        sources.append(ImageSource(name=rel.as_posix(), read=_path_reader(path)))

    logger.info("ingestion: folder %s -> %d files", root, len(sources))
    return IngestedBatch(mode=IngestionMode.FOLDER, sources=sources, label=root.name or "folder")


def ingest_archive(archive: Union[str, Path, bytes], label: Optional[str] = None) -> IngestedBatch:
    """
    Read every non-directory entry of a zip archive, in archive order.

    Entries are read into memory up front so the archive handle is not held
    open for the duration of the run. Entries with absolute, drive-rooted or
    `..` names are skipped. Raises zipfile.BadZipFile for input that is not
    a zip archive.
    """
    if isinstance(archive, (bytes, bytearray)):
        handle = zipfile.ZipFile(BytesIO(archive))
    else:
        path = Path(archive)
        handle = zipfile.ZipFile(path)
        if label is None:
            label = path.stem

    sources: List[ImageSource] = []
    with handle as zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            if _is_unsafe_entry(info.filename):
                logger.warning("ingestion: skipping unsafe archive entry %r", info.filename)
                continue
            if _is_hidden(PurePosixPath(info.filename).parts):
                continue
            sources.append(ImageSource.from_bytes(info.filename, zf.read(info)))

    logger.info("ingestion: archive %s -> %d entries", label or "<bytes>", len(sources))
    return IngestedBatch(mode=IngestionMode.ARCHIVE, sources=sources, label=label)


def ingest(mode: Union[IngestionMode, str], target) -> IngestedBatch:
    """Dispatch on an explicit ingestion mode."""
    mode = IngestionMode(mode)
    if mode == IngestionMode.FILES:
        return ingest_files(target)
    if mode == IngestionMode.FOLDER:
        return ingest_folder(target)
    return ingest_archive(target)
