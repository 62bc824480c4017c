# app/services/files.py
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class UploadedFile:
    destination: str
    filename: str
    mimetype: str
    size: int


def clean_files(files: Optional[Iterable[UploadedFile]]) -> List[dict]:
    """Map uploaded-file metadata to the manifest entries stored on a note."""
    return [
        {
            "path": f"{f.destination}/{f.filename}",
            "filename": f.filename,
            "mimetype": f.mimetype,
            "size": f.size,
        }
        for f in files or []
    ]


def file_paths(entries: Optional[Iterable[dict]]) -> List[str]:
    return [e["path"] for e in entries or [] if e.get("path")]


def find_file(entries: Optional[Iterable[dict]], filename: str) -> Optional[dict]:
    for entry in entries or []:
        if entry.get("filename") == filename:
            return entry
    return None


def remove_quietly(storage, path: Optional[str]) -> None:
    if not path:
        return
    try:
        storage.remove(path)
    except Exception:
        logger.warning("could not remove %s from storage", path, exc_info=True)


def delete_files(storage, entries: Optional[Iterable[dict]]) -> None:
    # one failed removal must not keep the rest around
    for path in file_paths(entries):
        remove_quietly(storage, path)
