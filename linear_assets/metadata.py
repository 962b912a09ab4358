"""File size and content-type resolution for local uploads."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Union

from .config import DEFAULT_CONTENT_TYPE
from .errors import FilesystemError
from .models import FileMetadata

logger = logging.getLogger("linear_assets")

CONTENT_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "bmp": "image/bmp",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mov": "video/quicktime",
    "pdf": "application/pdf",
}


def content_type_for(path: Union[str, Path]) -> str:
    """Map a file extension to a MIME type without looking at the bytes."""
    _, dot, extension = Path(path).name.rpartition(".")
    extension = extension.lower() if dot else ""
    return CONTENT_TYPES.get(extension, DEFAULT_CONTENT_TYPE)


def resolve_metadata(path: Union[str, Path]) -> FileMetadata:
    """Return the size reported by the filesystem and the extension's content type."""
    try:
        stat_result = os.stat(path)
    except OSError as exc:
        logger.debug("Failed to stat %s: %s", path, exc)
        raise FilesystemError("stat", path, exc.strerror or str(exc), exc.errno) from exc
    return FileMetadata(size=stat_result.st_size, content_type=content_type_for(path))


def read_file(path: Union[str, Path]) -> bytes:
    """Read a whole file into memory."""
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        logger.debug("Failed to read %s: %s", path, exc)
        raise FilesystemError("read", path, exc.strerror or str(exc), exc.errno) from exc
