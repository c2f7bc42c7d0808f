"""Temporary storage for incoming uploads."""

import os
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile

from stylelens.config import logger

CHUNK_SIZE = 1024 * 1024


@dataclass
class TempUpload:
    """An incoming image spooled to the server's local filesystem."""

    path: str
    filename: str
    content_type: str
    size: int


async def save_upload_to_temp(upload: UploadFile, directory: str) -> TempUpload:
    """Write an uploaded file to a uniquely named file under ``directory``."""
    suffix = Path(upload.filename or "").suffix
    fd, path = tempfile.mkstemp(
        prefix=f"upload-{uuid.uuid4().hex}-", suffix=suffix, dir=directory
    )

    size = 0
    try:
        with os.fdopen(fd, "wb") as handle:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                handle.write(chunk)
                size += len(chunk)
    except Exception:
        remove_temp_file(path)
        raise

    logger.debug("Stored upload", extra={"path": path, "size": size})
    return TempUpload(
        path=path,
        filename=upload.filename or "image.jpg",
        content_type=upload.content_type or "image/jpeg",
        size=size,
    )


def remove_temp_file(path: str) -> None:
    """Delete a temporary upload, logging instead of raising on failure."""
    try:
        os.remove(path)
        logger.debug("Cleaned up file", extra={"path": path})
    except OSError as exc:
        logger.warning(
            "Failed to cleanup file", extra={"path": path, "error": str(exc)}
        )
