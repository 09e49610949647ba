from __future__ import annotations

import re
import tempfile
import uuid
from pathlib import Path
from typing import BinaryIO

import structlog

from app.core.config import settings
from app.services.error_codes import ErrorCode
from app.services.exceptions import ImageUploadError, ValidationError
from app.storage.base import StorageAdapter

logger = structlog.get_logger()

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".avif"}
FILENAME_SANITIZE_RE = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_filename(raw_filename: str | None) -> str:
    fallback = "image"
    candidate = (raw_filename or fallback).strip()
    candidate = Path(candidate).name
    candidate = FILENAME_SANITIZE_RE.sub("_", candidate)
    candidate = candidate.strip("._") or fallback
    if len(candidate) > 120:
        stem = Path(candidate).stem[:100] or fallback
        suffix = Path(candidate).suffix[:10]
        candidate = f"{stem}{suffix}"
    return candidate


def _invalid_image(message: str) -> ValidationError:
    return ValidationError(message, code=ErrorCode.INVALID_IMAGE.value)


def check_image(filename: str | None, content_type: str | None) -> str:
    """Validate the upload's declared type and return a storage-safe filename."""
    if content_type and not content_type.lower().startswith("image/"):
        raise _invalid_image("Only image files are allowed")

    safe_filename = _safe_filename(filename)
    suffix = Path(safe_filename).suffix.lower()
    if suffix and suffix not in ALLOWED_EXTENSIONS:
        raise _invalid_image("Unsupported image file extension")
    return safe_filename


def upload_image(
    storage: StorageAdapter,
    fileobj: BinaryIO,
    *,
    filename: str | None,
    content_type: str | None,
    folder: str | None = None,
    max_size: int | None = None,
) -> str:
    """Copy ``fileobj`` into ``storage`` and return the canonical image URL.

    The body is buffered (bounded by ``max_size``) before anything is sent,
    so oversized or empty uploads never reach the storage backend. Storage
    failures are re-raised as :class:`ImageUploadError`.
    """
    safe_filename = check_image(filename, content_type)
    max_size = max_size or settings.image_max_upload_bytes
    folder = (folder or settings.image_upload_folder).strip("/")

    total_size = 0
    buffered = tempfile.SpooledTemporaryFile(max_size=8 * 1024 * 1024, mode="w+b")
    try:
        while True:
            chunk = fileobj.read(1024 * 1024)
            if not chunk:
                break
            total_size += len(chunk)
            if total_size > max_size:
                raise _invalid_image(f"Image exceeds max size of {max_size} bytes")
            buffered.write(chunk)

        if total_size == 0:
            raise _invalid_image("Uploaded image is empty")

        buffered.seek(0)
        key = f"{folder}/{uuid.uuid4().hex}-{safe_filename}"
        try:
            url = storage.put_file(key, buffered, content_type=content_type)
        except Exception as exc:
            logger.error("image_upload_failed", key=key, error=str(exc))
            raise ImageUploadError(f"Image upload failed: {exc}") from exc
    finally:
        buffered.close()

    logger.info("image_uploaded", key=key, size=total_size)
    return url
