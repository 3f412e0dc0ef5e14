from __future__ import annotations

import logging
import os
import re
import time
import uuid
from pathlib import Path

from fastapi import HTTPException, Request, UploadFile, status

from turismo.core.config import settings

logger = logging.getLogger(__name__)

UPLOADS_URL_PREFIX = "/uploads"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9]")
_CHUNK = 1024 * 1024


def upload_dir() -> Path:
    path = Path(settings.upload_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def _stored_name(prefix: str, original: str) -> str:
    stem, ext = os.path.splitext(original or "file")
    safe_stem = _UNSAFE_CHARS.sub("_", stem)[:80] or "file"
    safe_ext = _UNSAFE_CHARS.sub("", ext)[:10]
    unique = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"
    return f"{prefix}-{unique}-{safe_stem}" + (f".{safe_ext}" if safe_ext else "")


def _check_type(upload: UploadFile, *, allow_pdf: bool) -> None:
    content_type = (upload.content_type or "").lower()
    if content_type.startswith("image/"):
        return
    if allow_pdf and content_type == "application/pdf":
        return
    allowed = "images and PDFs" if allow_pdf else "images"
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"File type not allowed, only {allowed}")


def save_upload(upload: UploadFile, *, prefix: str, allow_pdf: bool = False) -> tuple[str, str]:
    """Store an uploaded file; returns (public_url, storage_path)."""
    _check_type(upload, allow_pdf=allow_pdf)

    max_bytes = settings.max_upload_mb * 1024 * 1024
    target = upload_dir() / _stored_name(prefix, upload.filename or "")

    written = 0
    with target.open("wb") as out:
        while chunk := upload.file.read(_CHUNK):
            written += len(chunk)
            if written > max_bytes:
                break
            out.write(chunk)

    if written > max_bytes:
        target.unlink(missing_ok=True)
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {settings.max_upload_mb}MB",
        )
    if written == 0:
        target.unlink(missing_ok=True)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file")

    logger.info("Stored upload %s (%s bytes)", target.name, written)
    return f"{UPLOADS_URL_PREFIX}/{target.name}", str(target)


def remove_stored_file(storage_path: str | None) -> None:
    if not storage_path:
        return
    try:
        Path(storage_path).unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove stored file %s", storage_path)


def absolute_url(request: Request, url: str | None) -> str | None:
    """Prefix relative upload URLs with API_URL or the request's base URL."""
    if not url or url.startswith(("http://", "https://")):
        return url
    base = (settings.api_url or str(request.base_url)).rstrip("/")
    return f"{base}{url}"
