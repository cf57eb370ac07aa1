"""Upload storage — flat files in UPLOAD_DIR named by a generated unique id."""

from __future__ import annotations

import base64
import logging
import os
import uuid

logger = logging.getLogger(__name__)

_KNOWN_IMAGE_TYPES = {"image/png", "image/jpeg", "image/webp", "image/bmp", "image/gif"}


class UploadStore:
    def __init__(self, upload_dir: str):
        self.upload_dir = upload_dir

    def save(self, data: bytes, original_filename: str | None) -> str:
        """Write uploaded bytes to ``<uuid>-<basename>`` and return the path."""
        os.makedirs(self.upload_dir, exist_ok=True)
        name = os.path.basename(original_filename or "") or "upload"
        filepath = os.path.join(self.upload_dir, f"{uuid.uuid4()}-{name}")
        with open(filepath, "wb") as f:
            f.write(data)
        logger.info("Stored upload %s (%d bytes)", filepath, len(data))
        return filepath


def image_mime_type(path: str, content_type: str | None = None) -> str:
    if os.path.splitext(path)[1].lower() == ".png":
        return "image/png"
    if content_type in _KNOWN_IMAGE_TYPES:
        return content_type
    return "image/jpeg"


def image_to_data_url(path: str, content_type: str | None = None) -> str:
    """Read an image file and encode it as a base64 ``data:`` URL."""
    with open(path, "rb") as f:
        image_b64 = base64.b64encode(f.read()).decode("utf-8")
    return f"data:{image_mime_type(path, content_type)};base64,{image_b64}"
