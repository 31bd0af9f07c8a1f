import logging
import re
import secrets
from pathlib import Path
from typing import Optional, Tuple

from app.core.config import settings
from app.core.constants import ALLOWED_IMAGE_TYPES
from app.core.exceptions import NotFoundError, ValidationFailed

logger = logging.getLogger(__name__)

FILENAME_PATTERN = re.compile(r"^[0-9a-f]{32}\.(jpg|png|gif|webp)$")


def sniff_image_type(head: bytes) -> Optional[str]:
    """MIME type from the file's leading bytes, or None when not an allowed image."""
    if head.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if head.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if head[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if len(head) >= 12 and head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return "image/webp"
    return None


class UploadService:
    def _directory(self) -> Path:
        directory = Path(settings.UPLOAD_DIR)
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def save_image(self, data: bytes, *, original_name: str = "") -> str:
        """Store an uploaded image and return its generated filename."""
        if not data:
            raise ValidationFailed({"image": "No file was uploaded."})
        if len(data) > settings.MAX_UPLOAD_SIZE:
            raise ValidationFailed({"image": "File is too large. Maximum size is 5MB."})

        mime_type = sniff_image_type(data[:16])
        if mime_type not in ALLOWED_IMAGE_TYPES:
            raise ValidationFailed({"image": "Invalid file type. Only JPEG, PNG, GIF and WebP are allowed."})

        filename = f"{secrets.token_hex(16)}{ALLOWED_IMAGE_TYPES[mime_type]}"
        (self._directory() / filename).write_bytes(data)
        logger.info(f"Stored upload {original_name!r} as {filename} ({len(data)} bytes)")
        return filename

    def public_url(self, filename: str) -> str:
        return f"/uploads/images/{filename}"

    def resolve_image(self, filename: str) -> Tuple[Path, str]:
        """Path and content-derived media type of a stored image."""
        if not FILENAME_PATTERN.match(filename or ""):
            raise NotFoundError("Image not found.")
        path = Path(settings.UPLOAD_DIR) / filename
        if not path.is_file():
            raise NotFoundError("Image not found.")
        with path.open("rb") as fh:
            mime_type = sniff_image_type(fh.read(16))
        if mime_type is None:
            raise NotFoundError("Image not found.")
        return path, mime_type


upload_service = UploadService()
