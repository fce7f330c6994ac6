"""Image upload handling: validation and collision-free storage per resource."""

from __future__ import annotations

from pathlib import Path
import io
import logging
import re
import secrets
import time

from fastapi import UploadFile
from PIL import Image

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif"}
ALLOWED_TYPES = {"image/jpeg", "image/jpg", "image/pjpeg", "image/png", "image/gif"}
ALLOWED_FORMATS = {"JPEG", "PNG", "GIF"}
SAFE_SUFFIX = re.compile(r"\.[a-z0-9]{1,10}")


class UploadError(Exception):
    """Base class for upload failures; also raised when the file cannot be stored."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidFileTypeError(UploadError):
    """Extension, content type or payload is not an accepted image format."""


class FileTooLargeError(UploadError):
    """Payload exceeds the configured size limit."""


class EmptyUploadError(UploadError):
    """A file part was sent without any content."""


def _decodes_as_image(data: bytes) -> bool:
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
            return image.format in ALLOWED_FORMATS
    except Exception:
        return False


class UploadHandler:
    """Stores at most one image per request inside ``upload_dir``."""

    def __init__(self, upload_dir: Path, *, max_bytes: int, validate_images: bool = False) -> None:
        self.upload_dir = Path(upload_dir)
        self.max_bytes = max_bytes
        self.validate_images = validate_images

    @staticmethod
    def _suffix(filename: str) -> str:
        suffix = Path(filename).suffix.lower()
        return suffix if SAFE_SUFFIX.fullmatch(suffix) else ""

    def _check_type(self, suffix: str, content_type: str) -> None:
        if suffix not in ALLOWED_EXTENSIONS or content_type not in ALLOWED_TYPES:
            raise InvalidFileTypeError("Only image files are allowed!")

    def _write_unique(self, data: bytes, suffix: str) -> str:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        while True:
            filename = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{suffix}"
            path = self.upload_dir / filename
            try:
                f = open(path, "xb")
            except FileExistsError:
                continue
            try:
                with f:
                    f.write(data)
            except OSError:
                self._remove_partial(path)
                raise
            return filename

    @staticmethod
    def _remove_partial(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.exception("Failed to remove partial upload %s", path)

    async def save(self, upload: UploadFile | None) -> str | None:
        """
        Validate and store the uploaded file, returning the generated filename.

        Returns None when no file was attached. Nothing is written to disk unless
        every check passes.
        """
        if upload is None or not upload.filename:
            return None
        suffix = self._suffix(upload.filename)
        content_type = (upload.content_type or "").lower()
        if self.validate_images:
            self._check_type(suffix, content_type)
        data = await upload.read(self.max_bytes + 1)
        if not data:
            raise EmptyUploadError("Uploaded file is empty.")
        if len(data) > self.max_bytes:
            raise FileTooLargeError(f"File too large (max {self.max_bytes} bytes).")
        if self.validate_images and not _decodes_as_image(data):
            raise InvalidFileTypeError("Only image files are allowed!")
        try:
            filename = self._write_unique(data, suffix)
        except OSError as exc:
            logger.error("Could not store upload %s in %s: %s", upload.filename, self.upload_dir, exc)
            raise UploadError("Image upload failed.") from exc
        logger.debug("Stored upload %s as %s", upload.filename, filename)
        return filename
