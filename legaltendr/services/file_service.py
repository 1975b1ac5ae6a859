"""
LegalTendr Backend — File Storage Service
===========================================

What:  Validates, stores, serves and removes uploaded profile pictures.
How:   Extension, size and MIME checks, then an aiofiles write to
       avatars/YYYY/MM/DD/<uuid>.<ext> below settings.storage_root.
Who:   ProfileService (upload, replacement cleanup) and the files route
       (path resolution when serving).

Security Model:
    - Extension check rejects obviously wrong uploads before reading bytes
    - MIME check inspects the magic bytes, so a renamed file is refused
    - Stored names are UUIDs; no part of the client's filename reaches disk
    - resolve() refuses any path that escapes the storage root
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from legaltendr.config import settings
from legaltendr.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# MIME type → extension used on disk
ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
}

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}

EXTENSION_MIME_FALLBACK = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}

AVATAR_DIR = "avatars"

# Public URL prefix stored in users.profile_picture_url
FILES_URL_PREFIX = "/api/files/"


class FileService:
    """
    File lifecycle for uploads.

    Directory Structure:
        storage/
        └── avatars/
            └── 2026/
                └── 10/
                    └── 19/
                        └── 3f2c...e1.jpg
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override settings.storage_root (tests pass a tmp dir).
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────

    def validate_extension(self, filename: str) -> str:
        """Returns the lower-cased extension; raises ValidationError if not allowed."""
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Checks the declared Content-Length (when sent) and the real size.

        Raises ValidationError for empty files and files over settings.max_file_size.
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size == 0:
            raise ValidationError(message="The uploaded file is empty.", field="file")

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_mime_type(self, file_content: bytes, filename: str) -> str:
        """
        Detects the real MIME type from the file's magic bytes.

        Returns the detected type; raises ValidationError when it is not an
        allowed image type.
        """
        try:
            import magic
            mime_type = magic.from_buffer(file_content, mime=True)
        except ImportError:
            # libmagic missing (slim CI images); trust the extension instead
            logger.warning(
                "python-magic not available; falling back to extension-based type detection. "
                "Install libmagic for production security."
            )
            ext = Path(filename).suffix.lower()
            mime_type = EXTENSION_MIME_FALLBACK.get(ext, "application/octet-stream")
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    f"The file must be a PNG, JPEG or WebP image."
                ),
                field="file",
                context={"detected_mime": mime_type, "allowed": sorted(ALLOWED_MIME_TYPES)},
            )

        return mime_type

    # ── Storage ───────────────────────────────────────────────────────────

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        """(absolute_path, relative_path) for a new avatar file."""
        date_dir = datetime.now(timezone.utc).strftime("%Y/%m/%d")
        relative_path = f"{AVATAR_DIR}/{date_dir}/{uuid.uuid4()}{extension}"
        return self.storage_root / relative_path, relative_path

    async def store_file(self, content: bytes, extension: str) -> Tuple[str, str]:
        """Writes the bytes; returns (absolute_path, relative_path)."""
        absolute_path, relative_path = self._generate_storage_path(extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", relative_path, len(content))
        return str(absolute_path), relative_path

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> Tuple[str, str]:
        """Cheapest checks first: extension, size, magic bytes, then the write."""
        self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        mime_type = self.validate_mime_type(content, filename)
        # Stored extension follows the detected type, not the client's filename
        return await self.store_file(content, ALLOWED_MIME_TYPES[mime_type])

    async def cleanup_file(self, file_path: str) -> None:
        """
        Best-effort delete. A missing file is fine; other failures are logged,
        not raised, because the caller's request has already succeeded.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))

    # ── URLs and Lookup ───────────────────────────────────────────────────

    @staticmethod
    def public_url(relative_path: str) -> str:
        return f"{FILES_URL_PREFIX}{relative_path}"

    def path_from_url(self, url: Optional[str]) -> Optional[Path]:
        """
        Maps a stored /api/files/... URL back to a path inside the storage root.

        Returns None for external URLs (pictures given at registration) and
        for anything that would resolve outside the root.
        """
        if not url or not url.startswith(FILES_URL_PREFIX):
            return None
        try:
            return self.resolve(url[len(FILES_URL_PREFIX):])
        except ValidationError:
            return None

    def resolve(self, relative_path: str) -> Path:
        """
        Absolute path of a stored file.

        Raises:
            ValidationError: the path escapes the storage root
        """
        full_path = (self.storage_root / relative_path).resolve()
        if full_path != self.storage_root and self.storage_root not in full_path.parents:
            raise ValidationError(message="Invalid file path", field="file_path")
        return full_path

    def open_stored(self, relative_path: str) -> Path:
        """resolve() plus an existence check; NotFoundError when absent."""
        full_path = self.resolve(relative_path)
        if not full_path.is_file():
            raise NotFoundError(resource="file", resource_id=relative_path)
        return full_path


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
