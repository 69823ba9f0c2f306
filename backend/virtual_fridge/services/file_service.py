"""
Virtual Fridge Backend — File Storage Service
===============================================

What:  Validates, stores, serves and deletes uploaded images.
How:   Extension → size → content sniffing (python-magic), then an async
       write to <storage_root>/images/<userId>-<epoch_ms><ext>.
Who:   MediaService (uploads, vision), UserService cleanup, the /uploads route.

Security Model:
    1. Extension allow-list: cheap first rejection
    2. Size limit: bounded memory per request
    3. Magic-byte MIME check: catches renamed files
    4. Server-chosen filenames: no user input reaches the path
    5. resolve_public_path(): refuses anything outside the storage root

The user-id prefix on every filename lets account deletion remove a user's
images with a directory scan.
"""

import logging
import time
import uuid
from pathlib import Path
from typing import List, Optional, Tuple

import aiofiles

from virtual_fridge.config import settings
from virtual_fridge.exceptions import FileStorageError, NotFoundError, ValidationError
from virtual_fridge.utils.sanitize import sanitize_log_value

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
}

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}

IMAGES_DIR = "images"
PUBLIC_PREFIX = "uploads"


class FileService:
    """
    Manages the lifecycle of uploaded images.

    Directory Structure:
        <storage_root>/
        └── images/
            ├── 3f0c...-1715700000000.jpg
            └── 3f0c...-1715700123456.png

    Public paths handed to clients look like "uploads/images/<file>" and are
    served by GET /uploads/{path}.
    """

    def __init__(self, storage_root: Optional[str] = None):
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.images_dir = self.storage_root / IMAGES_DIR
        self.images_dir.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────

    def validate_extension(self, filename: str) -> str:
        """Returns the lower-cased extension or raises ValidationError."""
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="media",
                context={"extension": ext},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """Checks both the declared Content-Length and the bytes actually received."""
        max_mb = settings.max_file_size / (1024 * 1024)

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
                field="media",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="media",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

        if actual_size == 0:
            raise ValidationError(message="Uploaded file is empty", field="media")

    def validate_mime_type(self, file_content: bytes) -> str:
        """
        Sniffs the real content type from the file header.

        Raises:
            ValidationError: content is not PNG, JPEG or WebP
            FileStorageError: libmagic failed to inspect the buffer
        """
        import magic

        try:
            mime_type = magic.from_buffer(file_content[:2048], mime=True)
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            ) from e

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    f"The file must be a valid image (PNG, JPEG or WebP)."
                ),
                field="media",
                context={"detected_mime": mime_type},
            )
        return mime_type

    # ── Storage ───────────────────────────────────────────────────────────

    def _generate_storage_path(self, user_id: uuid.UUID, extension: str) -> Tuple[Path, str]:
        """(absolute path, public path) for a new image of this user."""
        filename = f"{user_id}-{int(time.time() * 1000)}{extension}"
        absolute_path = self.images_dir / filename
        return absolute_path, f"{PUBLIC_PREFIX}/{IMAGES_DIR}/{filename}"

    async def store_file(self, user_id: uuid.UUID, content: bytes, extension: str) -> Tuple[str, str]:
        absolute_path, public_path = self._generate_storage_path(user_id, extension)
        try:
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            ) from e

        logger.info("File stored: %s (%d bytes)", public_path, len(content))
        return str(absolute_path), public_path

    async def validate_and_store(
        self,
        user_id: uuid.UUID,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> Tuple[str, str]:
        """
        Full upload pipeline, cheapest check first.

        Returns:
            (absolute_path, public_path). The public path is what clients
            store in FoodType.image or User.profilePicture.
        """
        try:
            sanitize_log_value(filename or "")
        except ValueError as e:
            raise ValidationError(message=str(e), field="media") from e
        ext = self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        self.validate_mime_type(content)
        return await self.store_file(user_id, content, ext)

    # ── Retrieval ─────────────────────────────────────────────────────────

    def resolve_public_path(self, relative: str) -> Path:
        """
        Maps a path under /uploads/ to a file on disk.

        Raises:
            ValidationError: the path escapes the storage root
            NotFoundError:   nothing stored there
        """
        candidate = (self.storage_root / relative).resolve()
        if not candidate.is_relative_to(self.storage_root):
            logger.warning("Path traversal attempt blocked: %s", relative)
            raise ValidationError(message="Invalid file path", field="path")
        if not candidate.is_file():
            raise NotFoundError(resource="File", message="File not found")
        return candidate

    # ── Cleanup ───────────────────────────────────────────────────────────

    async def delete_all_user_images(self, user_id: uuid.UUID) -> List[str]:
        """
        Removes every image whose name starts with "<user_id>-".

        Returns the names that were deleted. Individual failures are logged
        and skipped so account deletion never stalls on storage.
        """
        prefix = f"{user_id}-"
        deleted: List[str] = []
        try:
            entries = list(self.images_dir.iterdir())
        except OSError as e:
            logger.warning("Could not list images for user %s: %s", user_id, str(e))
            return deleted

        for entry in entries:
            if not entry.name.startswith(prefix):
                continue
            try:
                entry.unlink()
                deleted.append(entry.name)
            except OSError as e:
                logger.warning("Failed to delete %s: %s", entry.name, str(e))

        if deleted:
            logger.info("Deleted %d image(s) for user %s", len(deleted), user_id)
        return deleted


file_service = FileService()
