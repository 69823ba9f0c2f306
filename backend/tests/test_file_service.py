"""
Virtual Fridge Backend — File Service Unit Tests
==================================================

What:  Upload validation (extension, size, MIME), storage naming, public
       path resolution and per-user cleanup.
How:   Each test gets a FileService rooted in a temporary directory;
       python-magic is patched where a specific verdict is needed.

Test Strategy:
    ✅ Allowed / rejected extensions
    ✅ Size limits, declared and actual, and empty files
    ✅ MIME sniffing verdicts
    ✅ <userId>-<epoch_ms><ext> naming under images/
    ✅ Path traversal blocked on the public path
    ✅ delete_all_user_images() only touches the user's own files
"""

import uuid
from pathlib import Path
from unittest.mock import patch

import pytest

from virtual_fridge.config import settings
from virtual_fridge.exceptions import FileStorageError, NotFoundError, ValidationError
from virtual_fridge.services.file_service import FileService


class TestFileValidation:

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.service = FileService(temp_storage)

    # ── Extension Validation ──────────────────────────────────────────────

    @pytest.mark.parametrize("filename", ["apple.jpg", "apple.jpeg", "apple.png", "apple.webp"])
    def test_allowed_extensions(self, filename):
        assert self.service.validate_extension(filename) == Path(filename).suffix

    def test_extension_check_is_case_insensitive(self):
        assert self.service.validate_extension("apple.JPG") == ".jpg"
        assert self.service.validate_extension("apple.Png") == ".png"

    @pytest.mark.parametrize("filename", ["animation.gif", "document.pdf", "malware.exe", "noextension", ""])
    def test_rejected_extensions(self, filename):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.validate_extension(filename)

    # ── Size Validation ───────────────────────────────────────────────────

    def test_size_within_limit(self):
        self.service.validate_size(1000, 1000)

    def test_size_at_limit(self):
        self.service.validate_size(settings.max_file_size, settings.max_file_size)

    def test_declared_size_over_limit(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(settings.max_file_size + 1, 10)

    def test_actual_size_over_limit(self):
        """A missing Content-Length does not skip the check on received bytes."""
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(None, settings.max_file_size + 1)

    def test_empty_file(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(0, 0)

    # ── MIME Validation ───────────────────────────────────────────────────

    def test_mime_accepts_jpeg(self, sample_image_bytes):
        with patch("magic.from_buffer", return_value="image/jpeg"):
            assert self.service.validate_mime_type(sample_image_bytes) == "image/jpeg"

    def test_mime_rejects_renamed_file(self):
        with patch("magic.from_buffer", return_value="application/pdf"):
            with pytest.raises(ValidationError, match="not supported"):
                self.service.validate_mime_type(b"%PDF-1.4 not an image")

    def test_mime_detection_failure(self):
        with patch("magic.from_buffer", side_effect=RuntimeError("libmagic broke")):
            with pytest.raises(FileStorageError, match="Could not verify file type"):
                self.service.validate_mime_type(b"\x00\x01")


class TestFileStorage:

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.service = FileService(temp_storage)
        self.user_id = uuid.uuid4()

    @pytest.mark.asyncio
    async def test_validate_and_store_names_file_after_user(self, sample_image_bytes):
        with patch("magic.from_buffer", return_value="image/jpeg"):
            abs_path, public_path = await self.service.validate_and_store(
                self.user_id, "My Photo.JPEG", sample_image_bytes, len(sample_image_bytes)
            )

        stored = Path(abs_path)
        assert stored.read_bytes() == sample_image_bytes
        assert stored.parent == self.service.images_dir
        assert stored.name.startswith(f"{self.user_id}-")
        assert stored.suffix == ".jpeg"
        assert public_path == f"uploads/images/{stored.name}"

    @pytest.mark.asyncio
    async def test_validate_and_store_rejects_crlf_filename(self, sample_image_bytes):
        with pytest.raises(ValidationError, match="CRLF") as exc_info:
            await self.service.validate_and_store(
                self.user_id, "evil\r\n.jpg", sample_image_bytes, None
            )
        assert exc_info.value.context["field"] == "media"
        assert list(self.service.images_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_validate_and_store_writes_nothing_on_bad_extension(self, sample_image_bytes):
        with pytest.raises(ValidationError):
            await self.service.validate_and_store(self.user_id, "photo.gif", sample_image_bytes)
        assert list(self.service.images_dir.iterdir()) == []

    # ── Retrieval ─────────────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_resolve_public_path(self):
        abs_path, _ = await self.service.store_file(self.user_id, b"data", ".png")
        resolved = self.service.resolve_public_path(f"images/{Path(abs_path).name}")
        assert resolved == Path(abs_path).resolve()

    def test_resolve_blocks_traversal(self):
        with pytest.raises(ValidationError, match="Invalid file path"):
            self.service.resolve_public_path("../../etc/passwd")

    def test_resolve_missing_file(self):
        with pytest.raises(NotFoundError, match="File not found"):
            self.service.resolve_public_path("images/nothing-here.jpg")

    # ── Cleanup ───────────────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_delete_all_user_images_keeps_other_users(self):
        other_user = uuid.uuid4()
        (self.service.images_dir / f"{self.user_id}-1.jpg").write_bytes(b"a")
        (self.service.images_dir / f"{self.user_id}-2.png").write_bytes(b"b")
        (self.service.images_dir / f"{other_user}-3.jpg").write_bytes(b"c")

        deleted = await self.service.delete_all_user_images(self.user_id)

        assert sorted(deleted) == [f"{self.user_id}-1.jpg", f"{self.user_id}-2.png"]
        remaining = [p.name for p in self.service.images_dir.iterdir()]
        assert remaining == [f"{other_user}-3.jpg"]
