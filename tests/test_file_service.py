"""
LegalTendr Backend — File Service Unit Tests
==============================================

What:  Tests for FileService validation, storage layout and path resolution.
How:   Temporary storage roots; no HTTP.

Test Strategy:
    ✅ Allowed extensions (.png, .jpg, .jpeg, .webp), case-insensitive
    ✅ Rejected extensions (.gif, .pdf, .exe, none)
    ✅ Size limits and empty files
    ✅ avatars/YYYY/MM/DD/<uuid>.<ext> layout
    ✅ Path traversal refused when resolving stored files
    ❌ Content sniffing of disguised files requires libmagic (skipped if unavailable)
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from legaltendr.config import settings
from legaltendr.exceptions import FileStorageError, NotFoundError, ValidationError
from legaltendr.services.file_service import FileService


class TestFileValidation:

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.service = FileService(storage_root=temp_storage)

    # ── Extension Validation ──────────────────────────────────────────────

    @pytest.mark.parametrize("filename", ["me.png", "me.jpg", "me.jpeg", "me.webp", "ME.JPG", "me.Png"])
    def test_allowed_extensions(self, filename):
        assert self.service.validate_extension(filename) == Path(filename).suffix.lower()

    @pytest.mark.parametrize("filename", ["anim.gif", "cv.pdf", "malware.exe", "noextension", ""])
    def test_rejected_extensions(self, filename):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.validate_extension(filename)

    # ── Size Validation ───────────────────────────────────────────────────

    def test_size_within_limit(self):
        self.service.validate_size(None, 1000)

    def test_size_at_limit(self):
        self.service.validate_size(settings.max_file_size, settings.max_file_size)

    def test_size_over_limit(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(None, settings.max_file_size + 1)

    def test_declared_size_over_limit(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(settings.max_file_size * 2, 10)

    def test_empty_file(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(0, 0)

    # ── MIME Validation ───────────────────────────────────────────────────

    def test_png_bytes_accepted(self, sample_png_bytes):
        assert self.service.validate_mime_type(sample_png_bytes, "me.png") == "image/png"

    def test_disguised_file_rejected(self):
        pytest.importorskip("magic")
        with pytest.raises(ValidationError, match="content type"):
            self.service.validate_mime_type(b"#!/bin/sh\necho hi\n" * 10, "script.png")

    def test_detector_failure_is_a_storage_error(self, sample_png_bytes):
        magic = pytest.importorskip("magic")
        with patch.object(magic, "from_buffer", side_effect=RuntimeError("libmagic crashed")):
            with pytest.raises(FileStorageError):
                self.service.validate_mime_type(sample_png_bytes, "me.png")


class TestStorage:

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.storage_root = Path(temp_storage).resolve()
        self.service = FileService(storage_root=temp_storage)

    @pytest.mark.asyncio
    async def test_store_uses_dated_avatar_directory(self, sample_png_bytes):
        absolute, relative = await self.service.validate_and_store(
            filename="Profile Photo.PNG",
            content=sample_png_bytes,
            content_length=len(sample_png_bytes),
        )

        parts = relative.split("/")
        assert parts[0] == "avatars"
        assert len(parts) == 5
        assert parts[-1].endswith(".png")
        # The client's filename never reaches disk
        assert "Profile" not in relative
        assert Path(absolute).read_bytes() == sample_png_bytes

    @pytest.mark.asyncio
    async def test_store_failure_raises_storage_error(self, sample_png_bytes):
        with patch("aiofiles.open", side_effect=OSError("disk full")):
            with pytest.raises(FileStorageError):
                await self.service.store_file(sample_png_bytes, ".png")

    @pytest.mark.asyncio
    async def test_cleanup_file_removes_file(self, tmp_path):
        test_file = tmp_path / "old.png"
        test_file.write_bytes(b"test content")

        await self.service.cleanup_file(str(test_file))
        assert not test_file.exists()

    @pytest.mark.asyncio
    async def test_cleanup_file_nonexistent(self, tmp_path):
        await self.service.cleanup_file(str(tmp_path / "nonexistent.png"))

    # ── URLs and Lookup ───────────────────────────────────────────────────

    def test_public_url_round_trip(self):
        url = self.service.public_url("avatars/2026/10/19/abc.png")
        assert url == "/api/files/avatars/2026/10/19/abc.png"
        assert self.service.path_from_url(url) == self.storage_root / "avatars/2026/10/19/abc.png"

    def test_path_from_external_url(self):
        assert self.service.path_from_url("https://cdn.example.com/me.jpg") is None
        assert self.service.path_from_url(None) is None

    @pytest.mark.parametrize("path", ["../secret.txt", "avatars/../../etc/passwd"])
    def test_resolve_refuses_traversal(self, path):
        with pytest.raises(ValidationError, match="Invalid file path"):
            self.service.resolve(path)
        assert self.service.path_from_url(f"/api/files/{path}") is None

    def test_open_stored_missing_file(self):
        with pytest.raises(NotFoundError):
            self.service.open_stored("avatars/2026/01/01/missing.png")
