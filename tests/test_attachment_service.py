"""
Tests for the report photo uploader.
"""
import re

import pytest

from uerra.core.errors import AttachmentError
from uerra.services.attachment_service import Attachment, AttachmentUploader, StoredAttachment

FIVE_MB = 5 * 1024 * 1024


def photo(size=1024, content_type="image/jpeg", filename="scene.jpg"):
    return Attachment(filename=filename, content_type=content_type, data=b"\xff" * size)


class TestUpload:

    def test_absent_or_empty_file_is_noop(self, backend):
        uploader = AttachmentUploader(backend)
        assert uploader.upload(None, "citizen-1") is None
        assert uploader.upload(photo(size=0), "citizen-1") is None
        assert backend.blobs == {}

    def test_stores_under_user_prefixed_path(self, backend):
        stored = AttachmentUploader(backend).upload(photo(), "citizen-1")

        assert stored.path.startswith("reports/citizen-1_")
        assert stored.path.endswith(".jpg")
        assert stored.url == f"https://storage.googleapis.com/uerra-test/{stored.path}"
        assert backend.blobs[stored.path]["content_type"] == "image/jpeg"

    def test_extension_from_content_type_when_filename_has_none(self, backend):
        stored = AttachmentUploader(backend).upload(
            photo(content_type="image/webp", filename="blob"), "citizen-1"
        )
        assert stored.path.endswith(".webp")

    def test_filename_does_not_shape_storage_path(self, backend):
        stored = AttachmentUploader(backend).upload(
            photo(content_type="image/png", filename="scene.png/../../../other-user_1"), "citizen-1"
        )
        assert re.fullmatch(r"reports/citizen-1_\d+\.png", stored.path)
        assert list(backend.blobs) == [stored.path]

    def test_extension_ignores_misleading_filename(self, backend):
        stored = AttachmentUploader(backend).upload(
            photo(content_type="image/jpeg", filename="avatar.exe"), "citizen-1"
        )
        assert stored.path.endswith(".jpg")

    def test_exactly_five_mb_is_accepted(self, backend):
        assert AttachmentUploader(backend).upload(photo(size=FIVE_MB), "citizen-1") is not None

    def test_oversized_file_rejected(self, backend):
        with pytest.raises(AttachmentError) as exc_info:
            AttachmentUploader(backend).upload(photo(size=FIVE_MB + 1), "citizen-1")
        assert exc_info.value.message == "Photo file size must be less than 5MB"
        assert backend.blobs == {}

    @pytest.mark.parametrize("content_type", ["image/gif", "application/pdf", None])
    def test_disallowed_type_rejected(self, backend, content_type):
        with pytest.raises(AttachmentError) as exc_info:
            AttachmentUploader(backend).upload(photo(content_type=content_type), "citizen-1")
        assert exc_info.value.message == "Only JPEG, PNG, and WebP images are allowed"

    def test_storage_failure(self, backend):
        backend.fail("upload_blob")
        with pytest.raises(AttachmentError) as exc_info:
            AttachmentUploader(backend).upload(photo(), "citizen-1")
        assert exc_info.value.message.startswith("Failed to upload photo:")


class TestDiscard:

    def test_deletes_blob(self, backend):
        uploader = AttachmentUploader(backend)
        stored = uploader.upload(photo(), "citizen-1")
        assert uploader.discard(stored) is True
        assert stored.path not in backend.blobs

    def test_failure_is_not_raised(self, backend):
        missing = StoredAttachment(path="reports/missing.jpg", url="https://example.com/missing.jpg")
        assert AttachmentUploader(backend).discard(missing) is False
