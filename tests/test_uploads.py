import io

import pytest
from fastapi import UploadFile
from helpers import PNG_BYTES

from image_mixer.api.common import read_upload, read_uploads
from image_mixer.services.validation import InvalidRequest


def test_read_stops_right_after_limit() -> None:
    f = io.BytesIO(b"x" * 100)
    with pytest.raises(InvalidRequest) as ei:
        read_upload(UploadFile(file=f, filename="a.png"), max_bytes=10)
    assert ei.value.error.code == "IMAGE_TOO_LARGE"
    assert f.tell() == 11


def test_declared_size_is_checked_before_reading() -> None:
    f = io.BytesIO(b"x" * 100)
    with pytest.raises(InvalidRequest) as ei:
        read_upload(UploadFile(file=f, filename="a.png", size=100), max_bytes=10)
    assert "100 bytes" in ei.value.error.details
    assert f.tell() == 0


def test_upload_within_limit() -> None:
    blob = read_upload(UploadFile(file=io.BytesIO(PNG_BYTES), filename="a.png"), max_bytes=1024)
    assert blob.file_name == "a.png"
    assert blob.data == PNG_BYTES


def test_empty_parts_are_skipped() -> None:
    uploads = [
        None,
        UploadFile(file=io.BytesIO(b"")),
        UploadFile(file=io.BytesIO(PNG_BYTES), filename="b.png"),
    ]
    blobs = read_uploads(uploads, max_bytes=1024)
    assert [b.file_name for b in blobs] == ["b.png"]
