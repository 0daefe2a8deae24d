import io

import pytest
from botocore.exceptions import ClientError
from PIL import Image

from hostel_tracker.core.exceptions import UpstreamError, ValidationError
from hostel_tracker.utils import s3_service
from hostel_tracker.utils.form_validator import (
    parse_bool,
    validate_create_issue_form,
    validate_create_item_form,
)


def png_bytes(width=2000, height=1000):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), "red").save(buffer, format="PNG")
    return buffer.getvalue()


def test_parse_bool():
    assert parse_bool("true") and parse_bool("On") and parse_bool(True)
    assert not parse_bool("false") and not parse_bool("0") and not parse_bool("")


def test_issue_form_strips_and_validates():
    data = validate_create_issue_form("  Broken window ", "Glass cracked near bed 3", "furniture", "low", "false")

    assert data.title == "Broken window"
    assert data.is_public is False

    with pytest.raises(ValidationError) as exc:
        validate_create_issue_form("Hi", "short", "ghosts", "low", "true")
    assert {e["loc"][0] for e in exc.value.details["errors"]} == {"title", "description", "category"}


def test_item_form_blank_contact_is_none():
    data = validate_create_item_form("Keys", "Bunch of three keys", "Canteen", "found", "   ")
    assert data.contact_info is None

    with pytest.raises(ValidationError):
        validate_create_item_form("Keys", "Bunch of three keys", "Canteen", "stolen")


def test_compress_image_downscales():
    buffer, ext, mime = s3_service.compress_image(png_bytes())

    image = Image.open(buffer)
    assert image.size == (1400, 700)
    assert (ext, mime) in {("webp", "image/webp"), ("jpg", "image/jpeg")}


def test_compress_rejects_non_images():
    with pytest.raises(ValidationError):
        s3_service.compress_image(b"definitely not an image")


def test_upload_media_returns_public_url(monkeypatch):
    uploaded = {}

    def fake_upload(fileobj, bucket, key, ExtraArgs):
        uploaded["key"] = key
        uploaded["content_type"] = ExtraArgs["ContentType"]

    monkeypatch.setattr(s3_service.s3, "upload_fileobj", fake_upload)

    url = s3_service.upload_media(b"\x00\x01", "clip.mp4", "video/mp4", s3_service.ISSUE_MEDIA_FOLDER)

    assert uploaded["key"].startswith("hostel-tracker/issues/clip-")
    assert uploaded["key"].endswith(".mp4")
    assert uploaded["content_type"] == "video/mp4"
    assert url == f"{s3_service.MEDIA_PUBLIC_URL}/{uploaded['key']}"


def test_upload_media_limits_and_failures(monkeypatch):
    monkeypatch.setattr(s3_service, "MAX_UPLOAD_BYTES", 10)
    with pytest.raises(ValidationError):
        s3_service.upload_media(b"x" * 11, "big.bin", "application/octet-stream", "tmp")

    def failing_upload(*args, **kwargs):
        raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, "PutObject")

    monkeypatch.setattr(s3_service.s3, "upload_fileobj", failing_upload)
    with pytest.raises(UpstreamError):
        s3_service.upload_media(b"tiny", "a.bin", "application/octet-stream", "tmp")
