import io
import logging
import os
import uuid
from typing import List

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from hostel_tracker.core.config import (
    AWS_ACCESS_KEY_ID,
    AWS_SECRET_ACCESS_KEY,
    CLOUDFLARE_ACCOUNT_ID,
    MAX_UPLOAD_SIZE_MB,
    MEDIA_PUBLIC_URL,
    R2_BUCKET,
)
from hostel_tracker.core.exceptions import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = MAX_UPLOAD_SIZE_MB * 1024 * 1024

ISSUE_MEDIA_FOLDER = "hostel-tracker/issues"
LOST_FOUND_FOLDER = "hostel-tracker/lostfound"

URL = f"https://{CLOUDFLARE_ACCOUNT_ID}.r2.cloudflarestorage.com"

s3 = boto3.client(
    service_name="s3",
    endpoint_url=URL,
    aws_access_key_id=AWS_ACCESS_KEY_ID,
    aws_secret_access_key=AWS_SECRET_ACCESS_KEY,
    region_name="auto",
)


def compress_image(data: bytes, max_width=1400, quality=80):
    try:
        img = Image.open(io.BytesIO(data))
        img = img.convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError("Uploaded file is not a readable image") from e

    # Resize while keeping aspect ratio
    w, h = img.size
    if w > max_width:
        new_height = int(h * (max_width / w))
        img = img.resize((max_width, new_height), Image.LANCZOS)

    buffer = io.BytesIO()

    try:
        img.save(buffer, format="WEBP", quality=quality, method=6)
        ext = "webp"
        mime = "image/webp"
    except (OSError, KeyError) as e:
        # Pillow builds without libwebp
        logger.warning("WebP encoding failed, falling back to JPEG: %s", e)

        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", quality=quality, optimize=True)
        ext = "jpg"
        mime = "image/jpeg"

    buffer.seek(0)
    return buffer, ext, mime


def upload_media(data: bytes, filename: str, content_type: str, namespace: str) -> str:
    """
    Store one file under ``namespace`` and return its public URL.

    Images are recompressed first; other media (short videos) are stored as-is.
    """
    if len(data) > MAX_UPLOAD_BYTES:
        raise ValidationError(f"File exceeds {MAX_UPLOAD_SIZE_MB}MB limit")

    base = os.path.splitext(os.path.basename(filename or "upload"))[0] or "upload"

    if (content_type or "").startswith("image/"):
        buffer, ext, mime = compress_image(data)
    else:
        buffer = io.BytesIO(data)
        ext = os.path.splitext(filename or "")[1].lstrip(".") or "bin"
        mime = content_type or "application/octet-stream"

    key = f"{namespace}/{base}-{uuid.uuid4().hex[:12]}.{ext}"

    try:
        s3.upload_fileobj(buffer, R2_BUCKET, key, ExtraArgs={"ContentType": mime})
    except (BotoCoreError, ClientError) as e:
        logger.error("Upload of %s failed: %s", key, e)
        raise UpstreamError("Media upload failed") from e

    return f"{MEDIA_PUBLIC_URL}/{key}"


async def upload_files(files: List[UploadFile], namespace: str, max_files: int) -> List[str]:
    files = [f for f in files or [] if f.filename]

    if len(files) > max_files:
        raise ValidationError(f"At most {max_files} files can be attached")

    urls = []
    for upload in files:
        raw_bytes = await upload.read()
        urls.append(upload_media(raw_bytes, upload.filename, upload.content_type, namespace))

    return urls
