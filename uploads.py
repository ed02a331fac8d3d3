import io
import logging
import os
from typing import Dict, List
from uuid import uuid4

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

import config
from errors import ValidationError

logger = logging.getLogger(__name__)

PRODUCT_SUBDIR = "products"
MAX_DIMENSION = 1200
JPEG_QUALITY = 80
MAX_FILES = 5


def product_upload_dir() -> str:
    path = os.path.join(config.UPLOAD_DIR, PRODUCT_SUBDIR)
    os.makedirs(path, exist_ok=True)
    return path


def _unique_filename(field_name: str) -> str:
    return f"{field_name}-{uuid4().hex}.jpg"


def optimize_image(data: bytes) -> bytes:
    """Fit inside MAX_DIMENSION x MAX_DIMENSION and re-encode as progressive JPEG."""
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ValidationError("Not an image! Please upload only images.") from e
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    # thumbnail keeps the aspect ratio and never enlarges
    image.thumbnail((MAX_DIMENSION, MAX_DIMENSION))
    out = io.BytesIO()
    image.save(out, format="JPEG", quality=JPEG_QUALITY, progressive=True, optimize=True)
    return out.getvalue()


def save_product_image(upload: UploadFile, field_name: str) -> Dict[str, str]:
    if not (upload.content_type or "").startswith("image/"):
        raise ValidationError("Not an image! Please upload only images.")
    limit = config.MAX_UPLOAD_SIZE_MB * 1024 * 1024
    data = upload.file.read(limit + 1)
    if not data:
        raise ValidationError("No file uploaded")
    if len(data) > limit:
        raise ValidationError(f"File too large (max {config.MAX_UPLOAD_SIZE_MB}MB)")

    optimized = optimize_image(data)
    filename = _unique_filename(field_name)
    with open(os.path.join(product_upload_dir(), filename), "wb") as f:
        f.write(optimized)
    logger.info("Stored upload %s (%s, %d bytes)", filename, upload.filename, len(data))
    return {"filename": filename, "path": f"/uploads/{PRODUCT_SUBDIR}/{filename}"}


def save_product_images(uploads: List[UploadFile], field_name: str) -> List[Dict[str, str]]:
    if len(uploads) > MAX_FILES:
        raise ValidationError(f"You can only upload up to {MAX_FILES} images")
    saved = []
    try:
        for upload in uploads:
            saved.append(save_product_image(upload, field_name))
    except Exception:
        for item in saved:
            remove_product_image(item["filename"])
        raise
    return saved


def remove_product_image(filename: str) -> None:
    try:
        os.remove(os.path.join(product_upload_dir(), filename))
    except FileNotFoundError:
        return
