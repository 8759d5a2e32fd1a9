"""Validation helpers for uploaded crop images."""

import os

from fastapi import HTTPException, UploadFile

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/heic",
    "image/heif",
}

ALLOWED_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".heic", ".heif")


def validate_image_file(image_file: UploadFile) -> None:
    """Validate that the upload is a supported image format.

    The content type is checked against the allowed set; when the client
    sends no content type the filename extension must be a known image type.
    """
    if not image_file.filename:
        raise HTTPException(status_code=400, detail="Image file must have a filename.")
    if image_file.content_type:
        content_type = image_file.content_type.lower().split(";", 1)[0].strip()
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise HTTPException(status_code=415, detail=f"Unsupported image content type: {image_file.content_type}")
    elif not image_file.filename.lower().endswith(ALLOWED_IMAGE_EXTENSIONS):
        raise HTTPException(status_code=415, detail="Unsupported or missing image content type.")


def safe_filename(filename: str) -> str:
    """Strip any directory components a client put in the filename."""
    name = os.path.basename(filename.replace("\\", "/")).strip()
    return name or "upload"


async def read_image_bytes(image_file: UploadFile) -> bytes:
    """Read validated image bytes, ensuring the upload is not empty."""
    validate_image_file(image_file)
    image_bytes = await image_file.read()
    if not image_bytes:
        raise HTTPException(status_code=400, detail="Uploaded image is empty.")
    return image_bytes
