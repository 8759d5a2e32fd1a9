"""Helpers for storing uploaded images in S3 and recording them in DynamoDB.

This service writes the original file to the bucket under `images/`, then
puts one new record into the images table with a freshly generated id.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Dict

from dal.image_dal import ImageDAL
from services.filter_normalizer import normalize_str
from services.item_projector import utc_now_iso

LOGGER = logging.getLogger(__name__)


async def save_uploaded_image(
    dal: ImageDAL,
    s3_client: Any,
    bucket: str,
    image_bytes: bytes,
    filename: str,
    content_type: str,
    farmer: str,
    crop: str,
) -> Dict[str, Any]:
    """Upload the blob and write its metadata record.

    Args:
        dal: Image data access layer.
        s3_client: boto3 S3 client.
        bucket: Target bucket name.
        image_bytes: Raw bytes of the uploaded image.
        filename: Sanitized client filename.
        content_type: MIME type stored on the object.
        farmer: Farmer name (trimmed, case kept).
        crop: Crop name (trimmed, stored as entered).

    Returns:
        The record written to the table.

    Raises:
        ValueError: If the image bytes, farmer or crop are missing.
    """
    if not image_bytes:
        raise ValueError("Image bytes are required for saving.")
    farmer_name = normalize_str(farmer)
    crop_name = normalize_str(crop)
    if not farmer_name or not crop_name:
        raise ValueError("Farmer and crop are required.")

    image_id = str(uuid.uuid4())
    s3_key = f"images/{image_id}-{filename}"

    # boto3 calls are blocking -> run in thread
    await asyncio.to_thread(
        s3_client.put_object,
        Bucket=bucket,
        Key=s3_key,
        Body=image_bytes,
        ContentType=content_type,
    )

    record = {
        "id": image_id,
        "farmerName": farmer_name,
        "cropName": crop_name,
        "s3Key": s3_key,
        "timestamp": utc_now_iso(),
        "pestPresent": False,
        "diseasePresent": False,
        "isGoldStandard": False,
    }
    await dal.put_image(record)
    LOGGER.info("Stored upload %s for farmer %r (%d bytes)", image_id, farmer_name, len(image_bytes))
    return record
