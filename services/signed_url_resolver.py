"""Batch resolution of S3 object keys to time-limited GET URLs."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, List, Sequence

from models.image_record import ImageItem

LOGGER = logging.getLogger(__name__)

SIGNED_URL_EXPIRES_SECONDS = 60 * 60


class SignedUrlResolver:
    """Sign S3 object keys with a boto3 S3 client."""

    def __init__(self, s3_client: Any, bucket: str, expires_in: int = SIGNED_URL_EXPIRES_SECONDS) -> None:
        if not bucket:
            raise ValueError("S3 bucket name must be provided.")
        self.s3_client = s3_client
        self.bucket = bucket
        self.expires_in = expires_in

    async def sign(self, key: str) -> str:
        """Return a presigned GET URL for `key`; errors propagate."""
        return await asyncio.to_thread(
            self.s3_client.generate_presigned_url,
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=self.expires_in,
        )

    async def _resolve_one(self, item: ImageItem) -> ImageItem:
        if not item.s3_key:
            return replace(item, image_url="")
        try:
            url = await self.sign(item.s3_key)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.error("Failed to sign URL for %s: %s", item.s3_key, exc)
            url = ""
        return replace(item, image_url=url)

    async def resolve_items(self, items: Sequence[ImageItem]) -> List[ImageItem]:
        """Attach a signed URL to every item, concurrently and in input order.

        A failure for one item leaves that item's URL empty and does not
        affect the others.
        """
        return list(await asyncio.gather(*(self._resolve_one(item) for item in items)))
