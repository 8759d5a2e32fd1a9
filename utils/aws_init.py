import os
from typing import Any, Optional

import boto3

from services.query_strategy import CROP_INDEX_NAME, DUAL_FILTER_PAGE_SIZE, FARMER_INDEX_NAME
from services.signed_url_resolver import SIGNED_URL_EXPIRES_SECONDS


def _required_env(name: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        raise RuntimeError(f"{name} environment variable must be set.")
    return value.strip()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


class AwsResourceInitializer:
    """
    Build the DynamoDB table and S3 client used by the service.

    - AWS_REGION, DYNAMO_TABLE_NAME and S3_BUCKET_NAME are required; a
      RuntimeError is raised at construction time if any is missing.
    - FARMER_INDEX_NAME / CROP_INDEX_NAME override the secondary index names.
    - SIGNED_URL_EXPIRES and DUAL_FILTER_PAGE_SIZE tune signing and the
      farmer+crop accumulation loop.
    - Credentials come from the usual boto3 chain (env, profile, role).
    - Clients are created lazily on first access and then reused.
    """

    def __init__(self) -> None:
        self.region = _required_env("AWS_REGION")
        self.table_name = _required_env("DYNAMO_TABLE_NAME")
        self.bucket = _required_env("S3_BUCKET_NAME")

        self.farmer_index = os.getenv("FARMER_INDEX_NAME") or FARMER_INDEX_NAME
        self.crop_index = os.getenv("CROP_INDEX_NAME") or CROP_INDEX_NAME
        self.signed_url_expires = _int_env("SIGNED_URL_EXPIRES", SIGNED_URL_EXPIRES_SECONDS)
        self.dual_filter_page_size = _int_env("DUAL_FILTER_PAGE_SIZE", DUAL_FILTER_PAGE_SIZE)

        self._table: Optional[Any] = None
        self._s3_client: Optional[Any] = None

    @property
    def table(self) -> Any:
        """boto3 `Table` resource for DYNAMO_TABLE_NAME."""
        if self._table is None:
            dynamodb = boto3.resource("dynamodb", region_name=self.region)
            self._table = dynamodb.Table(self.table_name)
        return self._table

    @property
    def s3_client(self) -> Any:
        """boto3 S3 client used for presigning and uploads."""
        if self._s3_client is None:
            self._s3_client = boto3.client("s3", region_name=self.region)
        return self._s3_client
