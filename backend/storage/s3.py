"""
S3 (or S3-compatible) object storage.

Presigning is local SigV4 math; only ``head_private`` goes over the network.
Client calls are bounded by connect/read timeouts and never retried.
"""

import asyncio
import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .base import (
    DEFAULT_CONTENT_TYPE,
    ObjectMeta,
    ObjectNotFound,
    StorageBackend,
    StorageUnavailable,
)
from .disposition import ATTACHMENT, build_content_disposition

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def build_s3_client(
    *,
    region: str,
    endpoint: str | None = None,
    force_path_style: bool = False,
    access_key_id: str | None = None,
    secret_access_key: str | None = None,
    timeout_seconds: float = 5.0,
):
    """Create a boto3 S3 client with bounded timeouts and no retries."""
    config = Config(
        signature_version="s3v4",
        connect_timeout=timeout_seconds,
        read_timeout=timeout_seconds,
        retries={"max_attempts": 1, "mode": "standard"},
        s3={"addressing_style": "path" if (force_path_style or endpoint) else "virtual"},
    )
    return boto3.client(
        "s3",
        region_name=region,
        endpoint_url=endpoint,
        aws_access_key_id=access_key_id,
        aws_secret_access_key=secret_access_key,
        config=config,
    )


class S3Storage(StorageBackend):
    driver = "s3"

    def __init__(self, client, *, private_bucket: str, public_bucket: str = ""):
        if not private_bucket:
            raise ValueError("S3_PRIVATE_BUCKET is required for the s3 storage driver")
        self._client = client
        self.private_bucket = private_bucket
        self.public_bucket = public_bucket

    @property
    def buckets(self) -> tuple[str, ...]:
        return tuple(b for b in (self.private_bucket, self.public_bucket) if b)

    def _presign(self, operation: str, params: dict, expires: int) -> str:
        try:
            url = self._client.generate_presigned_url(
                ClientMethod=operation,
                Params={"Bucket": self.private_bucket, **params},
                ExpiresIn=int(expires),
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageUnavailable(f"presign {operation} failed for {params.get('Key')}: {e}") from e
        if not url:
            raise StorageUnavailable(f"presign {operation} returned no URL")
        return url

    async def get_signed_download_url(
        self,
        key: str,
        *,
        filename: str,
        expires_seconds: int,
        disposition: str = ATTACHMENT,
        content_type: str | None = None,
    ) -> str:
        params = {
            "Key": key,
            "ResponseContentDisposition": build_content_disposition(disposition, filename),
        }
        if content_type:
            params["ResponseContentType"] = content_type
        return self._presign("get_object", params, expires_seconds)

    async def get_presigned_put_url(self, key: str, *, content_type: str, expires_in: int) -> str:
        return self._presign("put_object", {"Key": key, "ContentType": content_type}, expires_in)

    async def head_private(self, key: str) -> ObjectMeta:
        try:
            head = await asyncio.to_thread(
                self._client.head_object, Bucket=self.private_bucket, Key=key
            )
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _NOT_FOUND_CODES:
                raise ObjectNotFound(key) from e
            raise StorageUnavailable(f"head_object failed for {key}: {code}") from e
        except BotoCoreError as e:
            raise StorageUnavailable(f"head_object failed for {key}: {e}") from e
        return ObjectMeta(
            content_type=head.get("ContentType") or DEFAULT_CONTENT_TYPE,
            size=head.get("ContentLength"),
        )
