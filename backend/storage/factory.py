"""Build the configured storage backend."""

import logging

from config import Settings

from .base import StorageBackend
from .local import LocalStorage
from .s3 import S3Storage, build_s3_client

logger = logging.getLogger(__name__)


def build_storage(settings: Settings) -> StorageBackend:
    """Construct the backend selected by ``settings.storage_driver``."""
    driver = settings.storage_driver
    if driver == "s3":
        client = build_s3_client(
            region=settings.s3_region,
            endpoint=settings.s3_endpoint,
            force_path_style=settings.s3_force_path_style,
            access_key_id=settings.s3_access_key_id,
            secret_access_key=settings.s3_secret_access_key,
            timeout_seconds=settings.storage_timeout_seconds,
        )
        storage = S3Storage(
            client,
            private_bucket=settings.s3_private_bucket,
            public_bucket=settings.s3_public_bucket,
        )
    elif driver == "local":
        storage = LocalStorage(
            settings.local_storage_root,
            secret_key=settings.app_secret_key,
            base_url=settings.public_base_url,
        )
    else:
        raise ValueError(f"Unknown STORAGE_DRIVER: {driver!r} (expected 'local' or 's3')")
    logger.info("Storage driver: %s", storage.driver)
    return storage
