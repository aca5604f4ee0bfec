"""
Storage backend interface.

Every driver addresses objects by canonical key and hands out time-limited
URLs for them. The driver is chosen once in ``storage.factory.build_storage``;
nothing else branches on it.
"""

import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .disposition import ATTACHMENT
from .keys import normalize_key

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class StorageError(Exception):
    """Base class for storage failures."""


class StorageUnavailable(StorageError):
    """The backend could not sign a URL or answer a request."""


class ObjectNotFound(StorageError):
    """No object is stored under the requested key."""


@dataclass(frozen=True)
class ObjectMeta:
    content_type: str
    size: int | None


def guess_content_type(name: str | None) -> str | None:
    if not name:
        return None
    guessed, _ = mimetypes.guess_type(name, strict=False)
    return guessed


class StorageBackend(ABC):
    """Signed-URL capable object store."""

    driver: str = ""

    @property
    def buckets(self) -> tuple[str, ...]:
        """Bucket names recognized when normalizing stored URLs."""
        return ()

    def normalize_key(self, raw) -> str:
        return normalize_key(raw, self.buckets)

    @abstractmethod
    async def get_signed_download_url(
        self,
        key: str,
        *,
        filename: str,
        expires_seconds: int,
        disposition: str = ATTACHMENT,
        content_type: str | None = None,
    ) -> str:
        """Return a GET URL for ``key`` valid for exactly ``expires_seconds``.

        Raises:
            StorageUnavailable: If the URL cannot be minted.
        """

    @abstractmethod
    async def get_presigned_put_url(
        self, key: str, *, content_type: str, expires_in: int
    ) -> str:
        """Return a PUT URL scoped to ``key`` and ``content_type``.

        Raises:
            StorageUnavailable: If the URL cannot be minted.
        """

    @abstractmethod
    async def head_private(self, key: str) -> ObjectMeta:
        """Fetch object metadata.

        Raises:
            ObjectNotFound: If nothing is stored under ``key``.
            StorageUnavailable: On any other backend failure.
        """
