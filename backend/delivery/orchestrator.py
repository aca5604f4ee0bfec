"""
Download request orchestration.

resolve entitlement -> record access (fire-and-forget) -> mint signed URL.
The router turns the URL into a no-store 302.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from auth.jwt import Identity
from storage import (
    ATTACHMENT,
    DEFAULT_CONTENT_TYPE,
    INLINE,
    StorageBackend,
    StorageError,
)
from storage.base import guess_content_type

from .entitlements import (
    Entitlement,
    resolve_purchase,
    resolve_request_attachment,
    resolve_request_delivery,
)
from .recorder import AccessRecorder

logger = logging.getLogger(__name__)


class DownloadOrchestrator:
    def __init__(
        self,
        storage: StorageBackend,
        recorder: AccessRecorder,
        *,
        expires_seconds: int = 120,
        head_timeout_seconds: float = 5.0,
    ):
        self.storage = storage
        self.recorder = recorder
        self.expires_seconds = expires_seconds
        self.head_timeout_seconds = head_timeout_seconds

    async def purchase_url(
        self, db: AsyncSession, user: Identity, product_id: int, *, disposition: str = ATTACHMENT
    ) -> str:
        """Signed URL for a purchased product file (inline for /view, attachment for /file)."""
        entitlement = await resolve_purchase(db, user.id, product_id, self.storage.normalize_key)
        self._record(entitlement)
        return await self._mint(entitlement, disposition)

    async def request_delivery_url(self, db: AsyncSession, user: Identity, request_id: int) -> str:
        """Signed attachment URL for a delivered custom request."""
        entitlement = await resolve_request_delivery(db, user.id, request_id, self.storage.normalize_key)
        self._record(entitlement)
        return await self._mint(entitlement, ATTACHMENT)

    async def request_attachment_url(self, db: AsyncSession, user: Identity, request_id: int) -> str:
        """Signed URL for the buyer's upload, for the request's creator."""
        entitlement = await resolve_request_attachment(db, user.id, request_id, self.storage.normalize_key)
        return await self._mint(entitlement, ATTACHMENT)

    async def request_delivery_content_type(
        self, db: AsyncSession, user: Identity, request_id: int
    ) -> str:
        entitlement = await resolve_request_delivery(db, user.id, request_id, self.storage.normalize_key)
        return await self._content_type(entitlement.key) or DEFAULT_CONTENT_TYPE

    def _record(self, entitlement: Entitlement) -> None:
        if not entitlement.recordable:
            return
        try:
            self.recorder.schedule(entitlement.order_id, entitlement.product_id)
        except Exception:
            logger.exception("Could not schedule download recording")

    async def _content_type(self, key: str) -> str | None:
        """Best-effort content type: stored metadata, then the key's extension."""
        try:
            meta = await asyncio.wait_for(
                self.storage.head_private(key), timeout=self.head_timeout_seconds
            )
        except (StorageError, asyncio.TimeoutError) as e:
            logger.info("head_private(%s) unavailable, guessing type: %r", key, e)
        except Exception:
            logger.warning("head_private(%s) failed, guessing type", key, exc_info=True)
        else:
            if meta.content_type and meta.content_type != DEFAULT_CONTENT_TYPE:
                return meta.content_type
        return guess_content_type(key)

    async def _mint(self, entitlement: Entitlement, disposition: str) -> str:
        content_type = None
        if disposition == INLINE:
            content_type = await self._content_type(entitlement.key)
        return await self.storage.get_signed_download_url(
            entitlement.key,
            filename=entitlement.filename,
            expires_seconds=self.expires_seconds,
            disposition=disposition,
            content_type=content_type,
        )
