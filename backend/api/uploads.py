"""Presigned upload URLs for product files and request attachments."""

import logging
import posixpath
import uuid

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from api.deps import get_storage
from auth.jwt import Identity, get_current_user, require_creator
from config import settings
from delivery import BadRequest
from storage import StorageBackend

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/uploads", tags=["uploads"])


class PresignRequest(BaseModel):
    filename: str | None = None
    contentType: str | None = None


class PresignResponse(BaseModel):
    key: str
    url: str
    contentType: str


def _extension(filename: str) -> str:
    return posixpath.splitext(filename.replace("\\", "/"))[1].lower()


def product_key(creator_id: int, filename: str) -> str:
    return f"products/{creator_id}/{uuid.uuid4()}{_extension(filename) or '.bin'}"


def request_key(filename: str) -> str:
    return f"requests/{uuid.uuid4()}{_extension(filename)}"


def _validated(body: PresignRequest) -> tuple[str, str]:
    filename = (body.filename or "").strip()
    content_type = (body.contentType or "").strip()
    if not filename or not content_type:
        raise BadRequest("filename and contentType required")
    return filename, content_type


async def _presign(storage: StorageBackend, key: str, content_type: str, what: str) -> PresignResponse:
    try:
        url = await storage.get_presigned_put_url(
            key, content_type=content_type, expires_in=settings.upload_url_expires_seconds
        )
    except Exception:
        logger.exception("%s presign failed for key %s", what, key)
        raise HTTPException(status_code=500, detail=f"Could not presign {what} upload")
    return PresignResponse(key=key, url=url, contentType=content_type)


@router.post("/presign-product", response_model=PresignResponse)
async def presign_product(
    body: PresignRequest,
    user: Identity = Depends(require_creator),
    storage: StorageBackend = Depends(get_storage),
):
    """Write URL for a new product file, grouped under the creator's id."""
    try:
        filename, content_type = _validated(body)
    except BadRequest as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return await _presign(storage, product_key(user.id, filename), content_type, "product")


@router.post("/presign-request", response_model=PresignResponse)
async def presign_request(
    body: PresignRequest,
    user: Identity = Depends(get_current_user),
    storage: StorageBackend = Depends(get_storage),
):
    """Write URL for a request attachment (buyer upload or creator delivery)."""
    try:
        filename, content_type = _validated(body)
    except BadRequest as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return await _presign(storage, request_key(filename), content_type, "request")
