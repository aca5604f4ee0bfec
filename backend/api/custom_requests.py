"""Custom request attachments: creator access to buyer uploads and delivery metadata."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_orchestrator
from api.downloads import redirect_to
from auth.jwt import Identity, get_current_user, require_creator
from delivery import DeliveryError, DownloadOrchestrator
from models import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/requests", tags=["requests"])


class DeliveryMeta(BaseModel):
    contentType: str


@router.get("/{request_id}/attachment/file")
async def download_buyer_attachment(
    request_id: int,
    user: Identity = Depends(require_creator),
    db: AsyncSession = Depends(get_db),
    orchestrator: DownloadOrchestrator = Depends(get_orchestrator),
):
    """Creator downloads the attachment the buyer submitted with the request."""
    return await redirect_to(
        orchestrator.request_attachment_url(db, user, request_id),
        failure_detail="Attachment download failed",
    )


@router.get("/{request_id}/delivery/meta", response_model=DeliveryMeta)
async def delivery_meta(
    request_id: int,
    user: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    orchestrator: DownloadOrchestrator = Depends(get_orchestrator),
):
    """Content type of the delivered file, so the client can pick a viewer."""
    try:
        content_type = await orchestrator.request_delivery_content_type(db, user, request_id)
    except DeliveryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("delivery meta failed for request %s", request_id)
        raise HTTPException(status_code=500, detail="Failed to load meta")
    return DeliveryMeta(contentType=content_type)
