"""Entitlement-gated downloads: purchased product files and request deliveries."""

import logging
from collections.abc import Awaitable

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_orchestrator
from auth.jwt import Identity, get_current_user
from delivery import DeliveryError, DownloadOrchestrator
from models import get_db
from storage import ATTACHMENT, INLINE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/downloads", tags=["downloads"])


def no_store_redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=302, headers={"Cache-Control": "no-store"})


async def redirect_to(pending: Awaitable[str], failure_detail: str = "Download failed") -> RedirectResponse:
    """Await a signed URL and redirect to it, mapping failures to HTTP errors."""
    try:
        url = await pending
    except DeliveryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception(failure_detail)
        raise HTTPException(status_code=500, detail=failure_detail)
    return no_store_redirect(url)


@router.get("/view/{product_id}")
async def view_product_file(
    product_id: int,
    user: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    orchestrator: DownloadOrchestrator = Depends(get_orchestrator),
):
    """Inline view (PDF/image/video) of a purchased file."""
    return await redirect_to(orchestrator.purchase_url(db, user, product_id, disposition=INLINE))


@router.get("/file/{product_id}")
async def download_product_file(
    product_id: int,
    user: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    orchestrator: DownloadOrchestrator = Depends(get_orchestrator),
):
    """Save-as download of a purchased file."""
    return await redirect_to(orchestrator.purchase_url(db, user, product_id, disposition=ATTACHMENT))


@router.get("/request/{request_id}")
async def download_request_delivery(
    request_id: int,
    user: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    orchestrator: DownloadOrchestrator = Depends(get_orchestrator),
):
    """Buyer downloads the creator's delivered file."""
    return await redirect_to(orchestrator.request_delivery_url(db, user, request_id))
