"""Serves signed URLs minted by the local filesystem storage driver."""

import asyncio
import logging
import os

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import FileResponse

from api.deps import get_storage
from storage import ObjectNotFound, StorageBackend
from storage.local import OP_GET, OP_PUT, InvalidStorageToken, LocalStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/storage/local", tags=["storage"])


def get_local_storage(storage: StorageBackend = Depends(get_storage)) -> LocalStorage:
    if not isinstance(storage, LocalStorage):
        raise HTTPException(status_code=404, detail="Not found")
    return storage


def _claims(storage: LocalStorage, token: str, op: str) -> dict:
    try:
        return storage.verify_token(token, op)
    except InvalidStorageToken as e:
        raise HTTPException(status_code=403, detail=str(e))


def _media_type(value: str | None) -> str:
    return (value or "").split(";", 1)[0].strip().lower()


@router.get("/{token}")
async def fetch_object(token: str, storage: LocalStorage = Depends(get_local_storage)):
    claims = _claims(storage, token, OP_GET)
    try:
        path = storage.path_for(claims["key"])
    except ObjectNotFound:
        raise HTTPException(status_code=404, detail="File not found")
    if not path.is_file():
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(
        path,
        media_type=claims.get("ct"),
        headers={"Content-Disposition": claims["cd"], "Cache-Control": "no-store"},
    )


@router.put("/{token}")
async def store_object(
    token: str, request: Request, storage: LocalStorage = Depends(get_local_storage)
):
    claims = _claims(storage, token, OP_PUT)
    if _media_type(request.headers.get("content-type")) != _media_type(claims.get("ct")):
        raise HTTPException(status_code=403, detail="Content type does not match signed upload")
    try:
        path = storage.path_for(claims["key"])
    except ObjectNotFound:
        raise HTTPException(status_code=400, detail="Invalid key")

    await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.part")
    try:
        f = await asyncio.to_thread(open, tmp, "wb")
        try:
            async for chunk in request.stream():
                await asyncio.to_thread(f.write, chunk)
        finally:
            await asyncio.to_thread(f.close)
        await asyncio.to_thread(os.replace, tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    logger.info("Stored local object %s", claims["key"])
    return Response(status_code=200)
