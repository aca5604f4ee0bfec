"""File delivery FastAPI application."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from models.base import Base, async_engine
from api import custom_requests, downloads, storage_local, uploads
from api.deps import get_access_recorder

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Delivery API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_base_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(downloads.router)
app.include_router(custom_requests.router)
app.include_router(uploads.router)
app.include_router(storage_local.router)


@app.on_event("startup")
async def startup():
    """Create database tables."""
    logger.info("Creating database tables...")
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready.")


@app.on_event("shutdown")
async def shutdown():
    """Let in-flight download recordings finish."""
    await get_access_recorder().drain()
    await async_engine.dispose()


@app.get("/api/health")
async def health():
    return {"status": "ok"}
