"""Shared service singletons, exposed as FastAPI dependencies."""

from config import settings
from delivery import AccessRecorder, DownloadOrchestrator
from models import async_session_factory
from storage import StorageBackend, build_storage

_storage: StorageBackend | None = None
_recorder: AccessRecorder | None = None
_orchestrator: DownloadOrchestrator | None = None


def get_storage() -> StorageBackend:
    global _storage
    if _storage is None:
        _storage = build_storage(settings)
    return _storage


def get_access_recorder() -> AccessRecorder:
    global _recorder
    if _recorder is None:
        _recorder = AccessRecorder(async_session_factory)
    return _recorder


def get_orchestrator() -> DownloadOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = DownloadOrchestrator(
            get_storage(),
            get_access_recorder(),
            expires_seconds=settings.download_url_expires_seconds,
            head_timeout_seconds=settings.storage_timeout_seconds,
        )
    return _orchestrator
