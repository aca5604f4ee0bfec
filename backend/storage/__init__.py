from .base import (
    DEFAULT_CONTENT_TYPE,
    ObjectMeta,
    ObjectNotFound,
    StorageBackend,
    StorageError,
    StorageUnavailable,
)
from .disposition import ATTACHMENT, INLINE, build_content_disposition
from .factory import build_storage
from .keys import normalize_key

__all__ = [
    "ATTACHMENT",
    "DEFAULT_CONTENT_TYPE",
    "INLINE",
    "ObjectMeta",
    "ObjectNotFound",
    "StorageBackend",
    "StorageError",
    "StorageUnavailable",
    "build_content_disposition",
    "build_storage",
    "normalize_key",
]
