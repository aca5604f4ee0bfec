"""
Local filesystem storage.

Files live under a root directory. Signed URLs point back at this service
(``/api/storage/local/{token}``); the token is a short-lived HS256 JWT naming
the key, the operation and the headers to serve with it.
"""

import logging
import math
import time
from collections.abc import Callable
from pathlib import Path

import jwt

from .base import (
    DEFAULT_CONTENT_TYPE,
    ObjectMeta,
    ObjectNotFound,
    StorageBackend,
    StorageUnavailable,
    guess_content_type,
)
from .disposition import ATTACHMENT, build_content_disposition

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_TYPE = "storage"
OP_GET = "get"
OP_PUT = "put"
LOCAL_ROUTE = "/api/storage/local"


class InvalidStorageToken(Exception):
    """The token is malformed, tampered with, expired or for another operation."""

    def __init__(self, message: str, expired: bool = False):
        super().__init__(message)
        self.expired = expired


class LocalStorage(StorageBackend):
    driver = "local"

    def __init__(
        self,
        root: str | Path,
        *,
        secret_key: str,
        base_url: str = "",
        clock: Callable[[], float] = time.time,
    ):
        self.root = Path(root).resolve()
        self._secret_key = secret_key
        self._base_url = base_url.rstrip("/")
        self._clock = clock

    def path_for(self, key: str) -> Path:
        """Absolute path for ``key``; refuses keys that escape the root."""
        if not key:
            raise ObjectNotFound("empty key")
        try:
            path = (self.root / key).resolve()
        except (OSError, ValueError) as e:
            # e.g. an embedded NUL from a percent-decoded reference
            raise ObjectNotFound(key) from e
        if path == self.root or not path.is_relative_to(self.root):
            raise ObjectNotFound(key)
        return path

    def _url_for(self, claims: dict, expires_seconds: int) -> str:
        payload = {
            **claims,
            "type": TOKEN_TYPE,
            "exp": math.ceil(self._clock() + expires_seconds),
        }
        try:
            token = jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)
        except (TypeError, ValueError, jwt.PyJWTError) as e:
            raise StorageUnavailable(f"could not sign local URL: {e}") from e
        return f"{self._base_url}{LOCAL_ROUTE}/{token}"

    async def get_signed_download_url(
        self,
        key: str,
        *,
        filename: str,
        expires_seconds: int,
        disposition: str = ATTACHMENT,
        content_type: str | None = None,
    ) -> str:
        ctype = content_type or guess_content_type(filename) or guess_content_type(key) or DEFAULT_CONTENT_TYPE
        claims = {
            "op": OP_GET,
            "key": key,
            "cd": build_content_disposition(disposition, filename),
            "ct": ctype,
        }
        return self._url_for(claims, expires_seconds)

    async def get_presigned_put_url(self, key: str, *, content_type: str, expires_in: int) -> str:
        return self._url_for({"op": OP_PUT, "key": key, "ct": content_type}, expires_in)

    async def head_private(self, key: str) -> ObjectMeta:
        path = self.path_for(key)
        try:
            size = path.stat().st_size
        except FileNotFoundError:
            raise ObjectNotFound(key)
        except OSError as e:
            raise StorageUnavailable(str(e)) from e
        if not path.is_file():
            raise ObjectNotFound(key)
        return ObjectMeta(content_type=guess_content_type(key) or DEFAULT_CONTENT_TYPE, size=size)

    def verify_token(self, token: str, op: str) -> dict:
        """Decode a token minted by this backend for ``op``.

        Raises:
            InvalidStorageToken: On any signature, expiry or scope mismatch.
        """
        try:
            claims = jwt.decode(token, self._secret_key, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise InvalidStorageToken("Link expired", expired=True)
        except jwt.InvalidTokenError:
            raise InvalidStorageToken("Invalid link")
        if claims.get("type") != TOKEN_TYPE or claims.get("op") != op or not claims.get("key"):
            raise InvalidStorageToken("Invalid link")
        return claims
