"""Turn stored file references into canonical storage keys.

Product and request rows hold whatever the upload flow handed back at the
time: a bare key (``products/7/abc.zip``), a public or presigned URL, an
``s3://`` URI, or a legacy JSON blob like ``{"key": "..."}``. Everything
that signs URLs works from the bare key, so references are normalized first.

``normalize_key`` is pure and never raises; anything it cannot parse is
treated as a key as-is. It is idempotent.
"""

import json
import re
from collections.abc import Iterable
from urllib.parse import unquote, urlsplit

_URL_RE = re.compile(r"^[a-z][a-z0-9+.\-]*://", re.IGNORECASE)
_LEADING = "/ \t\r\n"
# Path prefixes used by the local driver's public/private URLs.
_LOCAL_PREFIXES = ("uploads/private/", "uploads/public/", "uploads/")


def _strip(value: str) -> str:
    return value.lstrip(_LEADING).rstrip()


def _key_from_url(url: str, buckets: frozenset[str]) -> str:
    parts = urlsplit(url)
    host = (parts.hostname or "").lower()
    path = unquote(parts.path).lstrip("/")

    if parts.scheme.lower() == "s3":
        # s3://bucket/key — the host is the bucket
        return path

    # Virtual-hosted style: https://bucket.s3.region.amazonaws.com/key
    for bucket in buckets:
        if host == bucket or host.startswith(f"{bucket}."):
            return path

    # Path style: https://s3.region.amazonaws.com/bucket/key
    head, sep, rest = path.partition("/")
    if sep and head in buckets:
        return rest

    for prefix in _LOCAL_PREFIXES:
        if path.startswith(prefix):
            return path[len(prefix):]
    return path


def normalize_key(raw, buckets: Iterable[str] = ()) -> str:
    """Return the canonical storage key for ``raw``; ``""`` means no file."""
    if raw is None:
        return ""
    value = _strip(str(raw))
    if not value:
        return ""

    bucket_set = frozenset(b for b in buckets if b)

    if value.startswith("{"):
        try:
            data = json.loads(value)
        except ValueError:
            data = None
        if isinstance(data, dict) and isinstance(data.get("key"), str):
            return normalize_key(data["key"], bucket_set)

    if _URL_RE.match(value):
        try:
            inner = _key_from_url(value, bucket_set)
        except ValueError:
            return value
        # Recurse so the result is a fixed point (the path may itself be a URL).
        return normalize_key(inner, bucket_set)

    return value


def basename(key: str) -> str:
    return key.rstrip("/").rsplit("/", 1)[-1] if key else ""
