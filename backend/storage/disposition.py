"""Content-Disposition header values (RFC 6266 / RFC 5987)."""

import re
from urllib.parse import quote

INLINE = "inline"
ATTACHMENT = "attachment"

_UNSAFE = re.compile(r"[^\w.\- ]+", re.ASCII)


def ascii_fallback(name: str, default: str = "download") -> str:
    cleaned = _UNSAFE.sub("_", name or "").strip()
    return cleaned or default


def build_content_disposition(disposition: str, filename: str | None) -> str:
    """Build a header value carrying ``filename``.

    The quoted ``filename`` parameter is always plain ASCII. When the real
    name has anything outside ``[A-Za-z0-9_.- ]``, ``filename*`` carries the
    UTF-8 percent-encoded original as well.
    """
    if disposition not in (INLINE, ATTACHMENT):
        raise ValueError(f"Unknown disposition: {disposition!r}")

    name = (filename or "").strip() or "download"
    fallback = ascii_fallback(name)
    value = f'{disposition}; filename="{fallback}"'
    if fallback != name:
        value += f"; filename*=UTF-8''{quote(name, safe='')}"
    return value
