"""
Entitlement checks for purchased products and delivered custom requests.

Both resolvers return an ``Entitlement`` or raise ``NotEntitled`` /
``NotFound`` with the message shown to the caller.
"""

import posixpath
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models import (
    CustomRequest,
    Order,
    PAYMENT_SUCCEEDED_STATUSES,
    PRODUCT_TYPE_PURCHASE,
    Product,
    is_delivered,
)
from storage.keys import basename, normalize_key

from .errors import NotEntitled, NotFound

KeyNormalizer = Callable[[object], str]


@dataclass(frozen=True)
class Entitlement:
    key: str
    filename: str
    # (order_id, product_id) to count the access against; None when the
    # resource is not tied to an order.
    order_id: int | None = None
    product_id: int | None = None
    request_id: int | None = None

    @property
    def recordable(self) -> bool:
        return self.order_id is not None and self.product_id is not None


def display_filename(title: str | None, key: str, fallback: str) -> str:
    """Human-facing download name.

    The title wins when set; the key's extension is appended if the title
    lacks it so saved files still open with the right program.
    """
    ext = posixpath.splitext(basename(key))[1]
    name = (title or "").strip()
    if name:
        if ext and not name.lower().endswith(ext.lower()):
            name += ext
        return name
    return basename(key) or fallback


async def resolve_purchase(
    db: AsyncSession,
    buyer_id: int,
    product_id: int,
    normalize: KeyNormalizer = normalize_key,
) -> Entitlement:
    """Check that ``buyer_id`` has a paid order for purchase product ``product_id``."""
    result = await db.execute(
        select(Order.id, Product.filename, Product.title)
        .join(Product, Product.id == Order.product_id)
        .where(
            Product.id == product_id,
            Product.product_type == PRODUCT_TYPE_PURCHASE,
            Order.buyer_id == buyer_id,
            func.lower(func.trim(Order.status)).in_(sorted(PAYMENT_SUCCEEDED_STATUSES)),
        )
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(1)
    )
    row = result.first()
    if row is None:
        raise NotEntitled("No access or not a purchase product")

    key = normalize(row.filename)
    if not key:
        raise NotFound("File not found")

    return Entitlement(
        key=key,
        filename=display_filename(row.title, key, "download"),
        order_id=row.id,
        product_id=product_id,
    )


async def _load_request(db: AsyncSession, request_id: int):
    result = await db.execute(
        select(CustomRequest, Order.product_id)
        .outerjoin(Order, Order.id == CustomRequest.order_id)
        .where(CustomRequest.id == request_id)
    )
    row = result.first()
    if row is None:
        raise NotFound("Request not found")
    return row


async def resolve_request_delivery(
    db: AsyncSession,
    buyer_id: int,
    request_id: int,
    normalize: KeyNormalizer = normalize_key,
) -> Entitlement:
    """Check that ``buyer_id`` owns request ``request_id`` and it has been delivered."""
    req, order_product_id = await _load_request(db, request_id)

    if req.buyer_id != buyer_id:
        raise NotEntitled("Not your request")
    if not is_delivered(req.status):
        raise NotEntitled("Not ready for download")

    key = normalize(req.creator_attachment_path) or normalize(req.attachment_path)
    if not key:
        raise NotFound("No delivery file")

    return Entitlement(
        key=key,
        filename=display_filename(req.title, key, "delivery"),
        order_id=req.order_id if order_product_id is not None else None,
        product_id=order_product_id,
        request_id=req.id,
    )


async def resolve_request_attachment(
    db: AsyncSession,
    creator_id: int,
    request_id: int,
    normalize: KeyNormalizer = normalize_key,
) -> Entitlement:
    """Let the request's creator fetch the buyer's uploaded attachment."""
    req, _ = await _load_request(db, request_id)

    if req.creator_id is None or req.creator_id != creator_id:
        raise NotEntitled("Not your request")

    key = normalize(req.attachment_path)
    if not key:
        raise NotFound("No buyer attachment")

    return Entitlement(key=key, filename=basename(key) or "attachment", request_id=req.id)
