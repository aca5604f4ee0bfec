"""Tests for delivery.entitlements resolvers."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from delivery import NotEntitled, NotFound, resolve_purchase, resolve_request_delivery
from delivery.entitlements import display_filename, resolve_request_attachment
from models import CustomRequest, Order, Product

from factories import BUYER_ID, CREATOR_ID, STRANGER_ID


async def _product(db: AsyncSession, **kwargs) -> Product:
    fields = {"user_id": CREATOR_ID, "product_type": "purchase", "filename": "products/202/a.zip", "title": None}
    fields.update(kwargs)
    product = Product(**fields)
    db.add(product)
    await db.flush()
    return product


async def _order(db: AsyncSession, product: Product, status: str = "paid", **kwargs) -> Order:
    buyer_id = kwargs.pop("buyer_id", BUYER_ID)
    order = Order(product_id=product.id, buyer_id=buyer_id, status=status, **kwargs)
    db.add(order)
    await db.flush()
    return order


class TestResolvePurchase:
    @pytest.mark.parametrize("status", ["paid", "completed", "succeeded", "success", "PAID", "paid ", " Succeeded "])
    async def test_success_statuses(self, db_session, status):
        product = await _product(db_session)
        order = await _order(db_session, product, status=status)
        ent = await resolve_purchase(db_session, BUYER_ID, product.id)
        assert ent.order_id == order.id
        assert ent.product_id == product.id
        assert ent.key == "products/202/a.zip"
        assert ent.filename == "a.zip"

    @pytest.mark.parametrize("status", ["pending", "refunded", "failed", "canceled"])
    async def test_unpaid_order_is_not_entitled(self, db_session, status):
        product = await _product(db_session)
        await _order(db_session, product, status=status)
        with pytest.raises(NotEntitled, match="No access"):
            await resolve_purchase(db_session, BUYER_ID, product.id)

    async def test_no_order_is_not_entitled_even_without_file(self, db_session):
        product = await _product(db_session, filename="")
        with pytest.raises(NotEntitled):
            await resolve_purchase(db_session, BUYER_ID, product.id)

    async def test_other_buyers_order_does_not_count(self, db_session):
        product = await _product(db_session)
        await _order(db_session, product, buyer_id=STRANGER_ID)
        with pytest.raises(NotEntitled):
            await resolve_purchase(db_session, BUYER_ID, product.id)

    async def test_non_purchase_product_is_not_entitled(self, db_session):
        product = await _product(db_session, product_type="membership")
        await _order(db_session, product)
        with pytest.raises(NotEntitled):
            await resolve_purchase(db_session, BUYER_ID, product.id)

    @pytest.mark.parametrize("filename", ["", "   ", None])
    async def test_paid_order_without_file_is_not_found(self, db_session, filename):
        product = await _product(db_session, filename=filename)
        await _order(db_session, product)
        with pytest.raises(NotFound, match="File not found"):
            await resolve_purchase(db_session, BUYER_ID, product.id)

    async def test_full_url_reference_is_normalized(self, db_session):
        product = await _product(
            db_session, filename="https://shop-private.s3.amazonaws.com/products/202/a.zip?sig=1"
        )
        await _order(db_session, product)
        ent = await resolve_purchase(db_session, BUYER_ID, product.id)
        assert ent.key == "products/202/a.zip"

    async def test_title_becomes_filename(self, db_session):
        product = await _product(db_session, title="Field Guide")
        await _order(db_session, product)
        ent = await resolve_purchase(db_session, BUYER_ID, product.id)
        assert ent.filename == "Field Guide.zip"

    async def test_newest_order_wins(self, db_session):
        product = await _product(db_session)
        now = datetime.now(timezone.utc)
        await _order(db_session, product, created_at=now - timedelta(days=3))
        newest = await _order(db_session, product, status="succeeded", created_at=now)
        await _order(db_session, product, status="pending", created_at=now + timedelta(days=1))
        ent = await resolve_purchase(db_session, BUYER_ID, product.id)
        assert ent.order_id == newest.id


async def _request(db: AsyncSession, **kwargs) -> CustomRequest:
    fields = {
        "buyer_id": BUYER_ID,
        "creator_id": CREATOR_ID,
        "status": "delivered",
        "title": None,
        "attachment_path": None,
        "creator_attachment_path": "deliveries/abc.zip",
    }
    fields.update(kwargs)
    req = CustomRequest(**fields)
    db.add(req)
    await db.flush()
    return req


class TestResolveRequestDelivery:
    async def test_unknown_request(self, db_session):
        with pytest.raises(NotFound, match="Request not found"):
            await resolve_request_delivery(db_session, BUYER_ID, 9999)

    @pytest.mark.parametrize("status", ["delivered", "pending", "accepted"])
    async def test_buyer_mismatch_is_forbidden_regardless_of_status(self, db_session, status):
        req = await _request(db_session, status=status)
        with pytest.raises(NotEntitled, match="Not your request"):
            await resolve_request_delivery(db_session, STRANGER_ID, req.id)

    @pytest.mark.parametrize("status", ["pending", "accepted", "declined", "in_progress"])
    async def test_undelivered_is_forbidden(self, db_session, status):
        req = await _request(db_session, status=status)
        with pytest.raises(NotEntitled, match="Not ready for download"):
            await resolve_request_delivery(db_session, BUYER_ID, req.id)

    @pytest.mark.parametrize("status", ["delivered", "complete", "completed", "Delivered", "COMPLETE", "delivered "])
    async def test_delivered_family(self, db_session, status):
        req = await _request(db_session, status=status)
        ent = await resolve_request_delivery(db_session, BUYER_ID, req.id)
        assert ent.key == "deliveries/abc.zip"
        assert ent.filename == "abc.zip"
        assert ent.request_id == req.id

    async def test_creator_path_wins_over_attachment(self, db_session):
        req = await _request(db_session, attachment_path="requests/ref.jpg")
        ent = await resolve_request_delivery(db_session, BUYER_ID, req.id)
        assert ent.key == "deliveries/abc.zip"

    async def test_falls_back_to_attachment_path(self, db_session):
        req = await _request(db_session, creator_attachment_path="  ", attachment_path="/requests/ref.jpg")
        ent = await resolve_request_delivery(db_session, BUYER_ID, req.id)
        assert ent.key == "requests/ref.jpg"

    async def test_no_file(self, db_session):
        req = await _request(db_session, creator_attachment_path=None)
        with pytest.raises(NotFound, match="No delivery file"):
            await resolve_request_delivery(db_session, BUYER_ID, req.id)

    async def test_title_used_for_filename(self, db_session):
        req = await _request(db_session, title="Portrait")
        ent = await resolve_request_delivery(db_session, BUYER_ID, req.id)
        assert ent.filename == "Portrait.zip"

    async def test_linked_order_makes_access_recordable(self, db_session):
        product = await _product(db_session, product_type="request")
        order = await _order(db_session, product)
        req = await _request(db_session, order_id=order.id)
        ent = await resolve_request_delivery(db_session, BUYER_ID, req.id)
        assert ent.recordable
        assert (ent.order_id, ent.product_id) == (order.id, product.id)

    async def test_without_order_nothing_is_recorded(self, db_session):
        req = await _request(db_session)
        ent = await resolve_request_delivery(db_session, BUYER_ID, req.id)
        assert not ent.recordable


class TestResolveRequestAttachment:
    async def test_creator_gets_buyer_upload(self, db_session):
        req = await _request(db_session, attachment_path="requests/ref.jpg")
        ent = await resolve_request_attachment(db_session, CREATOR_ID, req.id)
        assert ent.key == "requests/ref.jpg"
        assert ent.filename == "ref.jpg"
        assert not ent.recordable

    async def test_other_creator_is_forbidden(self, db_session):
        req = await _request(db_session, attachment_path="requests/ref.jpg")
        with pytest.raises(NotEntitled):
            await resolve_request_attachment(db_session, STRANGER_ID, req.id)

    async def test_missing_upload(self, db_session):
        req = await _request(db_session)
        with pytest.raises(NotFound, match="No buyer attachment"):
            await resolve_request_attachment(db_session, CREATOR_ID, req.id)


class TestDisplayFilename:
    def test_title_with_extension_is_kept(self):
        assert display_filename("guide.PDF", "products/1/x.pdf", "download") == "guide.PDF"

    def test_key_basename_when_no_title(self):
        assert display_filename("  ", "products/1/x.pdf", "download") == "x.pdf"

    def test_generic_fallback(self):
        assert display_filename(None, "products/1/", "delivery") == "1"
        assert display_filename(None, "", "delivery") == "delivery"
