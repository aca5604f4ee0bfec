"""Purchase orders written by the payment subsystem."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base

# Order statuses that grant file access. The payment webhooks write:
#   checkout.session.completed with payment_status=paid -> "paid"
#   payment_intent.succeeded                            -> "succeeded"
# "completed" and "success" only appear on rows imported from the
# previous checkout flow. Compared trimmed and lowercased.
PAYMENT_SUCCEEDED_STATUSES = frozenset({"paid", "completed", "succeeded", "success"})


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("products.id"), nullable=True, index=True
    )
    buyer_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
