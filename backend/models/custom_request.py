"""Custom work requests between a buyer and a creator."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base

DELIVERED_STATUSES = frozenset({"delivered", "complete", "completed"})


def is_delivered(status: str | None) -> bool:
    return (status or "").strip().lower() in DELIVERED_STATUSES


class CustomRequest(Base):
    __tablename__ = "custom_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("orders.id"), nullable=True, index=True
    )
    buyer_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    creator_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # Buyer's upload when the request was made.
    attachment_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Creator's delivered file.
    creator_attachment_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
