"""Per-(order, product) download counters."""

from datetime import datetime

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class DownloadAccess(Base):
    __tablename__ = "download_access"

    order_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    downloads: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_download_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
