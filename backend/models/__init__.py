from .base import Base, async_engine, async_session_factory, get_db
from .product import Product, PRODUCT_TYPE_PURCHASE
from .order import Order, PAYMENT_SUCCEEDED_STATUSES
from .custom_request import CustomRequest, DELIVERED_STATUSES, is_delivered
from .download_access import DownloadAccess

__all__ = [
    "Base",
    "async_engine",
    "async_session_factory",
    "get_db",
    "Product",
    "PRODUCT_TYPE_PURCHASE",
    "Order",
    "PAYMENT_SUCCEEDED_STATUSES",
    "CustomRequest",
    "DELIVERED_STATUSES",
    "is_delivered",
    "DownloadAccess",
]
