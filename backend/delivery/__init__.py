from .entitlements import (
    Entitlement,
    resolve_purchase,
    resolve_request_attachment,
    resolve_request_delivery,
)
from .errors import BadRequest, DeliveryError, NotEntitled, NotFound
from .orchestrator import DownloadOrchestrator
from .recorder import AccessRecorder

__all__ = [
    "AccessRecorder",
    "BadRequest",
    "DeliveryError",
    "DownloadOrchestrator",
    "Entitlement",
    "NotEntitled",
    "NotFound",
    "resolve_purchase",
    "resolve_request_attachment",
    "resolve_request_delivery",
]
