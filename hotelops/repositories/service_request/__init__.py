# --- File: hotelops/repositories/service_request/__init__.py ---
"""
Service request repositories.
"""

from hotelops.repositories.service_request.service_request_repository import (
    ServiceRequestRepository,
)
from hotelops.repositories.service_request.request_message_repository import (
    RequestMessageRepository,
)
from hotelops.repositories.service_request.notification_outbox_repository import (
    NotificationOutboxRepository,
)

__all__ = [
    "ServiceRequestRepository",
    "RequestMessageRepository",
    "NotificationOutboxRepository",
]
