# --- File: hotelops/services/notification/__init__.py ---
from hotelops.services.notification.notification_service import NotificationService

__all__ = ["NotificationService"]
