# --- File: hotelops/services/service_request/__init__.py ---
from hotelops.services.service_request.service_request_service import (
    ServiceRequestService,
    assigned_team_for,
    to_view,
)

__all__ = ["ServiceRequestService", "assigned_team_for", "to_view"]
