# --- File: hotelops/repositories/service_request/service_request_repository.py ---
"""
Service Request Repository.

Request creation with tracking numbers, plus the session-scoped and
tenant-scoped listings behind the guest and staff views.
"""

import secrets
import string
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import desc
from sqlalchemy.orm import Session

from hotelops.models.base import utcnow
from hotelops.models.service_request import ServiceRequest
from hotelops.repositories.base.base_repository import BaseRepository
from hotelops.schemas.enums import RequestStatus

_TRACKING_ALPHABET = string.ascii_uppercase + string.digits


class ServiceRequestRepository(BaseRepository[ServiceRequest]):
    """
    Repository for service request operations.
    """

    def __init__(self, session: Session):
        super().__init__(ServiceRequest, session)

    # ============================================================================
    # CREATE OPERATIONS
    # ============================================================================

    def create_request(self, **fields) -> ServiceRequest:
        """
        Insert a new request in status pending with a fresh tracking number.
        """
        fields.setdefault("tracking_number", self.generate_tracking_number())
        fields["status"] = RequestStatus.PENDING
        return self.create(ServiceRequest(**fields))

    def generate_tracking_number(self, now: Optional[datetime] = None) -> str:
        """
        Format: SR-YYYYMMDD-XXXX with a random uppercase suffix, retried on
        the rare collision.
        """
        day = (now or utcnow()).strftime("%Y%m%d")
        while True:
            suffix = "".join(secrets.choice(_TRACKING_ALPHABET) for _ in range(4))
            tracking_number = f"SR-{day}-{suffix}"
            if not self.exists({"tracking_number": tracking_number}):
                return tracking_number

    # ============================================================================
    # QUERY OPERATIONS
    # ============================================================================

    def list_for_session(self, session_id: str, limit: int = 100) -> List[ServiceRequest]:
        return (
            self.db.query(ServiceRequest)
            .filter(ServiceRequest.session_id == session_id)
            .order_by(desc(ServiceRequest.created_at))
            .limit(limit)
            .all()
        )

    def list_for_tenant(
        self,
        tenant_id: str,
        statuses: Optional[Sequence[RequestStatus]] = None,
        request_type: Optional[str] = None,
        limit: int = 200,
    ) -> List[ServiceRequest]:
        query = self.db.query(ServiceRequest).filter(ServiceRequest.tenant_id == tenant_id)
        if statuses:
            query = query.filter(ServiceRequest.status.in_(list(statuses)))
        if request_type:
            query = query.filter(ServiceRequest.request_type == request_type)
        return query.order_by(desc(ServiceRequest.created_at)).limit(limit).all()

    def find_for_update(self, request_id: str, tenant_id: str) -> Optional[ServiceRequest]:
        """Row-locked lookup used by status changes."""
        return (
            self.db.query(ServiceRequest)
            .filter(ServiceRequest.id == request_id, ServiceRequest.tenant_id == tenant_id)
            .with_for_update()
            .first()
        )
