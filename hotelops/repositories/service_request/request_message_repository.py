# --- File: hotelops/repositories/service_request/request_message_repository.py ---
"""
Request Message Repository.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from hotelops.models.service_request import RequestMessage
from hotelops.repositories.base.base_repository import BaseRepository
from hotelops.schemas.enums import SenderRole


class RequestMessageRepository(BaseRepository[RequestMessage]):

    def __init__(self, session: Session):
        super().__init__(RequestMessage, session)

    def add_message(
        self,
        request_id: str,
        tenant_id: str,
        sender_role: SenderRole,
        message: str,
        sender_id: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> RequestMessage:
        return self.create(
            RequestMessage(
                request_id=request_id,
                tenant_id=tenant_id,
                sender_role=sender_role,
                sender_id=sender_id,
                message=message,
                payload=payload or {},
            )
        )

    def list_for_request(self, request_id: str) -> List[RequestMessage]:
        return self.find_by_criteria({"request_id": request_id}, limit=500, order_by=["created_at"])
