# --- File: hotelops/repositories/service_request/notification_outbox_repository.py ---
"""
Notification Outbox Repository.
"""

from typing import Optional

from sqlalchemy.orm import Session

from hotelops.models.service_request import NotificationOutbox
from hotelops.repositories.base.base_repository import BaseRepository
from hotelops.schemas.enums import NotificationChannel, NotificationStatus


class NotificationOutboxRepository(BaseRepository[NotificationOutbox]):

    def __init__(self, session: Session):
        super().__init__(NotificationOutbox, session)

    def enqueue(
        self,
        tenant_id: str,
        recipient: str,
        body: str,
        channel: NotificationChannel = NotificationChannel.SMS,
        reference_id: Optional[str] = None,
    ) -> NotificationOutbox:
        return self.create(
            NotificationOutbox(
                tenant_id=tenant_id,
                channel=channel,
                recipient=recipient,
                body=body,
                status=NotificationStatus.QUEUED,
                reference_id=reference_id,
            )
        )
