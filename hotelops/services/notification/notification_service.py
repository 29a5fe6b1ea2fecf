# --- File: hotelops/services/notification/notification_service.py ---
"""
Outbound guest notifications.

Messages are written to the notification outbox in their own transaction
and delivered by an external worker. Queuing is best-effort: a failure is
logged and reported as None, never raised to the caller.
"""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hotelops.core.exceptions import DatabaseError
from hotelops.models.service_request import NotificationOutbox
from hotelops.repositories.service_request import NotificationOutboxRepository
from hotelops.schemas.enums import NotificationChannel
from hotelops.services.base import BaseService
from hotelops.utils.sms import SMSValidationError, normalize_phone_number


class NotificationService(BaseService):

    def __init__(self, db_session: Session):
        super().__init__(db_session)
        self.outbox = NotificationOutboxRepository(db_session)

    def queue_sms(
        self,
        tenant_id: str,
        phone: Optional[str],
        body: str,
        reference_id: Optional[str] = None,
    ) -> Optional[NotificationOutbox]:
        try:
            recipient = normalize_phone_number(phone or "")
            with self.transaction():
                entry = self.outbox.enqueue(
                    tenant_id=tenant_id,
                    recipient=recipient,
                    body=body,
                    channel=NotificationChannel.SMS,
                    reference_id=reference_id,
                )
        except (SMSValidationError, SQLAlchemyError, DatabaseError) as e:
            self._logger.warning(
                f"SMS notification not queued: {e}",
                extra={"tenant_id": tenant_id, "reference_id": reference_id},
            )
            return None
        except Exception:
            self._logger.exception(
                "SMS notification failed unexpectedly",
                extra={"tenant_id": tenant_id, "reference_id": reference_id},
            )
            return None

        self._logger.info(
            "SMS notification queued",
            extra={"tenant_id": tenant_id, "reference_id": reference_id, "outbox_id": entry.id},
        )
        return entry
