# --- File: hotelops/services/service_request/service_request_service.py ---
"""
Service request lifecycle.

Guests create requests against their session and follow them; staff list,
acknowledge, progress and answer them. Every change is published on the
change feed for the session and for the tenant.
"""

from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from hotelops.core.exceptions import (
    BaseAppException,
    ResourceNotFoundError,
    SessionExpiredError,
    SubmissionFailedError,
)
from hotelops.core.realtime import ChangeFeedBroker, get_change_feed, session_channel, tenant_channel
from hotelops.core.security import GuestPrincipal, StaffPrincipal
from hotelops.models.base import as_utc
from hotelops.models.service_request import RequestMessage, ServiceRequest
from hotelops.repositories.billing import FolioRepository, ReservationRepository
from hotelops.repositories.qr import GuestSessionRepository
from hotelops.repositories.service_request import (
    RequestMessageRepository,
    ServiceRequestRepository,
)
from hotelops.schemas.enums import RequestStatus, SenderRole
from hotelops.schemas.service_request import (
    AssignRequest,
    CreatedRequest,
    MessageCreate,
    MessageView,
    RoomServicePayload,
    ServiceRequestCreate,
    ServiceRequestCreateResponse,
    ServiceRequestView,
    StaffResponse,
    StatusUpdate,
    normalize_request_type,
    parse_request_payload,
    summarize_payload,
)
from hotelops.services.base import BaseService, ServiceResult
from hotelops.services.notification import NotificationService
from hotelops.utils.sms import build_request_confirmation

ASSIGNED_TEAMS: Dict[str, str] = {
    "maintenance": "Maintenance",
    "housekeeping": "Housekeeping",
    "room_service": "Kitchen",
    "wifi_support": "IT",
    "concierge": "Front Desk",
    "feedback": "Management",
}


def assigned_team_for(request_type: str) -> str:
    return ASSIGNED_TEAMS.get(request_type, "Front Desk")


def to_view(request: ServiceRequest) -> ServiceRequestView:
    return ServiceRequestView(
        id=request.id,
        tracking_number=request.tracking_number,
        session_id=request.session_id,
        tenant_id=request.tenant_id,
        room_number=request.room.room_number if request.room else None,
        request_type=request.request_type,
        request_data=request.request_data or {},
        priority=request.priority,
        status=request.status,
        assigned_team=request.assigned_team,
        assigned_to=request.assigned_to,
        notes=request.notes,
        created_at=as_utc(request.created_at),
        updated_at=as_utc(request.updated_at),
        completed_at=as_utc(request.completed_at),
    )


def to_message_view(message: RequestMessage) -> MessageView:
    return MessageView(
        id=message.id,
        request_id=message.request_id,
        sender_role=message.sender_role,
        message=message.message,
        payload=message.payload or {},
        created_at=as_utc(message.created_at),
    )


class ServiceRequestService(BaseService):
    """
    Service request operations for guests and staff.
    """

    def __init__(
        self,
        db_session: Session,
        change_feed: Optional[ChangeFeedBroker] = None,
        notifications_factory: Callable[[Session], NotificationService] = NotificationService,
    ):
        super().__init__(db_session)
        self.requests = ServiceRequestRepository(db_session)
        self.messages = RequestMessageRepository(db_session)
        self.sessions = GuestSessionRepository(db_session)
        self.reservations = ReservationRepository(db_session)
        self.folios = FolioRepository(db_session)
        self.change_feed = change_feed or get_change_feed()
        self.notifications = notifications_factory(db_session)

    # -------------------------------------------------------------------------
    # Guest operations
    # -------------------------------------------------------------------------

    def create_request(
        self,
        principal: GuestPrincipal,
        body: ServiceRequestCreate,
    ) -> ServiceResult[ServiceRequestCreateResponse]:
        """
        Create exactly one pending request for the caller's session.

        With SMS opt-in one confirmation is queued afterwards; a queuing
        failure does not affect the created request.
        """
        try:
            if body.session_id != principal.session_id:
                raise SessionExpiredError()
            guest_session = self.sessions.find_active(principal.session_id)
            if guest_session is None:
                raise SessionExpiredError()

            request_type = normalize_request_type(body.request_type)
            payload = parse_request_payload(request_type, body.request_data)
            summary = summarize_payload(payload)

            with self.transaction():
                request = self.requests.create_request(
                    tenant_id=guest_session.tenant_id,
                    session_id=guest_session.id,
                    qr_code_id=guest_session.qr_code_id,
                    room_id=guest_session.room_id,
                    request_type=request_type,
                    request_data=payload.model_dump(mode="json", by_alias=True, exclude_none=True),
                    priority=body.priority,
                    assigned_team=assigned_team_for(request_type),
                    guest_name=body.guest_name,
                    guest_phone=body.guest_phone,
                    sms_enabled=body.sms_enabled,
                    notes=summary,
                )
                self.messages.add_message(
                    request_id=request.id,
                    tenant_id=request.tenant_id,
                    sender_role=SenderRole.GUEST,
                    message=summary,
                )
                if isinstance(payload, RoomServicePayload):
                    self._post_room_service_charge(request, payload)

        except BaseAppException as e:
            return self._handle_exception(e, "create service request")
        except Exception as e:
            self._logger.error(
                f"Service request creation failed: {e}",
                exc_info=True,
                extra={"session_id": principal.session_id},
            )
            return ServiceResult.from_app_exception(SubmissionFailedError())

        self._logger.info(
            "Service request created",
            extra={
                "request_id": request.id,
                "tracking_number": request.tracking_number,
                "request_type": request_type,
                "tenant_id": request.tenant_id,
            },
        )

        if body.sms_enabled:
            hotel_name = guest_session.qr_code.tenant.hotel_name if guest_session.qr_code else ""
            self.notifications.queue_sms(
                tenant_id=request.tenant_id,
                phone=body.guest_phone,
                body=build_request_confirmation(hotel_name, request.tracking_number, summary),
                reference_id=request.id,
            )

        self._publish(request, "request.created")
        return ServiceResult.success(
            ServiceRequestCreateResponse(
                success=True,
                request=CreatedRequest(
                    request_id=request.id,
                    tracking_number=request.tracking_number,
                    created_at=as_utc(request.created_at),
                ),
            )
        )

    def get_for_guest(self, principal: GuestPrincipal, request_id: str) -> ServiceResult[ServiceRequestView]:
        request = self.requests.find_by_id(request_id)
        if request is None or request.session_id != principal.session_id:
            return ServiceResult.not_found("Service request", request_id)
        return ServiceResult.success(to_view(request))

    def list_for_session(
        self,
        principal: GuestPrincipal,
        session_id: str,
    ) -> ServiceResult[List[ServiceRequestView]]:
        if session_id != principal.session_id:
            return ServiceResult.unauthorized("list requests", "guest session")
        return ServiceResult.success([to_view(r) for r in self.requests.list_for_session(session_id)])

    def add_guest_message(
        self,
        principal: GuestPrincipal,
        request_id: str,
        body: MessageCreate,
    ) -> ServiceResult[MessageView]:
        try:
            request = self.requests.find_by_id(request_id)
            if request is None or request.session_id != principal.session_id:
                raise ResourceNotFoundError("Service request", request_id)
            with self.transaction():
                message = self.messages.add_message(
                    request_id=request.id,
                    tenant_id=request.tenant_id,
                    sender_role=SenderRole.GUEST,
                    message=body.message,
                    payload=body.payload,
                )
        except Exception as e:
            return self._handle_exception(e, "add guest message", request_id)

        self._publish(request, "request.message")
        return ServiceResult.success(to_message_view(message))

    # -------------------------------------------------------------------------
    # Staff operations
    # -------------------------------------------------------------------------

    def list_for_staff(
        self,
        staff: StaffPrincipal,
        statuses: Optional[Sequence[RequestStatus]] = None,
        request_type: Optional[str] = None,
    ) -> ServiceResult[List[ServiceRequestView]]:
        requests = self.requests.list_for_tenant(
            staff.tenant_id,
            statuses=statuses,
            request_type=normalize_request_type(request_type) if request_type else None,
        )
        return ServiceResult.success([to_view(r) for r in requests])

    def assign(
        self,
        staff: StaffPrincipal,
        request_id: str,
        body: AssignRequest,
    ) -> ServiceResult[ServiceRequestView]:
        """Assign the request; a pending request is acknowledged at the same time."""
        try:
            with self.transaction():
                request = self._locked(staff, request_id)
                request.assigned_to = body.assigned_to or staff.user_id
                if RequestStatus(request.status) is RequestStatus.PENDING:
                    request.apply_status(RequestStatus.ACKNOWLEDGED)
                self.messages.add_message(
                    request_id=request.id,
                    tenant_id=request.tenant_id,
                    sender_role=SenderRole.STAFF,
                    sender_id=staff.user_id,
                    message=body.note or f"Assigned to {request.assigned_to}",
                )
        except Exception as e:
            return self._handle_exception(e, "assign service request", request_id)

        self._publish(request, "request.updated")
        return ServiceResult.success(to_view(request))

    def update_status(
        self,
        staff: StaffPrincipal,
        request_id: str,
        body: StatusUpdate,
    ) -> ServiceResult[ServiceRequestView]:
        try:
            with self.transaction():
                request = self._locked(staff, request_id)
                request.apply_status(body.status)
                self.messages.add_message(
                    request_id=request.id,
                    tenant_id=request.tenant_id,
                    sender_role=SenderRole.STAFF,
                    sender_id=staff.user_id,
                    message=body.note or f"Status updated to {body.status.value}",
                    payload={"status": body.status.value},
                )
        except Exception as e:
            return self._handle_exception(e, "update service request status", request_id)

        self._logger.info(
            "Service request status changed",
            extra={"request_id": request.id, "status": body.status.value, "staff_id": staff.user_id},
        )
        self._publish(request, "request.updated")
        return ServiceResult.success(to_view(request))

    def respond(
        self,
        staff: StaffPrincipal,
        request_id: str,
        body: StaffResponse,
    ) -> ServiceResult[MessageView]:
        try:
            with self.transaction():
                request = self._locked(staff, request_id)
                if body.status is not None:
                    request.apply_status(body.status)
                message = self.messages.add_message(
                    request_id=request.id,
                    tenant_id=request.tenant_id,
                    sender_role=SenderRole.STAFF,
                    sender_id=staff.user_id,
                    message=body.message,
                    payload={"status": body.status.value} if body.status else {},
                )
        except Exception as e:
            return self._handle_exception(e, "respond to service request", request_id)

        self._publish(request, "request.message")
        return ServiceResult.success(to_message_view(message))

    def list_messages(self, staff: StaffPrincipal, request_id: str) -> ServiceResult[List[MessageView]]:
        request = self.requests.find_for_tenant(request_id, staff.tenant_id)
        if request is None:
            return ServiceResult.not_found("Service request", request_id)
        return ServiceResult.success([to_message_view(m) for m in self.messages.list_for_request(request.id)])

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _locked(self, staff: StaffPrincipal, request_id: str) -> ServiceRequest:
        request = self.requests.find_for_update(request_id, staff.tenant_id)
        if request is None:
            raise ResourceNotFoundError("Service request", request_id)
        return request

    def _post_room_service_charge(self, request: ServiceRequest, payload: RoomServicePayload) -> None:
        """Charge the order to the room's open folio, when there is one."""
        amount = payload.total_amount
        if amount is None or amount <= Decimal("0") or request.room_id is None:
            return
        reservation = self.reservations.find_in_house_for_room(request.tenant_id, request.room_id)
        if reservation is None:
            return
        folio = self.folios.find_open_by_reservation(reservation.id)
        if folio is None:
            return
        self.folios.add_charge(
            folio,
            charge_type="room_service",
            description=f"Room service order {request.tracking_number}",
            amount=amount,
            reference_id=request.id,
            reference_type="service_request",
        )
        self._logger.info(
            "Room service charged to folio",
            extra={"request_id": request.id, "folio_id": folio.id, "amount": str(amount)},
        )

    def _publish(self, request: ServiceRequest, event_type: str) -> None:
        event = {
            "type": event_type,
            "request": to_view(request).model_dump(mode="json", by_alias=True),
        }
        self.change_feed.publish(session_channel(request.session_id), event)
        self.change_feed.publish(tenant_channel(request.tenant_id), event)
