# --- File: hotelops/api/v1/guest.py ---
"""
Guest portal endpoints: session validation, service requests and the
per-session change feed.
"""
from typing import List

from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse

from hotelops.core.exceptions import AuthorizationError
from hotelops.core.realtime import ChangeFeedBroker, get_change_feed, session_channel
from hotelops.core.security import GuestPrincipal
from hotelops.dependencies import (
    get_guest_principal,
    get_qr_token_service,
    get_service_request_service,
)
from hotelops.schemas.service_request import (
    MessageCreate,
    MessageView,
    ServiceRequestCreate,
    ServiceRequestCreateResponse,
    ServiceRequestView,
)
from hotelops.schemas.session import SessionValidateRequest, SessionValidateResponse
from hotelops.services.qr import QRTokenService
from hotelops.services.service_request import ServiceRequestService

router = APIRouter(prefix="/guest", tags=["Guest Portal"])


@router.post("/session/validate", response_model=SessionValidateResponse)
def validate_session(
    payload: SessionValidateRequest,
    service: QRTokenService = Depends(get_qr_token_service),
) -> SessionValidateResponse:
    """Exchange a QR token for a guest session and its signed credential."""
    result = service.validate_token(
        payload.qr_token,
        payload.device_info.model_dump(exclude_none=True),
    )
    return result.unwrap()


@router.post(
    "/requests",
    response_model=ServiceRequestCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_request(
    payload: ServiceRequestCreate,
    principal: GuestPrincipal = Depends(get_guest_principal),
    service: ServiceRequestService = Depends(get_service_request_service),
) -> ServiceRequestCreateResponse:
    return service.create_request(principal, payload).unwrap()


@router.get("/requests/{request_id}", response_model=ServiceRequestView)
def get_request(
    request_id: str,
    principal: GuestPrincipal = Depends(get_guest_principal),
    service: ServiceRequestService = Depends(get_service_request_service),
) -> ServiceRequestView:
    return service.get_for_guest(principal, request_id).unwrap()


@router.post(
    "/requests/{request_id}/messages",
    response_model=MessageView,
    status_code=status.HTTP_201_CREATED,
)
def add_message(
    request_id: str,
    payload: MessageCreate,
    principal: GuestPrincipal = Depends(get_guest_principal),
    service: ServiceRequestService = Depends(get_service_request_service),
) -> MessageView:
    return service.add_guest_message(principal, request_id, payload).unwrap()


@router.get("/sessions/{session_id}/requests", response_model=List[ServiceRequestView])
def list_session_requests(
    session_id: str,
    principal: GuestPrincipal = Depends(get_guest_principal),
    service: ServiceRequestService = Depends(get_service_request_service),
) -> List[ServiceRequestView]:
    return service.list_for_session(principal, session_id).unwrap()


@router.get("/sessions/{session_id}/feed")
async def session_feed(
    session_id: str,
    principal: GuestPrincipal = Depends(get_guest_principal),
    change_feed: ChangeFeedBroker = Depends(get_change_feed),
) -> StreamingResponse:
    """Server-sent events for every request change in the session."""
    if session_id != principal.session_id:
        raise AuthorizationError("This feed belongs to another guest session")
    return StreamingResponse(
        change_feed.stream_sse(session_channel(session_id)),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
