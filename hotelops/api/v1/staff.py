# --- File: hotelops/api/v1/staff.py ---
"""
Staff endpoints for the service request queue.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from hotelops.core.realtime import ChangeFeedBroker, get_change_feed, tenant_channel
from hotelops.core.security import StaffPrincipal
from hotelops.dependencies import get_service_request_service, get_staff_principal
from hotelops.schemas.enums import RequestStatus
from hotelops.schemas.service_request import (
    AssignRequest,
    MessageView,
    ServiceRequestView,
    StaffResponse,
    StatusUpdate,
)
from hotelops.services.service_request import ServiceRequestService

router = APIRouter(prefix="/staff", tags=["Staff Requests"])


@router.get("/requests", response_model=List[ServiceRequestView])
def list_requests(
    status: Optional[List[RequestStatus]] = Query(None),
    request_type: Optional[str] = Query(None, alias="requestType"),
    staff: StaffPrincipal = Depends(get_staff_principal),
    service: ServiceRequestService = Depends(get_service_request_service),
) -> List[ServiceRequestView]:
    return service.list_for_staff(staff, statuses=status, request_type=request_type).unwrap()


@router.get("/requests/feed")
async def tenant_feed(
    staff: StaffPrincipal = Depends(get_staff_principal),
    change_feed: ChangeFeedBroker = Depends(get_change_feed),
) -> StreamingResponse:
    return StreamingResponse(
        change_feed.stream_sse(tenant_channel(staff.tenant_id)),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("/requests/{request_id}/assign", response_model=ServiceRequestView)
def assign_request(
    request_id: str,
    payload: AssignRequest,
    staff: StaffPrincipal = Depends(get_staff_principal),
    service: ServiceRequestService = Depends(get_service_request_service),
) -> ServiceRequestView:
    return service.assign(staff, request_id, payload).unwrap()


@router.post("/requests/{request_id}/status", response_model=ServiceRequestView)
def update_status(
    request_id: str,
    payload: StatusUpdate,
    staff: StaffPrincipal = Depends(get_staff_principal),
    service: ServiceRequestService = Depends(get_service_request_service),
) -> ServiceRequestView:
    return service.update_status(staff, request_id, payload).unwrap()


@router.post("/requests/{request_id}/respond", response_model=MessageView)
def respond(
    request_id: str,
    payload: StaffResponse,
    staff: StaffPrincipal = Depends(get_staff_principal),
    service: ServiceRequestService = Depends(get_service_request_service),
) -> MessageView:
    return service.respond(staff, request_id, payload).unwrap()


@router.get("/requests/{request_id}/messages", response_model=List[MessageView])
def list_messages(
    request_id: str,
    staff: StaffPrincipal = Depends(get_staff_principal),
    service: ServiceRequestService = Depends(get_service_request_service),
) -> List[MessageView]:
    return service.list_messages(staff, request_id).unwrap()
