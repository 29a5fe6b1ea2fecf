# --- File: hotelops/api/v1/frontdesk.py ---
"""
Front desk endpoints: folio lookup and atomic checkout.
"""
from fastapi import APIRouter, Depends

from hotelops.core.exceptions import AuthorizationError
from hotelops.core.security import StaffPrincipal
from hotelops.dependencies import get_checkout_service, get_staff_principal
from hotelops.schemas.checkout import CheckoutRequest, CheckoutResult, FolioSummary
from hotelops.services.checkout import CheckoutService

router = APIRouter(prefix="/frontdesk", tags=["Front Desk"])


@router.get("/reservations/{reservation_id}/folio", response_model=FolioSummary)
def get_folio(
    reservation_id: str,
    staff: StaffPrincipal = Depends(get_staff_principal),
    service: CheckoutService = Depends(get_checkout_service),
) -> FolioSummary:
    return service.get_folio_summary(staff.tenant_id, reservation_id).unwrap()


@router.post("/checkout", response_model=CheckoutResult)
def checkout(
    payload: CheckoutRequest,
    staff: StaffPrincipal = Depends(get_staff_principal),
    service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResult:
    """
    Business rejections come back as 200 with success=false and the reason
    in `message`; only unexpected failures produce an error status.
    """
    if payload.tenant_id != staff.tenant_id:
        raise AuthorizationError("You cannot check out guests for another hotel")
    return service.checkout(payload.tenant_id, payload.reservation_id, staff_id=staff.user_id)
