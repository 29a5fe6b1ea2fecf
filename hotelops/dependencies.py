# --- File: hotelops/dependencies.py ---
from __future__ import annotations

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from hotelops.core.logging import tenant_id as tenant_id_ctx
from hotelops.core.rate_limiting import SlidingWindowLimiter, get_rate_limiter
from hotelops.core.realtime import ChangeFeedBroker, get_change_feed
from hotelops.core.security import (
    GuestPrincipal,
    StaffPrincipal,
    verify_guest_credential,
    verify_staff_token,
)
from hotelops.db.session import get_db
from hotelops.services.checkout import CheckoutService
from hotelops.services.qr import QRTokenService, ShortLinkService
from hotelops.services.service_request import ServiceRequestService

# Bearer scheme shared by guest credentials and staff tokens; errors are
# raised by the verifiers so they render as the standard envelope.
bearer_scheme = HTTPBearer(auto_error=False)


# ------------------------------------------------------------------ #
# Principals
# ------------------------------------------------------------------ #
def get_guest_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> GuestPrincipal:
    """
    Re-validate the guest session credential on every privileged call.

    Raises SessionExpiredError (401) when missing, invalid or expired.
    """
    principal = verify_guest_credential(credentials.credentials if credentials else None)
    tenant_id_ctx.set(principal.tenant_id)
    return principal


def get_staff_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> StaffPrincipal:
    principal = verify_staff_token(credentials.credentials if credentials else None)
    tenant_id_ctx.set(principal.tenant_id)
    return principal


# ------------------------------------------------------------------ #
# Service factories
# ------------------------------------------------------------------ #
def get_qr_token_service(
    db: Session = Depends(get_db),
    rate_limiter: SlidingWindowLimiter = Depends(get_rate_limiter),
) -> QRTokenService:
    return QRTokenService(db, rate_limiter=rate_limiter)


def get_short_link_service(
    db: Session = Depends(get_db),
    rate_limiter: SlidingWindowLimiter = Depends(get_rate_limiter),
) -> ShortLinkService:
    return ShortLinkService(db, rate_limiter=rate_limiter)


def get_service_request_service(
    db: Session = Depends(get_db),
    change_feed: ChangeFeedBroker = Depends(get_change_feed),
) -> ServiceRequestService:
    return ServiceRequestService(db, change_feed=change_feed)


def get_checkout_service(db: Session = Depends(get_db)) -> CheckoutService:
    return CheckoutService(db)


__all__ = [
    "bearer_scheme",
    "get_db",
    "get_guest_principal",
    "get_staff_principal",
    "get_qr_token_service",
    "get_short_link_service",
    "get_service_request_service",
    "get_checkout_service",
]
