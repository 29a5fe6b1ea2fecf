# --- File: hotelops/api/public.py ---
"""
Unversioned public endpoints: URL shortener, short-link redirects and the
health check.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from hotelops.config.settings import settings
from hotelops.core.constants import HEADER_TENANT_ID
from hotelops.db.session import get_db
from hotelops.dependencies import get_short_link_service
from hotelops.schemas.short_link import ShortenRequest, ShortLinkAnalytics, ShortLinkCreated
from hotelops.services.qr import ShortLinkService

router = APIRouter()


@router.post("/url-shortener/shorten", response_model=ShortLinkCreated, tags=["Short Links"])
def shorten(
    payload: ShortenRequest,
    service: ShortLinkService = Depends(get_short_link_service),
) -> ShortLinkCreated:
    return service.shorten(payload.url, payload.tenant_id)


@router.get(
    "/url-shortener/analytics/{short_code}",
    response_model=ShortLinkAnalytics,
    tags=["Short Links"],
)
def analytics(
    short_code: str,
    tenant_id: Optional[str] = Header(None, alias=HEADER_TENANT_ID),
    service: ShortLinkService = Depends(get_short_link_service),
) -> ShortLinkAnalytics:
    return service.analytics(short_code, tenant_id)


@router.get("/q/{short_code}", tags=["Short Links"])
def follow_short_link(
    short_code: str,
    request: Request,
    service: ShortLinkService = Depends(get_short_link_service),
) -> RedirectResponse:
    """Redirect to the canonical guest portal URL, keeping the query string."""
    target = service.resolve(short_code, request.url.query)
    return RedirectResponse(url=target, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.get("/health", tags=["System Health"])
def health_check(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return {
        "status": "healthy",
        "version": settings.API_VERSION,
        "environment": settings.ENVIRONMENT,
        "database": "ok",
    }
