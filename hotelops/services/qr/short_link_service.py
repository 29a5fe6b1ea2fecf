# --- File: hotelops/services/qr/short_link_service.py ---
"""
URL shortener for guest portal links.

Short codes are random alphanumeric strings; resolving one bumps its click
counter and carries the visitor's query string over to the target.
"""

import secrets
import string
from typing import Optional
from urllib.parse import quote, urlsplit, urlunsplit

from sqlalchemy.orm import Session

from hotelops.config.settings import settings
from hotelops.core.exceptions import (
    AuthorizationError,
    RateLimitExceededError,
    ShortLinkNotFoundError,
    ValidationError,
)
from hotelops.core.rate_limiting import SlidingWindowLimiter, get_rate_limiter, shorten_rate_limit_key
from hotelops.models.base import as_utc
from hotelops.models.qr import ShortLink
from hotelops.repositories.qr import ShortLinkRepository
from hotelops.schemas.short_link import ShortLinkAnalytics, ShortLinkCreated
from hotelops.services.base import BaseService

_CODE_ALPHABET = string.ascii_letters + string.digits
_URL_SAFE_CHARS = ":/?#[]@!$&()*+,;=%-._~"


def sanitize_target_url(url: str) -> str:
    """
    Accept absolute http(s) URLs and root-relative paths; percent-encode
    anything outside the URL character set.

    Raises:
        ValidationError: (400) for any other shape
    """
    parts = urlsplit(url.strip())
    absolute = parts.scheme in ("http", "https") and bool(parts.netloc)
    relative = not parts.scheme and not parts.netloc and parts.path.startswith("/")
    if not (absolute or relative):
        raise ValidationError(
            message=f"invalid URL: {url}",
            field_errors={"url": ["must be an http(s) URL or a path starting with /"]},
            status_code=400,
        )
    return quote(url.strip(), safe=_URL_SAFE_CHARS)


def merge_query(target_url: str, query: str) -> str:
    """Append the visitor's query string to the target, keeping the target's own."""
    if not query:
        return target_url
    parts = urlsplit(target_url)
    merged = f"{parts.query}&{query}" if parts.query else query
    return urlunsplit((parts.scheme, parts.netloc, parts.path, merged, parts.fragment))


class ShortLinkService(BaseService):
    """
    Raises application exceptions directly; the public routes let the
    exception handlers render them.
    """

    def __init__(self, db_session: Session, rate_limiter: Optional[SlidingWindowLimiter] = None):
        super().__init__(db_session)
        self.links = ShortLinkRepository(db_session)
        self.rate_limiter = rate_limiter or get_rate_limiter()

    def shorten(self, url: Optional[str], tenant_id: Optional[str]) -> ShortLinkCreated:
        missing = [name for name, value in (("url", url), ("tenantId", tenant_id)) if not value]
        if missing:
            raise ValidationError(
                message=f"{' and '.join(missing)} required",
                field_errors={name: ["required"] for name in missing},
                status_code=400,
            )

        target_url = sanitize_target_url(url)

        limit = self.rate_limiter.check_limit(
            shorten_rate_limit_key(tenant_id),
            settings.SHORTEN_RATE_LIMIT,
            settings.SHORTEN_RATE_LIMIT_PERIOD,
        )
        if not limit.allowed:
            raise RateLimitExceededError(retry_after=limit.retry_after)

        with self.transaction():
            link = self.links.create(
                ShortLink(
                    tenant_id=tenant_id,
                    short_code=self._generate_code(),
                    target_url=target_url,
                )
            )

        self._logger.info(
            "Short link created",
            extra={"short_code": link.short_code, "tenant_id": tenant_id},
        )
        return ShortLinkCreated(
            short_code=link.short_code,
            short_url=f"{settings.PUBLIC_BASE_URL.rstrip('/')}/q/{link.short_code}",
            target_url=link.target_url,
        )

    def resolve(self, short_code: str, query: str = "") -> str:
        """Return the redirect target for `short_code` and count the click."""
        link = self.links.find_by_code(short_code)
        if link is None:
            raise ShortLinkNotFoundError(short_code)

        with self.transaction():
            self.links.record_click(link.id)
        return merge_query(link.target_url, query)

    def analytics(self, short_code: str, tenant_id: Optional[str]) -> ShortLinkAnalytics:
        link = self.links.find_by_code(short_code)
        if link is None:
            raise ShortLinkNotFoundError(short_code)
        if not tenant_id or tenant_id != link.tenant_id:
            raise AuthorizationError("This short link belongs to another hotel")

        return ShortLinkAnalytics(
            short_code=link.short_code,
            target_url=link.target_url,
            click_count=link.click_count,
            created_at=as_utc(link.created_at),
            last_clicked_at=as_utc(link.last_clicked_at),
        )

    def _generate_code(self) -> str:
        length = max(settings.SHORT_CODE_LENGTH, 8)
        while True:
            code = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))
            if not self.links.code_exists(code):
                return code
