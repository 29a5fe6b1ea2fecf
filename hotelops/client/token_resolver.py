# --- File: hotelops/client/token_resolver.py ---
"""
Canonical token resolution for whatever the guest's device presents.

Accepted inputs: a bare token, a `/guest/qr/{token}` path, a full portal URL,
or a short link (`/q/{code}`, path or full URL). Short links cost one
network hop and are bounded by REDIRECT_RESOLUTION_TIMEOUT.
"""

import asyncio
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

from hotelops.client.api import PortalAPI
from hotelops.client.errors import InvalidTokenFormat, PortalError, RedirectFailed
from hotelops.core.constants import GUEST_QR_ROUTE, QR_TOKEN_PATTERN, SHORT_CODE_PATTERN, SHORT_LINK_PREFIX
from hotelops.core.logging import get_logger

logger = get_logger(__name__)

_TOKEN_RE = re.compile(QR_TOKEN_PATTERN)
_SHORT_CODE_RE = re.compile(SHORT_CODE_PATTERN)


@dataclass(frozen=True)
class ResolvedToken:
    token: str
    # Original query string, kept for analytics attribution only
    query: str = ""
    short_code: Optional[str] = None


def _split(raw: str):
    """Return (path, query) for a URL, path or bare token."""
    parts = urlsplit(raw)
    return parts.path, parts.query


def _short_code_from(path: str) -> Optional[str]:
    if not path.startswith(SHORT_LINK_PREFIX):
        return None
    return path[len(SHORT_LINK_PREFIX):].strip("/")


def _token_from_path(path: str) -> str:
    prefix = GUEST_QR_ROUTE + "/"
    if path.startswith(prefix):
        return path[len(prefix):].strip("/")
    return path.strip("/")


def canonical_token(candidate: str) -> str:
    """
    Raises:
        InvalidTokenFormat: when the token is too short, too long or has
            characters outside letters, digits and hyphens
    """
    if not _TOKEN_RE.fullmatch(candidate):
        raise InvalidTokenFormat()
    return candidate


class TokenResolver:
    def __init__(self, api: PortalAPI, redirect_timeout: Optional[float] = None):
        self.api = api
        self.redirect_timeout = (
            redirect_timeout if redirect_timeout is not None
            else api.settings.REDIRECT_RESOLUTION_TIMEOUT
        )

    def resolve_local(self, raw: str) -> ResolvedToken:
        """Resolve inputs that need no network hop; short links are refused."""
        path, query = _split(raw.strip())
        if _short_code_from(path) is not None:
            raise RedirectFailed("Short links must be resolved online")
        return ResolvedToken(token=canonical_token(_token_from_path(path)), query=query)

    async def resolve(self, raw: str) -> ResolvedToken:
        path, query = _split(raw.strip())
        short_code = _short_code_from(path)
        if short_code is None:
            return ResolvedToken(token=canonical_token(_token_from_path(path)), query=query)

        if not _SHORT_CODE_RE.fullmatch(short_code):
            raise RedirectFailed()
        try:
            location = await asyncio.wait_for(
                self.api.resolve_short_link(short_code, query),
                timeout=self.redirect_timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning("Short link resolution timed out", extra={"short_code": short_code})
            raise RedirectFailed() from e
        except PortalError as e:
            logger.warning(
                f"Short link resolution failed: {e.message}",
                extra={"short_code": short_code},
            )
            raise RedirectFailed() from e

        target_path, target_query = _split(location)
        if not target_path.startswith(GUEST_QR_ROUTE + "/"):
            raise RedirectFailed()
        return ResolvedToken(
            token=canonical_token(_token_from_path(target_path)),
            query=target_query or query,
            short_code=short_code,
        )
