# --- File: hotelops/client/api.py ---
"""
Async HTTP client for the hotel operations API.

Thin wrapper over `httpx.AsyncClient`: every non-2xx response is turned into
the matching client error and every transport problem into
TransportFailure. User-facing time bounds are applied by the calling
components, on top of the transport timeout configured here.
"""

import asyncio
import json
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from hotelops.client.errors import PortalError, TransportFailure, error_from_envelope
from hotelops.client.session_context import GuestSessionContext
from hotelops.config.settings import ClientSettings, get_client_settings
from hotelops.core.constants import API_V1_PREFIX
from hotelops.core.logging import get_logger

logger = get_logger(__name__)


async def iter_sse_events(lines: AsyncIterator[str]) -> AsyncIterator[Dict[str, Any]]:
    """
    Parse a server-sent-event line stream into decoded `data` payloads.

    Comment lines (starting with ':') are keepalives and are skipped.
    """
    event_type: Optional[str] = None
    data_lines: List[str] = []
    async for line in lines:
        if line == "":
            if data_lines:
                try:
                    payload = json.loads("\n".join(data_lines))
                except ValueError:
                    logger.warning("Skipping undecodable change feed event")
                else:
                    if isinstance(payload, dict):
                        payload.setdefault("type", event_type or "message")
                        yield payload
            event_type, data_lines = None, []
            continue
        if line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        value = value[1:] if value.startswith(" ") else value
        if name == "event":
            event_type = value
        elif name == "data":
            data_lines.append(value)


class PortalAPI:
    """
    Usage:
        async with PortalAPI() as api:
            body = await api.validate_session("room-101-a7f3c9", {})
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        settings: Optional[ClientSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_client_settings()
        self._client = client or httpx.AsyncClient(
            base_url=base_url or self.settings.BASE_URL,
            timeout=self.settings.TRANSPORT_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self) -> "PortalAPI":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------ #
    # Core request handling
    # ------------------------------------------------------------------ #
    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise TransportFailure(f"Network error: {e}") from e

        if response.status_code >= 400:
            raise self._error_for(response)
        return response

    @staticmethod
    def _error_for(response: httpx.Response) -> PortalError:
        try:
            body = response.json()
        except ValueError:
            body = None
        return error_from_envelope(response.status_code, body)

    async def _json(self, method: str, url: str, **kwargs) -> Any:
        response = await self._request(method, url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise TransportFailure("Unreadable response from server", status_code=response.status_code) from e

    @staticmethod
    def _bearer(token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    # ------------------------------------------------------------------ #
    # Guest portal
    # ------------------------------------------------------------------ #
    async def validate_session(self, qr_token: str, device_info: Dict[str, Any]) -> Dict[str, Any]:
        return await self._json(
            "POST",
            f"{API_V1_PREFIX}/guest/session/validate",
            json={"qrToken": qr_token, "deviceInfo": device_info},
        )

    async def create_request(self, context: GuestSessionContext, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._json(
            "POST",
            f"{API_V1_PREFIX}/guest/requests",
            json=body,
            headers=context.auth_headers(),
        )

    async def get_request(self, context: GuestSessionContext, request_id: str) -> Dict[str, Any]:
        return await self._json(
            "GET",
            f"{API_V1_PREFIX}/guest/requests/{request_id}",
            headers=context.auth_headers(),
        )

    async def list_session_requests(self, context: GuestSessionContext) -> List[Dict[str, Any]]:
        return await self._json(
            "GET",
            f"{API_V1_PREFIX}/guest/sessions/{context.session_id}/requests",
            headers=context.auth_headers(),
        )

    async def session_feed(self, context: GuestSessionContext) -> AsyncIterator[Dict[str, Any]]:
        async for event in self._stream(
            f"{API_V1_PREFIX}/guest/sessions/{context.session_id}/feed",
            context.auth_headers(),
        ):
            yield event

    async def resolve_short_link(self, short_code: str, query: str = "") -> str:
        """
        One hop: read the redirect target of /q/{code} without following it.

        Raises:
            PortalError: for a missing link (RedirectFailed) or a non-redirect answer
        """
        url = f"/q/{short_code}" + (f"?{query}" if query else "")
        response = await self._request("GET", url, follow_redirects=False)
        location = response.headers.get("location")
        if not response.is_redirect or not location:
            raise TransportFailure(
                f"Short link did not redirect (HTTP {response.status_code})",
                status_code=response.status_code,
            )
        return location

    # ------------------------------------------------------------------ #
    # Staff and front desk
    # ------------------------------------------------------------------ #
    async def list_staff_requests(self, token: str, statuses: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        params = [("status", s) for s in statuses or []]
        return await self._json(
            "GET",
            f"{API_V1_PREFIX}/staff/requests",
            params=params,
            headers=self._bearer(token),
        )

    async def staff_feed(self, token: str) -> AsyncIterator[Dict[str, Any]]:
        async for event in self._stream(f"{API_V1_PREFIX}/staff/requests/feed", self._bearer(token)):
            yield event

    async def get_folio(self, token: str, reservation_id: str) -> Dict[str, Any]:
        return await self._json(
            "GET",
            f"{API_V1_PREFIX}/frontdesk/reservations/{reservation_id}/folio",
            headers=self._bearer(token),
        )

    async def checkout(self, token: str, tenant_id: str, reservation_id: str) -> Dict[str, Any]:
        return await self._json(
            "POST",
            f"{API_V1_PREFIX}/frontdesk/checkout",
            json={"tenantId": tenant_id, "reservationId": reservation_id},
            headers=self._bearer(token),
        )

    # ------------------------------------------------------------------ #
    # Connectivity
    # ------------------------------------------------------------------ #
    async def health_check(self) -> bool:
        """True when the API answers /health within the configured bound."""
        try:
            response = await asyncio.wait_for(
                self._client.get("/health"),
                timeout=self.settings.HEALTH_CHECK_TIMEOUT,
            )
        except (asyncio.TimeoutError, httpx.HTTPError) as e:
            logger.warning(f"Health check failed: {e!r}")
            return False
        return response.status_code == 200

    async def _stream(self, url: str, headers: Dict[str, str]) -> AsyncIterator[Dict[str, Any]]:
        try:
            async with self._client.stream(
                "GET",
                url,
                headers={**headers, "Accept": "text/event-stream"},
                timeout=httpx.Timeout(self.settings.TRANSPORT_TIMEOUT, read=None),
            ) as response:
                if response.status_code >= 400:
                    await response.aread()
                    raise self._error_for(response)
                async for event in iter_sse_events(response.aiter_lines()):
                    yield event
        except httpx.HTTPError as e:
            raise TransportFailure(f"Change feed interrupted: {e}") from e
