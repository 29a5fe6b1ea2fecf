# --- File: hotelops/client/session_issuer.py ---
"""
Exchange a canonical QR token for a guest session credential.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from hotelops.client.api import PortalAPI
from hotelops.client.errors import SessionTimeout, TransportFailure
from hotelops.client.session_context import GuestSessionContext
from hotelops.client.storage import TabScopedStorage
from hotelops.core.logging import get_logger

logger = get_logger(__name__)


class SessionIssuer:
    """
    Validates tokens against the API and writes the credential to the tab's
    storage. The storage type is checked at construction: credentials never
    go anywhere that outlives the browsing context.
    """

    def __init__(
        self,
        api: PortalAPI,
        storage: TabScopedStorage,
        timeout: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not isinstance(storage, TabScopedStorage):
            raise TypeError("Guest credentials may only be stored in tab-scoped storage")
        self.api = api
        self.storage = storage
        self.timeout = timeout if timeout is not None else api.settings.SESSION_VALIDATION_TIMEOUT
        self.clock = clock

    async def validate(self, token: str, device_info: Optional[Dict[str, Any]] = None) -> GuestSessionContext:
        """
        Raises:
            SessionTimeout: when the API does not answer within the bound
            TokenNotFound, TokenDeactivated, TokenExpired, RateLimited: from the server
        """
        device_info = {"timestamp": datetime.now(timezone.utc).isoformat(), **(device_info or {})}
        try:
            body = await asyncio.wait_for(
                self.api.validate_session(token, device_info),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning("Session validation timed out")
            raise SessionTimeout() from e

        credential = body.get("token")
        session = body.get("session")
        if not body.get("success") or not credential or not isinstance(session, dict):
            raise TransportFailure("Unexpected session validation response")

        GuestSessionContext.persist(self.storage, credential, session)
        logger.info("Guest session issued", extra={"session_id": session.get("sessionId")})
        return GuestSessionContext.load(self.storage, clock=self.clock)
