# --- File: hotelops/client/session_context.py ---
"""
Explicit guest session context.

Loaded once from tab-scoped storage at construction and passed to every
component that needs the credential; nothing else reads the storage keys.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from hotelops.client.errors import SessionExpired
from hotelops.client.storage import TabScopedStorage, dumps, loads
from hotelops.core.constants import SESSION_DATA_KEY, SESSION_JWT_KEY


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class GuestSessionContext:
    storage: TabScopedStorage
    credential: Optional[str] = None
    session_id: Optional[str] = None
    tenant_id: Optional[str] = None
    qr_code_id: Optional[str] = None
    hotel_name: Optional[str] = None
    room_number: Optional[str] = None
    services: List[str] = field(default_factory=list)
    expires_at: Optional[datetime] = None
    clock: Callable[[], datetime] = field(default=lambda: datetime.now(timezone.utc), repr=False)
    _torn_down: bool = field(default=False, repr=False)

    @classmethod
    def load(
        cls,
        storage: TabScopedStorage,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "GuestSessionContext":
        """Build the context from whatever the tab currently holds."""
        data = loads(storage.get_item(SESSION_DATA_KEY)) or {}
        context = cls(
            storage=storage,
            credential=storage.get_item(SESSION_JWT_KEY),
            session_id=data.get("sessionId"),
            tenant_id=data.get("tenantId"),
            qr_code_id=data.get("qrCodeId"),
            hotel_name=data.get("hotelName"),
            room_number=data.get("roomNumber"),
            services=list(data.get("services") or []),
            expires_at=_parse_datetime(data.get("expiresAt")),
        )
        if clock is not None:
            context.clock = clock
        return context

    @staticmethod
    def persist(storage: TabScopedStorage, credential: str, session: Dict[str, Any]) -> None:
        """Write credential and session metadata to the tab's storage."""
        storage.set_item(SESSION_JWT_KEY, credential)
        storage.set_item(SESSION_DATA_KEY, dumps(session))

    @property
    def is_active(self) -> bool:
        if self._torn_down or not self.credential or not self.session_id:
            return False
        return self.expires_at is None or self.expires_at > self.clock()

    def require_credential(self) -> str:
        """
        Raises:
            SessionExpired: when there is no usable credential
        """
        if not self.is_active:
            raise SessionExpired()
        return self.credential

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.require_credential()}"}

    def teardown(self) -> None:
        """End the session: forget the credential and wipe the tab's keys."""
        self.storage.remove_item(SESSION_JWT_KEY)
        self.storage.remove_item(SESSION_DATA_KEY)
        self.credential = None
        self._torn_down = True
