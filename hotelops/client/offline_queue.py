# --- File: hotelops/client/offline_queue.py ---
"""
Guest requests saved while the portal cannot reach the hotel.

The queue is stored as one JSON list under OFFLINE_QUEUE_KEY in tab-scoped
storage, so it survives a reload of the portal but not the end of the
browsing context. Entries move `pending -> synced` (then dropped) or
`pending -> failed` once their retries are spent.
"""

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from hotelops.client.storage import StorageArea, dumps, loads
from hotelops.core.constants import OFFLINE_QUEUE_KEY
from hotelops.core.logging import get_logger

logger = get_logger(__name__)

PENDING = "pending"
FAILED = "failed"


@dataclass
class QueuedRequest:
    body: Dict[str, Any]
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    queued_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    status: str = PENDING
    retry_count: int = 0
    error_message: Optional[str] = None

    @property
    def request_type(self) -> Optional[str]:
        return self.body.get("requestType")

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "QueuedRequest":
        return cls(
            body=raw.get("body") or {},
            id=raw["id"],
            queued_at=raw.get("queued_at") or "",
            status=raw.get("status", PENDING),
            retry_count=int(raw.get("retry_count", 0)),
            error_message=raw.get("error_message"),
        )


class OfflineRequestQueue:
    """Read-modify-write over the stored list; one writer per tab."""

    def __init__(self, storage: StorageArea):
        self.storage = storage

    def _load(self) -> List[QueuedRequest]:
        raw = loads(self.storage.get_item(OFFLINE_QUEUE_KEY)) or []
        entries = []
        for item in raw:
            try:
                entries.append(QueuedRequest.from_dict(item))
            except (KeyError, TypeError, ValueError):
                logger.warning("Dropping unreadable offline queue entry")
        return entries

    def _save(self, entries: List[QueuedRequest]) -> None:
        if entries:
            self.storage.set_item(OFFLINE_QUEUE_KEY, dumps([asdict(entry) for entry in entries]))
        else:
            self.storage.remove_item(OFFLINE_QUEUE_KEY)

    def enqueue(self, body: Dict[str, Any]) -> QueuedRequest:
        entry = QueuedRequest(body=dict(body))
        self._save(self._load() + [entry])
        logger.info("Request saved offline", extra={"queued_id": entry.id, "request_type": entry.request_type})
        return entry

    def entries(self) -> List[QueuedRequest]:
        return self._load()

    def pending(self) -> List[QueuedRequest]:
        return [entry for entry in self._load() if entry.status == PENDING]

    def failed(self) -> List[QueuedRequest]:
        return [entry for entry in self._load() if entry.status == FAILED]

    def update(self, entry: QueuedRequest) -> None:
        self._save([entry if stored.id == entry.id else stored for stored in self._load()])

    def remove(self, entry_id: str) -> None:
        self._save([stored for stored in self._load() if stored.id != entry_id])

    def requeue_failed(self) -> int:
        """Give every failed entry a fresh set of retries."""
        entries = self._load()
        count = 0
        for entry in entries:
            if entry.status == FAILED:
                entry.status, entry.retry_count, entry.error_message = PENDING, 0, None
                count += 1
        self._save(entries)
        return count
