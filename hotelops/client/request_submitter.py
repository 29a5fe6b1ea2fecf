# --- File: hotelops/client/request_submitter.py ---
"""
Service request submission on behalf of a validated guest session.

`submit` sends a request now. With an offline queue attached,
`submit_or_queue` saves the request instead when the hotel cannot be
reached, and `OfflineSync` replays saved requests once the API answers its
health check again.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from hotelops.client.api import PortalAPI
from hotelops.client.errors import (
    PortalError,
    SessionExpired,
    SubmissionFailed,
    SubmissionTimeout,
    TransportFailure,
    ValidationFailed,
)
from hotelops.client.offline_queue import FAILED, OfflineRequestQueue, QueuedRequest
from hotelops.client.session_context import GuestSessionContext
from hotelops.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SubmittedRequest:
    request_id: str
    tracking_number: str
    created_at: datetime


def _unreachable(error: SubmissionFailed) -> bool:
    """Network failure with no HTTP answer at all."""
    return error.status_code is None and isinstance(error.__cause__, TransportFailure)


class RequestSubmitter:
    def __init__(
        self,
        api: PortalAPI,
        context: GuestSessionContext,
        timeout: Optional[float] = None,
        offline_queue: Optional[OfflineRequestQueue] = None,
    ):
        self.api = api
        self.context = context
        self.timeout = timeout if timeout is not None else api.settings.REQUEST_SUBMISSION_TIMEOUT
        self.offline_queue = offline_queue

    def build_body(
        self,
        request_type: str,
        request_data: Dict[str, Any],
        priority: str = "normal",
        sms_phone: Optional[str] = None,
        guest_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        return {
            "sessionId": self.context.session_id,
            "requestType": request_type,
            "requestData": request_data,
            "priority": priority,
            "smsEnabled": bool(sms_phone),
            "guestPhone": sms_phone,
            "guestName": guest_name,
        }

    async def submit(
        self,
        request_type: str,
        request_data: Dict[str, Any],
        priority: str = "normal",
        sms_phone: Optional[str] = None,
        guest_name: Optional[str] = None,
    ) -> SubmittedRequest:
        """
        Create one service request. A timeout does not mean the request was
        not stored; retrying may produce a duplicate.

        Raises:
            SessionExpired: no usable credential, or the server refused it
            ValidationFailed: required payload fields are missing
            SubmissionTimeout: no answer within the bound
            SubmissionFailed: any other failure
        """
        self.context.require_credential()
        return await self.send(self.build_body(request_type, request_data, priority, sms_phone, guest_name))

    async def submit_or_queue(
        self,
        request_type: str,
        request_data: Dict[str, Any],
        priority: str = "normal",
        sms_phone: Optional[str] = None,
        guest_name: Optional[str] = None,
    ) -> Union[SubmittedRequest, QueuedRequest]:
        """
        Like `submit`, but a request that cannot reach the hotel is saved to
        the offline queue and returned as a QueuedRequest.

        Only a failed health check or a connection error queues; a timeout
        still raises, because the server may already have stored the request.
        """
        if self.offline_queue is None:
            raise RuntimeError("No offline queue attached")
        self.context.require_credential()
        body = self.build_body(request_type, request_data, priority, sms_phone, guest_name)

        if not await self.api.health_check():
            return self.offline_queue.enqueue(body)
        try:
            return await self.send(body)
        except SubmissionFailed as e:
            if not _unreachable(e):
                raise
            return self.offline_queue.enqueue(body)

    async def send(self, body: Dict[str, Any]) -> SubmittedRequest:
        try:
            response = await asyncio.wait_for(
                self.api.create_request(self.context, body),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning("Request submission timed out", extra={"request_type": body.get("requestType")})
            raise SubmissionTimeout() from e
        except TransportFailure as e:
            raise SubmissionFailed(status_code=e.status_code) from e

        created = response.get("request") or {}
        try:
            return SubmittedRequest(
                request_id=created["requestId"],
                tracking_number=created["trackingNumber"],
                created_at=datetime.fromisoformat(created["createdAt"].replace("Z", "+00:00")),
            )
        except (KeyError, AttributeError, ValueError) as e:
            raise SubmissionFailed() from e


@dataclass
class SyncResult:
    online: bool
    synced: List[SubmittedRequest] = field(default_factory=list)
    failed: List[QueuedRequest] = field(default_factory=list)
    remaining: int = 0


class OfflineSync:
    """
    Replays the offline queue through a RequestSubmitter.

    Each round sends every pending entry once. An entry that fails again
    uses one retry; after `max_retries` it is marked failed and kept in the
    queue until `retry_failed` is called. Rounds are spaced with
    exponential backoff. `start()` checks connectivity every `interval`
    seconds and syncs whenever entries are waiting.
    """

    def __init__(
        self,
        submitter: RequestSubmitter,
        max_retries: Optional[int] = None,
        base_delay: Optional[float] = None,
        max_delay: Optional[float] = None,
        interval: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if submitter.offline_queue is None:
            raise ValueError("Submitter has no offline queue")
        settings = submitter.api.settings
        self.submitter = submitter
        self.queue = submitter.offline_queue
        self.max_retries = max_retries if max_retries is not None else settings.OFFLINE_SYNC_MAX_RETRIES
        self.base_delay = base_delay if base_delay is not None else settings.OFFLINE_SYNC_BASE_DELAY
        self.max_delay = max_delay if max_delay is not None else settings.OFFLINE_SYNC_MAX_DELAY
        self.interval = interval if interval is not None else settings.OFFLINE_SYNC_INTERVAL
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    def backoff(self, attempt: int) -> float:
        return min(self.base_delay * (2 ** attempt), self.max_delay)

    async def sync_once(self) -> SyncResult:
        async with self._lock:
            if not await self.submitter.api.health_check():
                return SyncResult(online=False, remaining=len(self.queue.pending()))

            result = SyncResult(online=True)
            for entry in self.queue.pending():
                try:
                    submitted = await self.submitter.send(entry.body)
                except (SessionExpired, ValidationFailed) as e:
                    # Replaying cannot fix these
                    entry.status, entry.error_message = FAILED, e.message
                    self.queue.update(entry)
                    result.failed.append(entry)
                    continue
                except PortalError as e:
                    entry.retry_count += 1
                    entry.error_message = e.message
                    if entry.retry_count >= self.max_retries:
                        entry.status = FAILED
                        result.failed.append(entry)
                    self.queue.update(entry)
                    continue

                self.queue.remove(entry.id)
                result.synced.append(submitted)
                logger.info(
                    "Offline request synced",
                    extra={"queued_id": entry.id, "tracking_number": submitted.tracking_number},
                )

            result.remaining = len(self.queue.pending())
            if result.failed:
                logger.warning(f"{len(result.failed)} offline requests could not be synced")
            return result

    async def sync(self) -> SyncResult:
        """Run rounds until nothing is pending or the API is unreachable."""
        total = SyncResult(online=True)
        attempt = 0
        while True:
            result = await self.sync_once()
            total.online = result.online
            total.synced.extend(result.synced)
            total.failed.extend(result.failed)
            total.remaining = result.remaining
            if not result.online or result.remaining == 0:
                return total
            await self._sleep(self.backoff(attempt))
            attempt += 1

    async def retry_failed(self) -> SyncResult:
        requeued = self.queue.requeue_failed()
        logger.info(f"Retrying {requeued} failed offline requests")
        return await self.sync()

    def start(self) -> None:
        if self._closed:
            raise RuntimeError("Offline sync already closed")
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._watch())

    async def _watch(self) -> None:
        while not self._closed:
            if self.queue.pending():
                try:
                    await self.sync()
                except Exception:
                    logger.exception("Offline sync round failed")
            await self._sleep(self.interval)

    async def close(self) -> None:
        self._closed = True
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
