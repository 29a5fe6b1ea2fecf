# --- File: tests/test_client_offline.py ---
import asyncio
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from hotelops.client import (
    GuestSessionContext,
    OfflineRequestQueue,
    OfflineSync,
    PortalAPI,
    QueuedRequest,
    RequestSubmitter,
    SubmittedRequest,
    TabScopedStorage,
)
from hotelops.client.errors import SubmissionFailed, SubmissionTimeout
from hotelops.client.storage import PersistentStorage


class HotelServer:
    """MockTransport handler answering /health and guest request creation."""

    def __init__(self):
        self.online = True
        self.posts_unreachable = False
        self.failures = 0
        self.posted = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if not self.online:
            raise httpx.ConnectError("network unreachable", request=request)
        if request.url.path == "/health":
            return httpx.Response(200, json={"status": "healthy"})
        if self.posts_unreachable:
            raise httpx.ConnectError("connection reset", request=request)
        if self.failures:
            self.failures -= 1
            return httpx.Response(500, json={"error": "Server error"})

        self.posted.append(json.loads(request.content))
        number = len(self.posted)
        return httpx.Response(
            201,
            json={
                "success": True,
                "request": {
                    "requestId": f"r-{number}",
                    "trackingNumber": f"SR-20260101-000{number}",
                    "createdAt": "2026-01-01T10:00:00Z",
                },
            },
        )


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def server():
    return HotelServer()


@pytest.fixture
async def api(server):
    api = PortalAPI(base_url="http://testserver", transport=httpx.MockTransport(server))
    yield api
    await api.aclose()


@pytest.fixture
def storage():
    return TabScopedStorage()


@pytest.fixture
def submitter(api, storage):
    expires_at = datetime.now(timezone.utc) + timedelta(hours=1)
    GuestSessionContext.persist(storage, "jwt", {"sessionId": "s-1", "expiresAt": expires_at.isoformat()})
    return RequestSubmitter(api, GuestSessionContext.load(storage), offline_queue=OfflineRequestQueue(storage))


async def _queue_towels(submitter, server):
    server.online = False
    queued = await submitter.submit_or_queue("housekeeping", {"items": ["towels"]})
    server.online = True
    return queued


# ---------------------------------------------------------------------------
# Queueing
# ---------------------------------------------------------------------------
async def test_request_is_saved_offline_when_hotel_is_unreachable(submitter, server, storage):
    server.online = False

    queued = await submitter.submit_or_queue("housekeeping", {"items": ["towels"]})

    assert isinstance(queued, QueuedRequest)
    assert queued.status == "pending"
    assert queued.body["sessionId"] == "s-1"
    assert server.posted == []
    # A reload of the same tab sees the saved request
    assert [entry.id for entry in OfflineRequestQueue(storage).pending()] == [queued.id]


async def test_connection_lost_while_sending_queues_the_request(submitter, server):
    server.posts_unreachable = True

    queued = await submitter.submit_or_queue("concierge", {"message": "Taxi at 7"})

    assert isinstance(queued, QueuedRequest)
    assert len(submitter.offline_queue.pending()) == 1


async def test_online_submission_is_sent_directly(submitter, server):
    submitted = await submitter.submit_or_queue("concierge", {"message": "Taxi at 7"})

    assert isinstance(submitted, SubmittedRequest)
    assert submitted.tracking_number == "SR-20260101-0001"
    assert submitter.offline_queue.entries() == []


async def test_server_errors_are_not_queued(submitter, server):
    server.failures = 1

    with pytest.raises(SubmissionFailed) as exc:
        await submitter.submit_or_queue("concierge", {"message": "Taxi at 7"})

    assert exc.value.status_code == 500
    assert submitter.offline_queue.entries() == []


async def test_slow_server_is_not_queued(storage):
    async def handler(request):
        if request.url.path == "/health":
            return httpx.Response(200, json={"status": "healthy"})
        await asyncio.sleep(1)
        return httpx.Response(201, json={})

    api = PortalAPI(base_url="http://testserver", transport=httpx.MockTransport(handler))
    expires_at = datetime.now(timezone.utc) + timedelta(hours=1)
    GuestSessionContext.persist(storage, "jwt", {"sessionId": "s-1", "expiresAt": expires_at.isoformat()})
    submitter = RequestSubmitter(
        api, GuestSessionContext.load(storage), timeout=0.05, offline_queue=OfflineRequestQueue(storage)
    )
    try:
        with pytest.raises(SubmissionTimeout):
            await submitter.submit_or_queue("concierge", {"message": "Taxi"})
    finally:
        await api.aclose()

    assert submitter.offline_queue.entries() == []


def test_offline_queue_never_reaches_persistent_storage(tmp_path):
    queue = OfflineRequestQueue(PersistentStorage(tmp_path / "prefs.json"))

    with pytest.raises(ValueError):
        queue.enqueue({"requestType": "concierge", "guestPhone": "+2348012345678"})


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------
async def test_queued_requests_sync_once_back_online(submitter, server):
    await _queue_towels(submitter, server)
    server.online = False
    await submitter.submit_or_queue("concierge", {"message": "Taxi at 7"})
    server.online = True
    sleep = SleepRecorder()

    result = await OfflineSync(submitter, sleep=sleep).sync()

    assert result.online
    assert [request.request_id for request in result.synced] == ["r-1", "r-2"]
    assert [body["requestType"] for body in server.posted] == ["housekeeping", "concierge"]
    assert submitter.offline_queue.entries() == []
    assert sleep.delays == []


async def test_sync_while_still_offline_keeps_the_queue(submitter, server):
    await _queue_towels(submitter, server)
    server.online = False
    sleep = SleepRecorder()

    result = await OfflineSync(submitter, sleep=sleep).sync()

    assert not result.online
    assert result.remaining == 1
    assert sleep.delays == []
    assert submitter.offline_queue.pending()[0].retry_count == 0


async def test_failed_sync_backs_off_then_succeeds(submitter, server):
    await _queue_towels(submitter, server)
    server.failures = 2
    sleep = SleepRecorder()

    result = await OfflineSync(submitter, max_retries=3, base_delay=1.0, sleep=sleep).sync()

    assert sleep.delays == [1.0, 2.0]
    assert len(result.synced) == 1
    assert result.failed == []
    assert submitter.offline_queue.entries() == []


async def test_sync_gives_up_after_max_retries_and_keeps_the_request(submitter, server):
    await _queue_towels(submitter, server)
    server.failures = 100
    sleep = SleepRecorder()
    sync = OfflineSync(submitter, max_retries=3, base_delay=1.0, sleep=sleep)

    result = await sync.sync()

    assert sleep.delays == [1.0, 2.0]
    assert result.synced == []
    assert len(result.failed) == 1
    stored = submitter.offline_queue.entries()[0]
    assert stored.status == "failed"
    assert stored.retry_count == 3
    assert stored.error_message == SubmissionFailed.default_message

    server.failures = 0
    retried = await sync.retry_failed()

    assert len(retried.synced) == 1
    assert submitter.offline_queue.entries() == []


async def test_backoff_doubles_up_to_the_cap(submitter):
    sync = OfflineSync(submitter, base_delay=1.0, max_delay=5.0)

    assert [sync.backoff(attempt) for attempt in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]


async def test_background_sync_sends_after_reconnect(submitter, server):
    await _queue_towels(submitter, server)
    server.online = False
    sync = OfflineSync(submitter, interval=0.01, base_delay=0.01)

    sync.start()
    await asyncio.sleep(0.05)
    assert len(submitter.offline_queue.pending()) == 1

    server.online = True
    await asyncio.sleep(0.1)
    await sync.close()

    assert submitter.offline_queue.entries() == []
    assert len(server.posted) == 1
