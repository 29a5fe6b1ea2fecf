# --- File: hotelops/client/status_projector.py ---
"""
Request status projection for guest and staff views.

Two producers feed one `RequestStateSink`:

* the change feed (server-sent events), the primary update path;
* polling, a fallback that covers feed delivery gaps, on a strictly longer
  interval than the single-request poller.

Each view owns at most one poll task; starting again cancels the previous
one, and `close()` drops both producers. Results that arrive after close
are discarded.
"""

import asyncio
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

from hotelops.client.api import PortalAPI
from hotelops.client.errors import PortalError
from hotelops.client.session_context import GuestSessionContext
from hotelops.core.logging import get_logger
from hotelops.schemas.enums import TERMINAL_REQUEST_STATUSES, RequestStatus

logger = get_logger(__name__)

_UNKNOWN_RANK = -1

Snapshot = Dict[str, Any]
Listener = Callable[[Snapshot], None]


def is_terminal(status: Optional[str]) -> bool:
    return status in TERMINAL_REQUEST_STATUSES


def _rank(status: Optional[str]) -> int:
    try:
        return RequestStatus(status).rank
    except ValueError:
        return _UNKNOWN_RANK


class RequestStateSink:
    """
    Last-known snapshot per request id.

    A snapshot is dropped when it would move its request backwards: to a
    lower rank, or out of a terminal state.
    """

    def __init__(self):
        self._requests: Dict[str, Snapshot] = {}
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def apply(self, snapshot: Snapshot, source: str = "poll") -> bool:
        request_id = snapshot.get("id")
        if not request_id:
            return False

        current = self._requests.get(request_id)
        if current is not None and not self._advances(current.get("status"), snapshot.get("status")):
            logger.debug(
                f"Ignoring stale {source} snapshot",
                extra={"request_id": request_id, "status": snapshot.get("status")},
            )
            return False

        self._requests[request_id] = snapshot
        for listener in list(self._listeners):
            listener(snapshot)
        return True

    def apply_many(self, snapshots: List[Snapshot], source: str = "poll") -> int:
        return sum(1 for snapshot in snapshots if self.apply(snapshot, source))

    @staticmethod
    def _advances(current: Optional[str], incoming: Optional[str]) -> bool:
        if is_terminal(current):
            return incoming == current
        return _rank(incoming) >= _rank(current)

    def get(self, request_id: str) -> Optional[Snapshot]:
        return self._requests.get(request_id)

    def status_of(self, request_id: str) -> Optional[str]:
        snapshot = self._requests.get(request_id)
        return snapshot.get("status") if snapshot else None

    def all(self) -> List[Snapshot]:
        return list(self._requests.values())

    def __len__(self) -> int:
        return len(self._requests)


class _View:
    """Shared lifecycle for a view with one poll task."""

    def __init__(self, sink: RequestStateSink, interval: float):
        self.sink = sink
        self.interval = interval
        self._poll_task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    def _restart_poll(self) -> None:
        self._cancel(self._poll_task)
        self._poll_task = asyncio.create_task(self._poll_loop())

    @staticmethod
    def _cancel(task: Optional[asyncio.Task]) -> None:
        if task is not None and not task.done():
            task.cancel()

    async def _poll_loop(self) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        self._closed = True
        tasks = [task for task in self._tasks() if task is not None]
        for task in tasks:
            task.cancel()
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error(f"View task ended with {result!r}")

    def _tasks(self) -> List[Optional[asyncio.Task]]:
        return [self._poll_task]


class ActiveRequestView(_View):
    """
    Polls one request while it is non-terminal and stops for good once it
    reaches completed or cancelled.
    """

    def __init__(
        self,
        api: PortalAPI,
        context: GuestSessionContext,
        request_id: str,
        sink: Optional[RequestStateSink] = None,
        interval: Optional[float] = None,
    ):
        super().__init__(
            sink or RequestStateSink(),
            interval if interval is not None else api.settings.ACTIVE_REQUEST_POLL_INTERVAL,
        )
        self.api = api
        self.context = context
        self.request_id = request_id

    def start(self) -> None:
        if self._closed:
            raise RuntimeError("View already closed")
        if is_terminal(self.sink.status_of(self.request_id)):
            return
        self._restart_poll()

    async def refresh(self) -> Optional[Snapshot]:
        snapshot = await self.api.get_request(self.context, self.request_id)
        if self._closed:
            return None
        self.sink.apply(snapshot, source="poll")
        return snapshot

    async def _poll_loop(self) -> None:
        while not self._closed:
            try:
                await self.refresh()
            except PortalError as e:
                logger.warning(f"Request poll failed: {e.message}", extra={"request_id": self.request_id})
            except Exception:
                logger.exception("Request poll raised unexpectedly", extra={"request_id": self.request_id})
            if is_terminal(self.sink.status_of(self.request_id)):
                logger.debug("Request reached a terminal status; polling stopped", extra={"request_id": self.request_id})
                return
            await asyncio.sleep(self.interval)


class RequestListView(_View):
    """
    Change feed plus fallback polling over one list of requests.

    `fetch_list` returns the full list; `open_feed` returns a fresh event
    iterator each time it is called.
    """

    def __init__(
        self,
        fetch_list: Callable[[], Awaitable[List[Snapshot]]],
        open_feed: Callable[[], AsyncIterator[Dict[str, Any]]],
        sink: Optional[RequestStateSink] = None,
        interval: float = 30.0,
    ):
        super().__init__(sink or RequestStateSink(), interval)
        self._fetch_list = fetch_list
        self._open_feed = open_feed
        self._feed_task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._closed:
            raise RuntimeError("View already closed")
        self._cancel(self._feed_task)
        self._feed_task = asyncio.create_task(self._feed_loop())
        self._restart_poll()

    def _tasks(self) -> List[Optional[asyncio.Task]]:
        return [self._poll_task, self._feed_task]

    async def refresh(self) -> int:
        snapshots = await self._fetch_list()
        if self._closed:
            return 0
        return self.sink.apply_many(snapshots, source="poll")

    async def _poll_loop(self) -> None:
        while not self._closed:
            try:
                await self.refresh()
            except PortalError as e:
                logger.warning(f"Request list poll failed: {e.message}")
            except Exception:
                logger.exception("Request list poll raised unexpectedly")
            await asyncio.sleep(self.interval)

    async def _feed_loop(self) -> None:
        while not self._closed:
            try:
                async for event in self._open_feed():
                    if self._closed:
                        return
                    request = event.get("request")
                    if isinstance(request, dict):
                        self.sink.apply(request, source="feed")
            except PortalError as e:
                logger.warning(f"Change feed dropped: {e.message}")
            except Exception:
                logger.exception("Change feed raised unexpectedly")
            # Polling covers the gap until the feed reconnects
            await asyncio.sleep(self.interval)


def guest_request_list(
    api: PortalAPI,
    context: GuestSessionContext,
    sink: Optional[RequestStateSink] = None,
    interval: Optional[float] = None,
) -> RequestListView:
    return RequestListView(
        fetch_list=lambda: api.list_session_requests(context),
        open_feed=lambda: api.session_feed(context),
        sink=sink,
        interval=interval if interval is not None else api.settings.REQUEST_LIST_POLL_INTERVAL,
    )


def staff_request_list(
    api: PortalAPI,
    staff_token: str,
    statuses: Optional[List[str]] = None,
    sink: Optional[RequestStateSink] = None,
    interval: Optional[float] = None,
) -> RequestListView:
    return RequestListView(
        fetch_list=lambda: api.list_staff_requests(staff_token, statuses),
        open_feed=lambda: api.staff_feed(staff_token),
        sink=sink,
        interval=interval if interval is not None else api.settings.REQUEST_LIST_POLL_INTERVAL,
    )
