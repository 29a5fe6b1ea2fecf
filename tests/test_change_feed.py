# --- File: tests/test_change_feed.py ---
import asyncio

from hotelops.core.realtime import ChangeFeedBroker, session_channel, tenant_channel


async def test_publish_reaches_channel_subscribers_only():
    broker = ChangeFeedBroker()
    mine = broker.subscribe(session_channel("s-1"))
    other = broker.subscribe(session_channel("s-2"))

    delivered = broker.publish(session_channel("s-1"), {"type": "request.updated", "request": {"id": "r-1"}})
    event = await mine.get(timeout=1)

    assert delivered == 1
    assert event["request"]["id"] == "r-1"
    assert await other.get(timeout=0.05) is None


async def test_publish_from_worker_thread():
    broker = ChangeFeedBroker()
    subscription = broker.subscribe(tenant_channel("t-1"))

    await asyncio.to_thread(broker.publish, tenant_channel("t-1"), {"type": "request.created"})

    assert (await subscription.get(timeout=1))["type"] == "request.created"


async def test_unsubscribe_drops_the_channel():
    broker = ChangeFeedBroker()
    subscription = broker.subscribe(tenant_channel("t-1"))

    broker.unsubscribe(subscription)

    assert broker.subscriber_count(tenant_channel("t-1")) == 0
    assert broker.publish(tenant_channel("t-1"), {"type": "request.created"}) == 0


async def test_sse_stream_renders_events():
    broker = ChangeFeedBroker()
    stream = broker.stream_sse(session_channel("s-1"), keepalive=0.05)

    assert await stream.__anext__() == ": connected\n\n"
    broker.publish(session_channel("s-1"), {"type": "request.updated", "request": {"id": "r-1"}})
    frame = await stream.__anext__()
    await stream.aclose()

    assert frame.startswith("event: request.updated\ndata: ")
    assert broker.subscriber_count(session_channel("s-1")) == 0
