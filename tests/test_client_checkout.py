# --- File: tests/test_client_checkout.py ---
import copy
from decimal import Decimal

import httpx
import pytest

from conftest import add_charge, add_payment
from hotelops.client import CheckoutFlow, OperationState, OptimisticMutationManager, OptimisticOperation, PortalAPI, QueryCache
from hotelops.client.cache import BILLING, OVERVIEW, RESERVATION, ROOM, ROOM_STATUS
from hotelops.client.checkout import BalanceValidator, FolioBalance
from hotelops.client.errors import BalanceOutstanding, CheckoutRejected, TransportFailure


def _folio(balance: str) -> FolioBalance:
    return FolioBalance(
        folio_id="f-1",
        total_charges=Decimal("0"),
        total_payments=Decimal("0"),
        balance=Decimal(balance),
    )


def _seed_cache(reservation_id: str, room_id: str) -> QueryCache:
    cache = QueryCache()
    cache.set((RESERVATION, reservation_id), {"id": reservation_id, "status": "checked_in", "guest": {"name": "Ada"}})
    cache.set((ROOM, room_id), {"id": room_id, "status": "occupied"})
    cache.set((ROOM_STATUS, "board"), [{"id": room_id, "status": "occupied"}])
    cache.set((BILLING, reservation_id), {"balance": "0.00"})
    cache.set((OVERVIEW, "today"), {"occupied": 1})
    return cache


def _scripted_api(checkout_answer, balance="0.00") -> PortalAPI:
    """Folio lookups report `balance`; checkout answers with `checkout_answer`."""

    def handler(request: httpx.Request):
        if request.url.path.endswith("/folio"):
            return httpx.Response(
                200,
                json={
                    "folio_id": "f-1",
                    "reservation_id": "res-1",
                    "status": "open",
                    "total_charges": balance,
                    "total_payments": "0.00",
                    "balance": balance,
                },
            )
        if isinstance(checkout_answer, Exception):
            raise checkout_answer
        return httpx.Response(200, json=checkout_answer)

    return PortalAPI(base_url="http://testserver", transport=httpx.MockTransport(handler))


# ---------------------------------------------------------------------------
# Balance gate
# ---------------------------------------------------------------------------
@pytest.mark.parametrize("balance", ["0", "0.009", "0.01", "-500"])
def test_gate_allows_settled_and_credit_balances(balance):
    BalanceValidator(None, tolerance=Decimal("0.01")).evaluate(_folio(balance))


@pytest.mark.parametrize("balance", ["0.02", "120.50", "10000"])
def test_gate_blocks_outstanding_balance(balance):
    with pytest.raises(BalanceOutstanding) as exc:
        BalanceValidator(None, tolerance=Decimal("0.01")).evaluate(_folio(balance))

    assert exc.value.balance == Decimal(balance)
    assert f"{Decimal(balance):.2f}" in exc.value.message


# ---------------------------------------------------------------------------
# Optimistic operations
# ---------------------------------------------------------------------------
def test_rollback_restores_apply_time_snapshot_after_refetches():
    cache = QueryCache()
    cache.set(("reservation", "r-1"), {"status": "checked_in", "tags": ["vip"]})
    before = copy.deepcopy(cache.snapshot())

    def mutate(c):
        c.get(("reservation", "r-1"))["tags"].append("leaving")
        c.set(("reservation", "r-1"), {**c.get(("reservation", "r-1")), "status": "checked_out"})
        c.set(("room", "101"), {"status": "dirty"})

    operation = OptimisticOperation([("reservation", "r-1"), ("room", "101")], mutate)
    operation.apply(cache)
    for status in ("refetch-1", "refetch-2"):
        cache.set(("reservation", "r-1"), {"status": status})

    assert operation.rollback(cache) is True
    assert cache.snapshot() == before
    assert ("room", "101") not in cache
    assert operation.state is OperationState.ROLLED_BACK

    # Exactly one terminal transition
    cache.set(("reservation", "r-1"), {"status": "changed-later"})
    assert operation.rollback(cache) is False
    assert operation.commit() is False
    assert cache.get(("reservation", "r-1")) == {"status": "changed-later"}


def test_commit_is_final():
    cache = QueryCache()
    operation = OptimisticOperation([("k",)], lambda c: c.set(("k",), 1))
    operation.apply(cache)

    assert operation.commit() is True
    assert operation.rollback(cache) is False
    assert cache.get(("k",)) == 1


def test_unrelated_operations_do_not_interfere():
    cache = QueryCache()
    cache.set(("reservation", "a"), {"status": "checked_in"})
    cache.set(("reservation", "b"), {"status": "checked_in"})
    manager = OptimisticMutationManager(cache)

    first = manager.begin([("reservation", "a")], lambda c: c.set(("reservation", "a"), {"status": "checked_out"}))
    second = manager.begin([("reservation", "b")], lambda c: c.set(("reservation", "b"), {"status": "checked_out"}))

    assert manager.rollback(first.id) is True
    assert manager.commit(second.id) is True
    assert manager.rollback(second.id) is False
    assert cache.get(("reservation", "a")) == {"status": "checked_in"}
    assert cache.get(("reservation", "b")) == {"status": "checked_out"}
    assert manager.pending() == []


# ---------------------------------------------------------------------------
# Checkout flow
# ---------------------------------------------------------------------------
async def test_checkout_success_refreshes_dependents(asgi_transport, db, hotel, staff_token):
    add_charge(db, hotel, "300.00")
    add_payment(db, hotel, "300.00")
    api = PortalAPI(base_url="http://testserver", transport=asgi_transport)
    flow = CheckoutFlow(api, _seed_cache(hotel.reservation_id, hotel.room_id))

    try:
        outcome = await flow.checkout(staff_token, hotel.tenant_id, hotel.reservation_id, hotel.room_id)
    finally:
        await api.aclose()

    assert outcome.room_id == hotel.room_id
    assert outcome.message == "Guest checked out successfully"
    cache = flow.cache
    assert cache.get((ROOM, hotel.room_id))["status"] == "dirty"
    assert cache.get((RESERVATION, hotel.reservation_id))["status"] == "checked_out"
    for key in ((ROOM_STATUS, "board"), (BILLING, hotel.reservation_id), (OVERVIEW, "today"), (RESERVATION, hotel.reservation_id)):
        assert cache.is_stale(key)
    assert flow.manager.pending() == []
    assert cache.is_stale((ROOM, hotel.room_id))

    loads = []

    async def load_room():
        loads.append(hotel.room_id)
        return {"id": hotel.room_id, "status": "dirty", "roomNumber": "204"}

    room = await cache.fetch((ROOM, hotel.room_id), load_room)

    assert loads == [hotel.room_id]
    assert room["roomNumber"] == "204"
    assert not cache.is_stale((ROOM, hotel.room_id))


async def test_outstanding_balance_blocks_before_optimistic_apply(asgi_transport, db, hotel, staff_token):
    add_charge(db, hotel, "120.50")
    api = PortalAPI(base_url="http://testserver", transport=asgi_transport)
    cache = _seed_cache(hotel.reservation_id, hotel.room_id)
    before = copy.deepcopy(cache.snapshot())
    flow = CheckoutFlow(api, cache)

    try:
        with pytest.raises(BalanceOutstanding) as exc:
            await flow.checkout(staff_token, hotel.tenant_id, hotel.reservation_id, hotel.room_id)
    finally:
        await api.aclose()

    assert exc.value.message == "Outstanding balance of 120.50 must be settled before checkout"
    assert cache.snapshot() == before
    assert cache.stale_keys() == set()


async def test_server_rejection_rolls_back_and_shows_server_message():
    api = _scripted_api({"success": False, "folio_id": "f-1", "room_id": "room-1", "message": "Reservation is already checked out"})
    cache = _seed_cache("res-1", "room-1")
    before = copy.deepcopy(cache.snapshot())
    flow = CheckoutFlow(api, cache)

    try:
        with pytest.raises(CheckoutRejected) as exc:
            await flow.checkout("staff-token", "tenant-1", "res-1", "room-1")
    finally:
        await api.aclose()

    assert exc.value.message == "Reservation is already checked out"
    assert cache.snapshot() == before


async def test_thrown_call_reverts_cached_status_and_shows_thrown_message():
    api = _scripted_api(httpx.ConnectError("connection reset by peer"))
    cache = _seed_cache("res-1", "room-1")
    flow = CheckoutFlow(api, cache)

    try:
        with pytest.raises(TransportFailure) as exc:
            await flow.checkout("staff-token", "tenant-1", "res-1", "room-1")
    finally:
        await api.aclose()

    assert "connection reset by peer" in exc.value.message
    assert cache.get((RESERVATION, "res-1"))["status"] == "checked_in"
    assert cache.get((ROOM, "room-1"))["status"] == "occupied"
    # Outcome unknown: the restored entries are refetched before being trusted
    assert cache.is_stale((RESERVATION, "res-1"))


async def test_non_transport_exception_message_is_kept(monkeypatch):
    api = _scripted_api({"success": True})
    flow = CheckoutFlow(api, _seed_cache("res-1", "room-1"))

    async def explode(*args, **kwargs):
        raise RuntimeError("checkout procedure crashed")

    monkeypatch.setattr(api, "checkout", explode)
    try:
        with pytest.raises(TransportFailure) as exc:
            await flow.checkout("staff-token", "tenant-1", "res-1", "room-1")
    finally:
        await api.aclose()

    assert exc.value.message == "checkout procedure crashed"
    assert flow.cache.get((RESERVATION, "res-1"))["status"] == "checked_in"


async def test_final_balance_is_read_as_decimal():
    api = _scripted_api(
        {"success": True, "folio_id": "f-1", "room_id": "room-1", "message": "ok", "final_balance": "-500.00"}
    )
    flow = CheckoutFlow(api)

    try:
        outcome = await flow.checkout("staff-token", "tenant-1", "res-1")
    finally:
        await api.aclose()

    assert outcome.final_balance == Decimal("-500.00")
    assert flow.cache.get((ROOM, "room-1"))["status"] == "dirty"
