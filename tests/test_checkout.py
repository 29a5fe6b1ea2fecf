# --- File: tests/test_checkout.py ---
from decimal import Decimal

import pytest

from conftest import add_charge, add_payment, staff_headers
from hotelops.core.security import create_staff_token
from hotelops.models import Folio, Reservation, Room
from hotelops.schemas.enums import FolioStatus, ReservationStatus, RoomStatus
from hotelops.services.checkout import CheckoutService

CHECKOUT_URL = "/api/v1/frontdesk/checkout"


def _checkout(client, staff_token, hotel, tenant_id=None):
    return client.post(
        CHECKOUT_URL,
        json={"tenantId": tenant_id or hotel.tenant_id, "reservationId": hotel.reservation_id},
        headers=staff_headers(staff_token),
    )


def _states(db, hotel):
    db.expire_all()
    return (
        db.get(Reservation, hotel.reservation_id).status,
        db.get(Room, hotel.room_id).status,
        db.get(Folio, hotel.folio_id).status,
    )


def test_folio_summary_reports_balance(client, db, hotel, staff_token):
    add_charge(db, hotel, "150.00")
    add_payment(db, hotel, "29.50")

    response = client.get(
        f"/api/v1/frontdesk/reservations/{hotel.reservation_id}/folio",
        headers=staff_headers(staff_token),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["folio_id"] == hotel.folio_id
    assert Decimal(body["total_charges"]) == Decimal("150.00")
    assert Decimal(body["total_payments"]) == Decimal("29.50")
    assert Decimal(body["balance"]) == Decimal("120.50")


def test_settled_folio_checks_out_atomically(client, db, hotel, staff_token):
    add_charge(db, hotel, "300.00")
    add_payment(db, hotel, "300.00")

    response = _checkout(client, staff_token, hotel)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["folio_id"] == hotel.folio_id
    assert body["room_id"] == hotel.room_id
    assert body["message"] == "Guest checked out successfully"
    assert _states(db, hotel) == (ReservationStatus.CHECKED_OUT, RoomStatus.DIRTY, FolioStatus.CLOSED)
    assert db.get(Reservation, hotel.reservation_id).checked_out_at is not None


def test_outstanding_balance_rejects_and_changes_nothing(client, db, hotel, staff_token):
    add_charge(db, hotel, "120.50")

    response = _checkout(client, staff_token, hotel)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Outstanding balance of 120.50 must be settled before checkout"
    assert Decimal(body["final_balance"]) == Decimal("120.50")
    assert _states(db, hotel) == (ReservationStatus.CHECKED_IN, RoomStatus.OCCUPIED, FolioStatus.OPEN)


def test_balance_within_tolerance_is_allowed(client, db, hotel, staff_token):
    add_charge(db, hotel, "100.01")
    add_payment(db, hotel, "100.00")

    assert _checkout(client, staff_token, hotel).json()["success"] is True


def test_credit_balance_is_allowed(client, db, hotel, staff_token):
    add_payment(db, hotel, "500.00")

    body = _checkout(client, staff_token, hotel).json()

    assert body["success"] is True
    assert Decimal(body["final_balance"]) == Decimal("-500.00")


def test_second_checkout_is_rejected(client, db, hotel, staff_token):
    assert _checkout(client, staff_token, hotel).json()["success"] is True

    again = _checkout(client, staff_token, hotel).json()

    assert again["success"] is False
    assert again["message"] == "Reservation is already checked out"


def test_unknown_reservation_is_rejected(client, hotel, staff_token):
    response = client.post(
        CHECKOUT_URL,
        json={"tenantId": hotel.tenant_id, "reservationId": "missing"},
        headers=staff_headers(staff_token),
    )

    assert response.json() == {
        "success": False,
        "folio_id": None,
        "room_id": None,
        "message": "Reservation not found",
        "final_balance": None,
    }


def test_checkout_for_another_tenant_is_forbidden(client, db, hotel):
    other = create_staff_token("staff-900", "another-tenant")

    response = _checkout(client, other, hotel)

    assert response.status_code == 403
    assert _states(db, hotel)[0] == ReservationStatus.CHECKED_IN


def test_database_failure_rolls_back_and_raises(db, hotel, monkeypatch):
    service = CheckoutService(db)

    def boom(*args, **kwargs):
        raise RuntimeError("lock wait timeout")

    monkeypatch.setattr(service.rooms, "find_for_update", boom)

    with pytest.raises(RuntimeError, match="lock wait timeout"):
        service.checkout(hotel.tenant_id, hotel.reservation_id)

    assert _states(db, hotel) == (ReservationStatus.CHECKED_IN, RoomStatus.OCCUPIED, FolioStatus.OPEN)
