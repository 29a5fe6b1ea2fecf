# --- File: tests/conftest.py ---
"""
Shared fixtures: an in-memory SQLite database (one connection via
StaticPool), the FastAPI app with its database, rate limiter and change
feed dependencies overridden, and a seeded hotel.

Environment is set before any hotelops import so the settings singleton
never points at a file database.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("JWT_SECRET_KEY", "hotelops-test-secret-key-0123456789abcdef")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hotelops.core.rate_limiting import MemoryRateLimiter, get_rate_limiter
from hotelops.core.realtime import ChangeFeedBroker, get_change_feed
from hotelops.core.security import StaffRole, create_staff_token
from hotelops.db.init_db import drop_db, init_db
from hotelops.db.session import get_db
from hotelops.main import create_app
from hotelops.models import (
    Folio,
    FolioCharge,
    FolioPayment,
    QRCode,
    Reservation,
    Room,
    Tenant,
    utcnow,
)
from hotelops.schemas.enums import FolioStatus, ReservationStatus, RoomStatus

QR_TOKEN = "room-101-a7f3c9"


@dataclass
class SeededHotel:
    tenant_id: str
    room_id: str
    room_number: str
    qr_code_id: str
    qr_token: str
    reservation_id: str
    folio_id: str


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    drop_db(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def rate_limiter():
    return MemoryRateLimiter()


@pytest.fixture
def change_feed():
    return ChangeFeedBroker()


@pytest.fixture
def app(session_factory, rate_limiter, change_feed):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_change_feed] = lambda: change_feed
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def asgi_transport(app):
    return httpx.ASGITransport(app=app)


@pytest.fixture
def hotel(db) -> SeededHotel:
    tenant = Tenant(hotel_name="Grand Lagos Hotel", front_desk_phone="+2348000000000")
    db.add(tenant)
    db.flush()

    room = Room(tenant_id=tenant.id, room_number="101", status=RoomStatus.OCCUPIED)
    db.add(room)
    db.flush()

    qr_code = QRCode(
        tenant_id=tenant.id,
        room_id=room.id,
        qr_token=QR_TOKEN,
        label="Room 101",
        services=["maintenance", "housekeeping", "room_service"],
        is_active=True,
    )
    reservation = Reservation(
        tenant_id=tenant.id,
        room_id=room.id,
        guest_name="Ada Obi",
        status=ReservationStatus.CHECKED_IN,
        check_in_date=date.today() - timedelta(days=2),
        check_out_date=date.today(),
    )
    db.add_all([qr_code, reservation])
    db.flush()

    folio = Folio(tenant_id=tenant.id, reservation_id=reservation.id, status=FolioStatus.OPEN)
    db.add(folio)
    db.commit()

    return SeededHotel(
        tenant_id=tenant.id,
        room_id=room.id,
        room_number=room.room_number,
        qr_code_id=qr_code.id,
        qr_token=qr_code.qr_token,
        reservation_id=reservation.id,
        folio_id=folio.id,
    )


@pytest.fixture
def staff_token(hotel) -> str:
    return create_staff_token("staff-001", hotel.tenant_id, StaffRole.FRONT_DESK)


@pytest.fixture
def guest_session(client, hotel) -> dict:
    """Body of a successful session validation for the seeded room."""
    response = client.post(
        "/api/v1/guest/session/validate",
        json={"qrToken": hotel.qr_token, "deviceInfo": {"userAgent": "pytest", "language": "en-GB"}},
    )
    assert response.status_code == 200, response.text
    return response.json()


def guest_headers(session_body: dict) -> dict:
    return {"Authorization": f"Bearer {session_body['token']}"}


def staff_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def add_qr_code(db, hotel: SeededHotel, token: str, **fields) -> QRCode:
    qr_code = QRCode(
        tenant_id=hotel.tenant_id,
        room_id=hotel.room_id,
        qr_token=token,
        services=["maintenance"],
        **fields,
    )
    db.add(qr_code)
    db.commit()
    return qr_code


def add_charge(db, hotel: SeededHotel, amount: str, description: str = "Room night") -> None:
    db.add(
        FolioCharge(
            tenant_id=hotel.tenant_id,
            folio_id=hotel.folio_id,
            charge_type="room",
            description=description,
            amount=Decimal(amount),
        )
    )
    db.commit()


def add_payment(db, hotel: SeededHotel, amount: str, method: Optional[str] = "card") -> None:
    db.add(
        FolioPayment(
            tenant_id=hotel.tenant_id,
            folio_id=hotel.folio_id,
            amount=Decimal(amount),
            method=method,
        )
    )
    db.commit()


def hours_from_now(hours: float):
    return utcnow() + timedelta(hours=hours)
