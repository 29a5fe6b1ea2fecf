# --- File: tests/test_service_requests.py ---
import re
from decimal import Decimal

import jwt
import pytest

from conftest import guest_headers, hours_from_now, staff_headers
from hotelops.core.realtime import ChangeFeedBroker
from hotelops.core.security import GuestPrincipal, create_staff_token
from hotelops.models import FolioCharge, NotificationOutbox, RequestMessage, ServiceRequest
from hotelops.schemas.enums import RequestStatus, SenderRole
from hotelops.schemas.service_request import ServiceRequestCreate
from hotelops.services.service_request import ServiceRequestService

REQUESTS_URL = "/api/v1/guest/requests"


def _create(client, session_body, request_type, request_data, **extra):
    body = {
        "sessionId": session_body["session"]["sessionId"],
        "requestType": request_type,
        "requestData": request_data,
        **extra,
    }
    return client.post(REQUESTS_URL, json=body, headers=guest_headers(session_body))


def _maintenance(client, guest_session, **extra):
    return _create(
        client,
        guest_session,
        "maintenance",
        {"issueType": "plumbing", "description": "leaking tap"},
        priority="urgent",
        **extra,
    )


def test_maintenance_request_is_created_pending_with_summary(client, db, guest_session):
    response = _maintenance(client, guest_session)

    assert response.status_code == 201
    created = response.json()["request"]
    assert re.fullmatch(r"SR-\d{8}-[A-Z0-9]{4}", created["trackingNumber"])

    request = db.query(ServiceRequest).one()
    assert request.id == created["requestId"]
    assert request.status == RequestStatus.PENDING
    assert request.priority.value == "urgent"
    assert "Plumbing" in request.notes
    assert "leaking tap" in request.notes
    assert request.assigned_team == "Maintenance"
    assert request.request_data == {"issueType": "plumbing", "description": "leaking tap"}

    message = db.query(RequestMessage).one()
    assert message.sender_role == SenderRole.GUEST
    assert message.message == "Plumbing: leaking tap"


def test_guest_can_read_request_and_session_list(client, guest_session):
    created = _maintenance(client, guest_session).json()["request"]
    headers = guest_headers(guest_session)
    session_id = guest_session["session"]["sessionId"]

    view = client.get(f"{REQUESTS_URL}/{created['requestId']}", headers=headers)
    assert view.status_code == 200
    assert view.json()["status"] == "pending"
    assert view.json()["roomNumber"] == "101"

    listing = client.get(f"/api/v1/guest/sessions/{session_id}/requests", headers=headers)
    assert [r["id"] for r in listing.json()] == [created["requestId"]]


def test_missing_payload_fields_fail_validation(client, db, guest_session):
    response = _create(client, guest_session, "maintenance", {"issueType": "plumbing"})

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert "description" in error["details"]["field_errors"]
    assert db.query(ServiceRequest).count() == 0


def test_priority_medium_maps_to_normal(client, db, guest_session):
    _create(client, guest_session, "housekeeping", {"items": ["towels"]}, priority="medium")

    assert db.query(ServiceRequest).one().priority.value == "normal"


def test_request_requires_credential(client, guest_session):
    body = {
        "sessionId": guest_session["session"]["sessionId"],
        "requestType": "concierge",
        "requestData": {"message": "Taxi at 7am"},
    }

    response = client.post(REQUESTS_URL, json=body)

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "SESSION_EXPIRED"


def test_request_for_another_session_is_refused(client, db, guest_session):
    body = {
        "sessionId": "not-my-session",
        "requestType": "concierge",
        "requestData": {"message": "Taxi at 7am"},
    }

    response = client.post(REQUESTS_URL, json=body, headers=guest_headers(guest_session))

    assert response.status_code == 401
    assert db.query(ServiceRequest).count() == 0


def test_credential_signed_with_another_key_is_refused(client, guest_session):
    claims = jwt.decode(guest_session["token"], options={"verify_signature": False})
    forged = jwt.encode(claims, "not-the-server-key-0123456789abcdef", algorithm="HS256")
    tampered = dict(guest_session, token=forged)

    response = _maintenance(client, tampered)

    assert response.status_code == 401


def test_sms_opt_in_queues_exactly_one_notification(client, db, guest_session):
    response = _maintenance(client, guest_session, smsEnabled=True, guestPhone="08012345678", guestName="Ada")

    assert response.status_code == 201
    outbox = db.query(NotificationOutbox).one()
    assert outbox.recipient == "+2348012345678"
    assert outbox.reference_id == response.json()["request"]["requestId"]
    assert response.json()["request"]["trackingNumber"] in outbox.body
    assert outbox.body.startswith("Grand Lagos Hotel:")


def test_unqueueable_sms_does_not_fail_the_request(client, db, guest_session):
    response = _maintenance(client, guest_session, smsEnabled=True, guestPhone="12")

    assert response.status_code == 201
    assert db.query(ServiceRequest).count() == 1
    assert db.query(NotificationOutbox).count() == 0


def test_unexpected_sms_error_does_not_fail_the_request(client, db, guest_session, monkeypatch):
    def broken_normalize(phone):
        raise RuntimeError("provider down")

    monkeypatch.setattr(
        "hotelops.services.notification.notification_service.normalize_phone_number",
        broken_normalize,
    )

    response = _maintenance(client, guest_session, smsEnabled=True, guestPhone="08012345678")

    assert response.status_code == 201
    assert db.query(ServiceRequest).count() == 1
    assert db.query(NotificationOutbox).count() == 0


def test_create_result_is_a_success_carrying_the_tracking_number(db, guest_session):
    principal = GuestPrincipal(
        session_id=guest_session["session"]["sessionId"],
        tenant_id=guest_session["session"]["tenantId"],
        qr_code_id=guest_session["session"]["qrCodeId"],
        expires_at=hours_from_now(2),
    )
    body = ServiceRequestCreate(
        session_id=principal.session_id,
        request_type="housekeeping",
        request_data={"items": ["towels"]},
    )

    result = ServiceRequestService(db, change_feed=ChangeFeedBroker()).create_request(principal, body)

    assert result.is_success
    created = result.unwrap().request
    assert db.query(ServiceRequest).one().tracking_number == created.tracking_number


def test_room_service_total_is_charged_to_open_folio(client, db, hotel, guest_session):
    response = _create(
        client,
        guest_session,
        "room-service",
        {
            "items": [{"name": "Jollof rice", "quantity": 2, "price": "2250.00"}],
            "totalAmount": "4500.00",
        },
    )

    assert response.status_code == 201
    request = db.query(ServiceRequest).one()
    assert request.request_type == "room_service"
    assert request.assigned_team == "Kitchen"
    charge = db.query(FolioCharge).one()
    assert charge.folio_id == hotel.folio_id
    assert Decimal(charge.amount) == Decimal("4500.00")
    assert charge.reference_id == request.id


def test_room_service_without_total_posts_no_charge(client, db, guest_session):
    _create(client, guest_session, "room_service", {"items": [{"name": "Tea"}]})

    assert db.query(FolioCharge).count() == 0


def test_unknown_request_type_uses_generic_payload(client, db, guest_session):
    response = _create(client, guest_session, "spa-booking", {"message": "Massage at 5pm", "duration": 60})

    assert response.status_code == 201
    request = db.query(ServiceRequest).one()
    assert request.request_type == "spa_booking"
    assert request.notes == "Massage at 5pm"
    assert request.assigned_team == "Front Desk"


def test_guest_message_is_added_to_thread(client, db, guest_session):
    request_id = _maintenance(client, guest_session).json()["request"]["requestId"]

    response = client.post(
        f"{REQUESTS_URL}/{request_id}/messages",
        json={"message": "Still dripping"},
        headers=guest_headers(guest_session),
    )

    assert response.status_code == 201
    assert response.json()["senderRole"] == "guest"
    assert db.query(RequestMessage).count() == 2


# ---------------------------------------------------------------------------
# Staff side
# ---------------------------------------------------------------------------
@pytest.fixture
def request_id(client, guest_session):
    return _maintenance(client, guest_session).json()["request"]["requestId"]


def _status(client, staff_token, request_id, status, note=None):
    body = {"status": status}
    if note:
        body["note"] = note
    return client.post(
        f"/api/v1/staff/requests/{request_id}/status",
        json=body,
        headers=staff_headers(staff_token),
    )


def test_staff_lists_requests_by_status(client, staff_token, request_id):
    headers = staff_headers(staff_token)

    pending = client.get("/api/v1/staff/requests", params={"status": "pending"}, headers=headers)
    completed = client.get("/api/v1/staff/requests", params={"status": "completed"}, headers=headers)

    assert [r["id"] for r in pending.json()] == [request_id]
    assert completed.json() == []


def test_staff_of_another_hotel_sees_nothing(client, request_id):
    other = create_staff_token("staff-900", "another-tenant")

    response = client.get("/api/v1/staff/requests", headers=staff_headers(other))
    assert response.json() == []

    update = _status(client, other, request_id, "in_progress")
    assert update.status_code == 404


def test_staff_endpoints_require_a_staff_token(client, guest_session, request_id):
    response = client.get("/api/v1/staff/requests", headers=guest_headers(guest_session))

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTHENTICATION_FAILED"


def test_status_moves_forward_only(client, db, staff_token, request_id):
    assert _status(client, staff_token, request_id, "in_progress").status_code == 200

    backwards = _status(client, staff_token, request_id, "acknowledged")
    assert backwards.status_code == 409
    assert backwards.json()["error"]["code"] == "INVALID_STATUS_TRANSITION"

    completed = _status(client, staff_token, request_id, "completed")
    assert completed.status_code == 200
    assert completed.json()["completedAt"] is not None

    assert _status(client, staff_token, request_id, "cancelled").status_code == 409

    db.expire_all()
    request = db.get(ServiceRequest, request_id)
    assert request.status == RequestStatus.COMPLETED
    assert request.completed_at is not None


def test_cancel_from_any_open_status(client, staff_token, request_id):
    response = _status(client, staff_token, request_id, "cancelled")

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["completedAt"] is None


def test_status_change_leaves_a_staff_message(client, staff_token, request_id):
    _status(client, staff_token, request_id, "in_progress")

    messages = client.get(
        f"/api/v1/staff/requests/{request_id}/messages",
        headers=staff_headers(staff_token),
    ).json()

    assert [m["senderRole"] for m in messages] == ["guest", "staff"]
    assert messages[-1]["message"] == "Status updated to in_progress"
    assert messages[-1]["payload"] == {"status": "in_progress"}


def test_assign_acknowledges_pending_request(client, staff_token, request_id):
    response = client.post(
        f"/api/v1/staff/requests/{request_id}/assign",
        json={"assignedTo": "tech-7"},
        headers=staff_headers(staff_token),
    )

    assert response.status_code == 200
    assert response.json()["assignedTo"] == "tech-7"
    assert response.json()["status"] == "acknowledged"


def test_respond_with_status(client, guest_session, staff_token, request_id):
    response = client.post(
        f"/api/v1/staff/requests/{request_id}/respond",
        json={"message": "Plumber on the way", "status": "in_progress"},
        headers=staff_headers(staff_token),
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Plumber on the way"
    view = client.get(f"{REQUESTS_URL}/{request_id}", headers=guest_headers(guest_session)).json()
    assert view["status"] == "in_progress"
