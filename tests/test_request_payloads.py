# --- File: tests/test_request_payloads.py ---
import pytest

from hotelops.core.exceptions import ValidationError
from hotelops.schemas.service_request import (
    PAYLOAD_TYPES,
    ConciergePayload,
    FeedbackPayload,
    GenericPayload,
    HousekeepingPayload,
    MaintenancePayload,
    RoomServicePayload,
    WifiSupportPayload,
    normalize_request_type,
    parse_request_payload,
    summarize_payload,
)
from hotelops.services.service_request import assigned_team_for


@pytest.mark.parametrize(
    "request_type, data, expected",
    [
        ("maintenance", {"issueType": "air_conditioning", "description": "Not cooling"}, "Air Conditioning: Not cooling"),
        ("maintenance", {"issueType": "plumbing", "issueTitle": "Shower", "description": "No hot water"}, "Shower: No hot water"),
        ("housekeeping", {"items": ["towels", "soap"], "specialInstructions": "after 2pm"}, "Housekeeping: towels, soap (after 2pm)"),
        ("room_service", {"items": [{"name": "Suya", "quantity": 2}], "totalAmount": "3000"}, "Room service: 2x Suya (total 3000)"),
        ("wifi_support", {"issue": "Cannot connect", "deviceType": "laptop"}, "WiFi support on laptop: Cannot connect"),
        ("concierge", {"message": "Book a taxi"}, "Concierge: Book a taxi"),
        ("feedback", {"rating": 5, "comment": "Lovely stay"}, "Feedback: 5/5 - Lovely stay"),
        ("laundry", {"message": "Two shirts"}, "Two shirts"),
    ],
)
def test_every_variant_has_a_summary(request_type, data, expected):
    assert summarize_payload(parse_request_payload(request_type, data)) == expected


def test_payload_lookup_covers_known_types():
    assert PAYLOAD_TYPES == {
        "maintenance": MaintenancePayload,
        "housekeeping": HousekeepingPayload,
        "room_service": RoomServicePayload,
        "wifi_support": WifiSupportPayload,
        "concierge": ConciergePayload,
        "feedback": FeedbackPayload,
    }
    assert isinstance(parse_request_payload("unknown", {"message": "hi"}), GenericPayload)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("wifi-request", "wifi_support"),
        ("digital-menu", "room_service"),
        ("Room-Service", "room_service"),
        ("front-desk-call", "concierge"),
        ("maintenance", "maintenance"),
        ("late-checkout", "late_checkout"),
    ],
)
def test_request_type_aliases(raw, expected):
    assert normalize_request_type(raw) == expected


def test_feedback_rating_is_bounded():
    with pytest.raises(ValidationError) as exc:
        parse_request_payload("feedback", {"rating": 9})

    assert "rating" in exc.value.details["field_errors"]


def test_summary_rejects_unknown_payload_objects():
    with pytest.raises(TypeError):
        summarize_payload(object())


def test_assigned_team_defaults_to_front_desk():
    assert assigned_team_for("maintenance") == "Maintenance"
    assert assigned_team_for("room_service") == "Kitchen"
    assert assigned_team_for("wifi_support") == "IT"
    assert assigned_team_for("spa") == "Front Desk"
