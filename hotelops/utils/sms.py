# --- File: hotelops/utils/sms.py ---
"""
Guest phone number normalization and confirmation text for SMS opt-in.

Nothing here sends messages: the notification service queues the text in
the outbox and an external worker delivers it.
"""
from __future__ import annotations

import re

# Local Nigerian mobile forms: 0803..., 234803..., +234803...
NIGERIAN_MOBILE_PATTERN = re.compile(r'^(\+234|234|0)?[789][01]\d{8}$')
E164_PATTERN = re.compile(r'^\+[1-9]\d{6,14}$')

MAX_SMS_LENGTH_GSM = 160


class SMSValidationError(ValueError):
    """Phone number cannot be normalized to E.164."""


def normalize_phone_number(phone: str) -> str:
    """
    Return the E.164 form of `phone`.

    Nigerian mobile numbers are accepted in local form; anything else must
    already carry a leading `+` and country code.
    """
    cleaned = re.sub(r'[^\d+]', '', (phone or '').strip())
    if not cleaned:
        raise SMSValidationError("Phone number cannot be empty")

    if NIGERIAN_MOBILE_PATTERN.match(cleaned):
        national = re.sub(r'^(\+234|234|0)', '', cleaned)
        return f'+234{national}'

    if E164_PATTERN.match(cleaned):
        return cleaned
    raise SMSValidationError(f"Invalid phone number format: {phone}")


def build_request_confirmation(hotel_name: str, tracking_number: str, summary: str) -> str:
    """Single-segment confirmation text; the summary is cut to fit."""
    head = f"{hotel_name}: request {tracking_number} received. "
    room = MAX_SMS_LENGTH_GSM - len(head)
    if room <= 0:
        return head[:MAX_SMS_LENGTH_GSM]
    if len(summary) > room:
        summary = summary[: max(room - 3, 0)] + "..."
    return head + summary


__all__ = [
    "SMSValidationError",
    "normalize_phone_number",
    "build_request_confirmation",
    "MAX_SMS_LENGTH_GSM",
]
