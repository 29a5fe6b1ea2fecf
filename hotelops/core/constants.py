# --- File: hotelops/core/constants.py ---
"""
Core application constants.

Values shared between the server routes and the client runtime.
"""
from __future__ import annotations

# API prefixes
API_V1_PREFIX: str = "/api/v1"

# Common HTTP header names
HEADER_REQUEST_ID: str = "X-Request-ID"
HEADER_TENANT_ID: str = "X-Tenant-ID"

# Guest routes
GUEST_QR_ROUTE: str = "/guest/qr"
SHORT_LINK_PREFIX: str = "/q/"

# Tab-scoped storage keys for the guest portal
SESSION_JWT_KEY: str = "qr_session_jwt"
SESSION_DATA_KEY: str = "qr_session_data"
OFFLINE_QUEUE_KEY: str = "qr_offline_requests"

# QR tokens: 6-128 chars of letters, digits and hyphens
QR_TOKEN_PATTERN: str = r"[A-Za-z0-9-]{6,128}"

# Short codes issued by the URL shortener
SHORT_CODE_PATTERN: str = r"[A-Za-z0-9]{4,32}"
