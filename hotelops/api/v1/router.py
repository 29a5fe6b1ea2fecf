# --- File: hotelops/api/v1/router.py ---
"""
API v1 Router - Main Entry Point
Aggregates all v1 API endpoints for the hotel operations service
"""
from fastapi import APIRouter

from hotelops.api.v1 import frontdesk, guest, staff

router = APIRouter(
    responses={
        400: {"description": "Bad Request"},
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
        409: {"description": "Conflict"},
        422: {"description": "Validation Error"},
        429: {"description": "Too Many Requests"},
        500: {"description": "Internal Server Error"},
    }
)

router.include_router(guest.router)
router.include_router(staff.router)
router.include_router(frontdesk.router)
