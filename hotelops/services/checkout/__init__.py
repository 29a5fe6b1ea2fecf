# --- File: hotelops/services/checkout/__init__.py ---
from hotelops.services.checkout.checkout_service import CheckoutService

__all__ = ["CheckoutService"]
