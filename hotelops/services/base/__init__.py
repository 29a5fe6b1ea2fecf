# --- File: hotelops/services/base/__init__.py ---
from hotelops.services.base.service_result import ServiceError, ServiceResult
from hotelops.services.base.base_service import BaseService

__all__ = ["ServiceError", "ServiceResult", "BaseService"]
