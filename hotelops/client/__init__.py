# --- File: hotelops/client/__init__.py ---
"""
Async client runtime for the guest portal and the front desk.
"""

from hotelops.client.api import PortalAPI, iter_sse_events
from hotelops.client.cache import QueryCache
from hotelops.client.checkout import AtomicCheckoutInvoker, BalanceValidator, CheckoutFlow, CheckoutOutcome
from hotelops.client.optimistic import OperationState, OptimisticMutationManager, OptimisticOperation
from hotelops.client.offline_queue import OfflineRequestQueue, QueuedRequest
from hotelops.client.request_submitter import OfflineSync, RequestSubmitter, SubmittedRequest, SyncResult
from hotelops.client.session_context import GuestSessionContext
from hotelops.client.session_issuer import SessionIssuer
from hotelops.client.status_projector import (
    ActiveRequestView,
    RequestListView,
    RequestStateSink,
    guest_request_list,
    staff_request_list,
)
from hotelops.client.storage import PersistentStorage, TabScopedStorage
from hotelops.client.token_resolver import ResolvedToken, TokenResolver

__all__ = [
    "PortalAPI",
    "iter_sse_events",
    "QueryCache",
    "AtomicCheckoutInvoker",
    "BalanceValidator",
    "CheckoutFlow",
    "CheckoutOutcome",
    "OperationState",
    "OptimisticMutationManager",
    "OptimisticOperation",
    "OfflineRequestQueue",
    "QueuedRequest",
    "OfflineSync",
    "RequestSubmitter",
    "SubmittedRequest",
    "SyncResult",
    "GuestSessionContext",
    "SessionIssuer",
    "ActiveRequestView",
    "RequestListView",
    "RequestStateSink",
    "guest_request_list",
    "staff_request_list",
    "PersistentStorage",
    "TabScopedStorage",
    "ResolvedToken",
    "TokenResolver",
]
