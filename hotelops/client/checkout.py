# --- File: hotelops/client/checkout.py ---
"""
Front desk checkout: client-side balance gate plus the optimistic call to
the atomic checkout endpoint.

    Idle -> OptimisticApplied -> Committed | RolledBack

A `{success: false}` answer and a raised error share the rollback path;
they differ only in the message shown to staff.
"""

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from hotelops.client.api import PortalAPI
from hotelops.client.cache import BILLING, OVERVIEW, RESERVATION, ROOM, ROOM_STATUS, QueryCache
from hotelops.client.errors import BalanceOutstanding, CheckoutRejected, PortalError, TransportFailure
from hotelops.client.optimistic import OptimisticMutationManager
from hotelops.core.logging import get_logger

logger = get_logger(__name__)

CHECKED_OUT = "checked_out"
ROOM_NEEDS_CLEANING = "dirty"


def to_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


@dataclass(frozen=True)
class FolioBalance:
    folio_id: str
    total_charges: Decimal
    total_payments: Decimal
    balance: Decimal


@dataclass(frozen=True)
class CheckoutOutcome:
    folio_id: Optional[str]
    room_id: Optional[str]
    message: str
    final_balance: Optional[Decimal] = None


class BalanceValidator:
    """
    Advisory pre-flight check; the server procedure enforces the same rule
    inside its transaction.
    """

    def __init__(self, api: PortalAPI, tolerance: Optional[Decimal] = None):
        self.api = api
        self.tolerance = (
            tolerance if tolerance is not None
            else Decimal(str(api.settings.BALANCE_TOLERANCE))
        )

    def evaluate(self, folio: FolioBalance) -> None:
        """
        Raises:
            BalanceOutstanding: when the balance exceeds the tolerance
        """
        if folio.balance > self.tolerance:
            raise BalanceOutstanding(folio.balance, folio.folio_id)
        if folio.balance < -self.tolerance:
            logger.info(
                f"Folio in credit by {-folio.balance:.2f}; checkout allowed",
                extra={"folio_id": folio.folio_id},
            )

    async def check(self, staff_token: str, reservation_id: str) -> FolioBalance:
        body = await self.api.get_folio(staff_token, reservation_id)
        folio = FolioBalance(
            folio_id=body["folio_id"],
            total_charges=to_decimal(body["total_charges"]),
            total_payments=to_decimal(body["total_payments"]),
            balance=to_decimal(body["balance"]),
        )
        self.evaluate(folio)
        return folio


class AtomicCheckoutInvoker:
    def __init__(
        self,
        api: PortalAPI,
        manager: OptimisticMutationManager,
        validator: Optional[BalanceValidator] = None,
    ):
        self.api = api
        self.manager = manager
        self.validator = validator if validator is not None else BalanceValidator(api)

    @property
    def cache(self) -> QueryCache:
        return self.manager.cache

    async def checkout(
        self,
        staff_token: str,
        tenant_id: str,
        reservation_id: str,
        room_id: Optional[str] = None,
    ) -> CheckoutOutcome:
        """
        Raises:
            BalanceOutstanding: from the gate, before anything is applied
            CheckoutRejected: server answered success=false (message verbatim)
            PortalError: any raised failure, after rollback
        """
        await self.validator.check(staff_token, reservation_id)

        keys = [(RESERVATION, reservation_id)]
        if room_id:
            keys.append((ROOM, room_id))
        operation = self.manager.begin(keys, lambda cache: self._apply_tentative(cache, reservation_id))

        try:
            result = await self.api.checkout(staff_token, tenant_id, reservation_id)
        except asyncio.CancelledError:
            self.manager.rollback(operation.id)
            raise
        except PortalError:
            self.manager.rollback(operation.id)
            self._mark_uncertain(reservation_id, room_id)
            raise
        except Exception as e:
            self.manager.rollback(operation.id)
            self._mark_uncertain(reservation_id, room_id)
            raise TransportFailure(str(e) or None) from e

        if not result.get("success"):
            self.manager.rollback(operation.id)
            logger.info(
                "Checkout rejected by server",
                extra={"reservation_id": reservation_id, "reason": result.get("message")},
            )
            raise CheckoutRejected(result.get("message"), code="CHECKOUT_REJECTED")

        self.manager.commit(operation.id)
        outcome = CheckoutOutcome(
            folio_id=result.get("folio_id"),
            room_id=result.get("room_id") or room_id,
            message=result.get("message") or "",
            final_balance=to_decimal(result.get("final_balance")),
        )
        self._refresh_dependents(reservation_id, outcome.room_id)
        return outcome

    @staticmethod
    def _apply_tentative(cache: QueryCache, reservation_id: str) -> None:
        reservation: Dict[str, Any] = dict(cache.get((RESERVATION, reservation_id)) or {"id": reservation_id})
        reservation["status"] = CHECKED_OUT
        cache.set((RESERVATION, reservation_id), reservation)

    def _mark_uncertain(self, reservation_id: str, room_id: Optional[str]) -> None:
        # A raised call may still have committed server-side; refetch before trusting the snapshot
        self.cache.invalidate(RESERVATION, reservation_id)
        if room_id:
            self.cache.invalidate(ROOM, room_id)

    def _refresh_dependents(self, reservation_id: str, room_id: Optional[str]) -> None:
        cache = self.cache
        cache.invalidate(RESERVATION, reservation_id)
        cache.invalidate(ROOM_STATUS)
        cache.invalidate(BILLING)
        cache.invalidate(OVERVIEW)
        if room_id:
            room: Dict[str, Any] = dict(cache.get((ROOM, room_id)) or {"id": room_id})
            room["status"] = ROOM_NEEDS_CLEANING
            # Shown until the next fetch replaces it with the server row
            cache.set((ROOM, room_id), room)
            cache.invalidate(ROOM, room_id)


class CheckoutFlow:
    """Wires cache, manager, gate and invoker for one front desk screen."""

    def __init__(self, api: PortalAPI, cache: Optional[QueryCache] = None):
        self.cache = cache if cache is not None else QueryCache()
        self.manager = OptimisticMutationManager(self.cache)
        self.validator = BalanceValidator(api)
        self.invoker = AtomicCheckoutInvoker(api, self.manager, self.validator)

    async def checkout(self, staff_token: str, tenant_id: str, reservation_id: str, room_id: Optional[str] = None) -> CheckoutOutcome:
        return await self.invoker.checkout(staff_token, tenant_id, reservation_id, room_id)
