# --- File: hotelops/client/optimistic.py ---
"""
Optimistic cache mutations with exactly one commit or rollback each.
"""

import copy
import uuid
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from hotelops.client.cache import CacheKey, QueryCache
from hotelops.core.logging import get_logger

logger = get_logger(__name__)

_MISSING = object()


class OperationState(str, Enum):
    IDLE = "idle"
    APPLIED = "optimistic_applied"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class InvalidTransition(RuntimeError):
    pass


class OptimisticOperation:
    """
    Snapshot + mutation + id.

    The snapshot is taken once, in `apply`, as a deep copy of every target
    key; `rollback` writes those copies back regardless of what happened to
    the cache in between.
    """

    def __init__(
        self,
        keys: Iterable[CacheKey],
        mutate: Callable[[QueryCache], None],
        operation_id: Optional[str] = None,
    ):
        self.id = operation_id or str(uuid.uuid4())
        self.keys: Tuple[CacheKey, ...] = tuple(keys)
        self.mutate = mutate
        self.state = OperationState.IDLE
        self._snapshot: Dict[CacheKey, Any] = {}

    def apply(self, cache: QueryCache) -> None:
        if self.state is not OperationState.IDLE:
            raise InvalidTransition(f"Operation {self.id} already {self.state.value}")
        self._snapshot = {
            key: copy.deepcopy(cache.get(key)) if key in cache else _MISSING
            for key in self.keys
        }
        self.mutate(cache)
        self.state = OperationState.APPLIED

    def commit(self) -> bool:
        """Returns False when the operation had already finished."""
        if self.state is not OperationState.APPLIED:
            return False
        self.state = OperationState.COMMITTED
        self._snapshot = {}
        return True

    def rollback(self, cache: QueryCache) -> bool:
        """Restore the apply-time snapshot. Returns False when already finished."""
        if self.state is not OperationState.APPLIED:
            return False
        for key, value in self._snapshot.items():
            if value is _MISSING:
                cache.remove(key)
            else:
                cache.set(key, copy.deepcopy(value))
        self.state = OperationState.ROLLED_BACK
        self._snapshot = {}
        return True

    @property
    def finished(self) -> bool:
        return self.state in (OperationState.COMMITTED, OperationState.ROLLED_BACK)


class OptimisticMutationManager:
    """Tracks in-flight operations by id so unrelated mutations stay independent."""

    def __init__(self, cache: QueryCache):
        self.cache = cache
        self._pending: Dict[str, OptimisticOperation] = {}

    def begin(
        self,
        keys: Iterable[CacheKey],
        mutate: Callable[[QueryCache], None],
        operation_id: Optional[str] = None,
    ) -> OptimisticOperation:
        operation = OptimisticOperation(keys, mutate, operation_id)
        if operation.id in self._pending:
            raise InvalidTransition(f"Operation {operation.id} is already in flight")
        operation.apply(self.cache)
        self._pending[operation.id] = operation
        logger.debug(f"Optimistic operation {operation.id} applied")
        return operation

    def commit(self, operation_id: str) -> bool:
        operation = self._pending.pop(operation_id, None)
        return operation.commit() if operation is not None else False

    def rollback(self, operation_id: str) -> bool:
        operation = self._pending.pop(operation_id, None)
        if operation is None:
            return False
        restored = operation.rollback(self.cache)
        if restored:
            logger.info(f"Optimistic operation {operation_id} rolled back")
        return restored

    def pending(self) -> List[str]:
        return list(self._pending)
