# --- File: hotelops/client/storage.py ---
"""
Client key/value storage areas.

`TabScopedStorage` lives exactly as long as one browsing context and is the
only place a guest credential may be written. `PersistentStorage` survives
restarts (a JSON file) and is used for non-sensitive preferences only.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

from hotelops.core.constants import OFFLINE_QUEUE_KEY, SESSION_DATA_KEY, SESSION_JWT_KEY
from hotelops.core.logging import get_logger

logger = get_logger(__name__)

# Keys that must never reach storage surviving the browsing context
TAB_ONLY_KEYS = frozenset({SESSION_JWT_KEY, SESSION_DATA_KEY, OFFLINE_QUEUE_KEY})


class StorageArea:
    """Minimal string-valued storage interface (get/set/remove/clear)."""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def keys(self) -> Iterator[str]:
        raise NotImplementedError

    def __contains__(self, key: str) -> bool:
        return self.get_item(key) is not None


class TabScopedStorage(StorageArea):
    """In-memory storage cleared when the browsing context closes."""

    def __init__(self):
        self._items: Dict[str, str] = {}
        self._closed = False

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self._closed:
            raise RuntimeError("Storage area belongs to a closed browsing context")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()

    def keys(self) -> Iterator[str]:
        return iter(list(self._items))

    def close(self) -> None:
        """Browsing context ended: everything stored here is gone."""
        self._items.clear()
        self._closed = True


class PersistentStorage(StorageArea):
    """JSON-file backed storage that survives restarts."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as fh:
            return json.load(fh)

    def _save(self, items: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as fh:
            json.dump(items, fh)

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        if key in TAB_ONLY_KEYS:
            raise ValueError(f"{key} may only be stored in tab-scoped storage")
        items = self._load()
        items[key] = value
        self._save(items)

    def remove_item(self, key: str) -> None:
        items = self._load()
        if items.pop(key, None) is not None:
            self._save(items)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()

    def keys(self) -> Iterator[str]:
        return iter(list(self._load()))


def dumps(value: Any) -> str:
    return json.dumps(value, default=str, separators=(",", ":"))


def loads(raw: Optional[str]) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Discarding unreadable stored value")
        return None
