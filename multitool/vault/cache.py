import threading
from collections import OrderedDict
from typing import Any, Dict, Optional

DEFAULT_VIEW_CACHE_ENTRIES = 128


def read_uri(path: str) -> str:
    return f"obsidian://{path}/read"


def list_uri(path: str) -> str:
    return f"obsidian://{path}/list"


class ViewCache:
    """
    Bounded LRU of resource payloads keyed by resource URI.

    Resource reads populate it and ``obsidian-view`` consults it; writes to a
    path drop that path's entry. A capacity of 0 disables caching.

    Each invalidation bumps a per-key generation. A reader takes the
    generation before loading and passes it to ``put``; the put is dropped
    if a write invalidated the key in between.
    """

    def __init__(self, max_entries: int = DEFAULT_VIEW_CACHE_ENTRIES):
        self.max_entries = max(0, int(max_entries))
        self._entries: "OrderedDict[str, Any]" = OrderedDict()
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            if key not in self._entries:
                return None
            self._entries.move_to_end(key)
            return self._entries[key]

    def generation(self, key: str) -> int:
        with self._lock:
            return self._generations.get(key, 0)

    def put(self, key: str, value: Any, generation: Optional[int] = None) -> bool:
        """Store *value*; returns False when skipped."""
        if self.max_entries == 0:
            return False
        with self._lock:
            if generation is not None and self._generations.get(key, 0) != generation:
                return False
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
            return True

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
            self._generations[key] = self._generations.get(key, 0) + 1

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
