# natalchart/utils/cache.py
from __future__ import annotations
from collections import OrderedDict
import threading
from typing import Any, Optional

class LRUCache:
    """Thread-safe bounded mapping; least recently used entries are evicted first."""

    def __init__(self, capacity: int = 1024):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self.store: "OrderedDict[str, Any]" = OrderedDict()
        self.lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self.lock:
            if key in self.store:
                self.store.move_to_end(key)
                return self.store[key]
            return None

    def set(self, key: str, value: Any):
        with self.lock:
            self.store[key] = value
            self.store.move_to_end(key)
            if len(self.store) > self.capacity:
                self.store.popitem(last=False)

    def __len__(self) -> int:
        with self.lock:
            return len(self.store)
