"""
Short-lived holding store for finished roasts.

Bridges the API and the presentation layer when results are passed by key
instead of inline. Entries expire after a fixed TTL; sweep() removes them
and is run periodically by the scheduler service. The clock is injectable so
expiry can be driven deterministically.
"""

import logging
import threading
import time
import uuid
from typing import Callable, Dict, Optional, Tuple

from roaster.schemas.roast import RoastResult

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60


class RoastStore:
    """Key -> RoastResult map with TTL eviction"""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, RoastResult]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _expired(self, stored_at: float, now: float) -> bool:
        return now - stored_at > self.ttl_seconds

    def put(self, result: RoastResult, key: Optional[str] = None) -> str:
        key = key or uuid.uuid4().hex
        with self._lock:
            self._entries[key] = (self._clock(), result)
        return key

    def get(self, key: str) -> Optional[RoastResult]:
        """Stored result, or None if unknown or past its TTL."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, result = entry
            if self._expired(stored_at, self._clock()):
                del self._entries[key]
                return None
            return result

    def pop(self, key: str) -> Optional[RoastResult]:
        with self._lock:
            entry = self._entries.pop(key, None)
        if entry is None:
            return None
        stored_at, result = entry
        if self._expired(stored_at, self._clock()):
            return None
        return result

    def sweep(self) -> int:
        """Evict every expired entry. Returns the number evicted."""
        now = self._clock()
        with self._lock:
            expired = [k for k, (stored_at, _) in self._entries.items() if self._expired(stored_at, now)]
            for key in expired:
                del self._entries[key]
            remaining = len(self._entries)

        if expired:
            logger.info(f"Roast store sweep evicted {len(expired)} entries ({remaining} remaining)")
        return len(expired)
