import threading
import time
from loguru import logger
from typing import Callable, Dict

class HostAvailabilityTracker:
    """
    Short-lived memory of hosts the debrid service reported as unusable
    (not supported, down, full, limit reached).

    A host marked unavailable is skipped for `ttl` seconds, then becomes
    available again on the next lookup. There is no explicit unmark: recovery
    is purely time based. Expired entries are dropped lazily when read.
    """
    def __init__(self, ttl: float = 15 * 60, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._marked_at: Dict[str, float] = {}
        self._lock = threading.Lock()

    def is_unavailable(self, host: str) -> bool:
        with self._lock:
            marked_at = self._marked_at.get(host)
            if marked_at is None:
                return False

            if self._clock() - marked_at > self.ttl:
                del self._marked_at[host]
                expired = True
            else:
                expired = False

        if expired:
            logger.info(f"Host {host} is now available again (TTL expired)")
            return False
        return True

    def mark_unavailable(self, host: str) -> None:
        with self._lock:
            self._marked_at[host] = self._clock()
        logger.warning(f"Host {host} marked as unavailable for {round(self.ttl / 60)} minutes")

    def clear(self) -> None:
        with self._lock:
            self._marked_at.clear()

    def __len__(self) -> int:
        return len(self._marked_at)
