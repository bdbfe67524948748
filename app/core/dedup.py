"""
In-memory deduplication of Telegram webhook updates.
Telegram redelivers an update until it gets a 2xx, so each update_id is
claimed once within the TTL window.
"""
import time
from collections import OrderedDict

from app import config


class UpdateDeduplicator:
    """TTL set of update ids, oldest first."""

    def __init__(self, ttl_seconds: int = 60, max_entries: int = 10000, clock=time.monotonic):
        self._seen: "OrderedDict[str, float]" = OrderedDict()
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock

    def _cleanup_expired(self, now: float):
        while self._seen:
            claimed_at = next(iter(self._seen.values()))
            if now - claimed_at <= self._ttl and len(self._seen) < self._max_entries:
                break
            self._seen.popitem(last=False)

    def claim(self, update_id) -> bool:
        """True the first time an update id is seen within the TTL, False afterwards."""
        now = self._clock()
        self._cleanup_expired(now)

        key = str(update_id)
        if key in self._seen:
            return False
        self._seen[key] = now
        return True

    def __len__(self) -> int:
        return len(self._seen)


update_dedup = UpdateDeduplicator(ttl_seconds=config.TURN_TTL_SECONDS)
