"""
TTLCache — process-wide key/value store with per-entry expiry.

Holds the few values Luna is allowed to share between requests
(active game id, average block time). Passed into actions explicitly
so tests can swap in a cache with a fake clock.
"""

import time
import logging
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger('TTLCache')


class TTLCache:
    """get / set-with-ttl cache.

    An entry set with `ttl=N` is visible for reads strictly before
    `set_time + N` and gone from that instant on. `ttl=None` never expires.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, Optional[float]]] = {}

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            logger.debug(f"Cache entry '{key}' expired")
            del self._entries[key]
            return default
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        expires_at = None if ttl is None else self._clock() + ttl
        self._entries[key] = (value, expires_at)

    def __contains__(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel
