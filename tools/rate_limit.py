"""
Per-identifier request counter with a reset window.
State lives behind RateLimitStore so a deployment can swap the in-process dict for a
shared cache; the default store is best-effort and not durable.
"""
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

DEFAULT_CLIENT_ID = "default"
SWEEP_INTERVAL_MS = 60000


@dataclass(frozen=True)
class RateLimitEntry:
    count: int
    reset_time: int  # epoch ms


class RateLimitStore(Protocol):
    def get(self, key: str) -> Optional[RateLimitEntry]:
        ...

    def set(self, key: str, entry: RateLimitEntry) -> None:
        ...

    def expire(self, key: str, ttl_ms: int) -> None:
        ...


def _now_ms() -> int:
    return int(time.time() * 1000)


class InMemoryRateLimitStore:
    """
    Dict-backed store. An expired key is dropped when read, and every key past its
    deadline is swept on writes at most once per sweep_interval_ms.
    """

    def __init__(self, clock: Callable[[], int] = _now_ms, sweep_interval_ms: int = SWEEP_INTERVAL_MS) -> None:
        self._entries: dict[str, RateLimitEntry] = {}
        self._deadlines: dict[str, int] = {}
        self._clock = clock
        self._sweep_interval_ms = sweep_interval_ms
        self._next_sweep = 0

    def get(self, key: str) -> Optional[RateLimitEntry]:
        deadline = self._deadlines.get(key)
        if deadline is not None and self._clock() >= deadline:
            self._entries.pop(key, None)
            self._deadlines.pop(key, None)
            return None
        return self._entries.get(key)

    def set(self, key: str, entry: RateLimitEntry) -> None:
        self._sweep_expired(keep=key)
        self._entries[key] = entry

    def expire(self, key: str, ttl_ms: int) -> None:
        self._deadlines[key] = self._clock() + ttl_ms

    def __len__(self) -> int:
        return len(self._entries)

    def _sweep_expired(self, keep: str) -> None:
        now = self._clock()
        if now < self._next_sweep:
            return
        self._next_sweep = now + self._sweep_interval_ms
        expired = [key for key, deadline in self._deadlines.items() if now >= deadline and key != keep]
        for key in expired:
            self._entries.pop(key, None)
            del self._deadlines[key]


class RateLimiter:
    def __init__(
        self,
        store: Optional[RateLimitStore] = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.store = store if store is not None else InMemoryRateLimitStore(clock)
        self._clock = clock
        self._lock = threading.Lock()

    def check(self, identifier: str, max_requests: int = 10, window_ms: int = 60000) -> bool:
        """
        Admit or deny one request for identifier.
        A new window starts on the first request or once now > reset_time (count=1).
        Inside a window the call is denied once count >= max_requests; the count is not
        pushed past the limit by denied calls.
        """
        with self._lock:
            now = self._clock()
            entry = self.store.get(identifier)

            if entry is None or now > entry.reset_time:
                self.store.set(identifier, RateLimitEntry(count=1, reset_time=now + window_ms))
                # Keep the key one extra window so "now > reset_time" is observable before eviction
                self.store.expire(identifier, window_ms * 2)
                return True

            if entry.count >= max_requests:
                return False

            self.store.set(identifier, RateLimitEntry(count=entry.count + 1, reset_time=entry.reset_time))
            return True


_default_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Process-wide limiter used when a caller does not inject one."""
    global _default_limiter
    if _default_limiter is None:
        _default_limiter = RateLimiter()
    return _default_limiter


def check_rate_limit(identifier: str, max_requests: int = 10, window_ms: int = 60000) -> bool:
    return get_rate_limiter().check(identifier, max_requests, window_ms)
