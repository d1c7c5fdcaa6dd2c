from __future__ import annotations

from collections import defaultdict, deque
from threading import Lock
import time
from typing import Deque

from fastapi import Request

from classsched.core.exceptions import RateLimited


class SlidingWindowLimiter:
    """Counts hits per key inside a trailing time window."""

    def __init__(self) -> None:
        self._hits: dict[str, Deque[float]] = defaultdict(deque)
        self._lock = Lock()
        self._last_sweep = 0.0

    def hit(self, key: str, *, limit: int, window_seconds: int) -> int | None:
        """Record a hit; return the retry delay in seconds when over budget."""
        now = time.monotonic()
        cutoff = now - window_seconds
        with self._lock:
            if now - self._last_sweep >= window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now
            hits = self._hits[key]
            while hits and hits[0] < cutoff:
                hits.popleft()
            if len(hits) >= limit:
                return max(1, int(hits[0] + window_seconds - now))
            hits.append(now)
        return None

    def _sweep(self, cutoff: float) -> None:
        # Forget clients whose newest hit has left the window.
        for stale in [key for key, hits in self._hits.items() if not hits or hits[-1] < cutoff]:
            del self._hits[stale]

    def __len__(self) -> int:
        return len(self._hits)

    def clear(self) -> None:
        with self._lock:
            self._hits.clear()


_limiter = SlidingWindowLimiter()


def client_address(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def enforce_rate_limit(request: Request, *, scope: str, limit: int, window_seconds: int) -> None:
    retry_after = _limiter.hit(f"{scope}|{client_address(request)}", limit=limit, window_seconds=window_seconds)
    if retry_after is not None:
        raise RateLimited(scope, retry_after)


def clear_rate_limiter() -> None:
    _limiter.clear()
