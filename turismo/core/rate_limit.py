from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from threading import Lock

from fastapi import Depends, HTTPException, Request, status


@dataclass
class _Window:
    hits: deque[float] = field(default_factory=deque)
    last_seen: float = 0.0


class SlidingWindowLimiter:
    """In-process sliding-window limiter for the auth endpoints.

    State lives in this process only; every worker keeps its own counters.
    """

    def __init__(self, *, max_keys: int = 20_000) -> None:
        self._max_keys = max_keys
        self._lock = Lock()
        self._windows: dict[str, _Window] = {}

    def hit(self, key: str, *, limit: int, window_seconds: int) -> tuple[bool, int]:
        """Record one attempt; returns (allowed, retry_after_seconds)."""
        now = time.monotonic()
        cutoff = now - float(window_seconds)

        with self._lock:
            window = self._windows.setdefault(key, _Window(last_seen=now))
            window.last_seen = now

            while window.hits and window.hits[0] <= cutoff:
                window.hits.popleft()

            if len(window.hits) >= limit:
                retry_after = int(window_seconds - (now - window.hits[0])) + 1
                return False, max(1, retry_after)

            window.hits.append(now)
            if len(self._windows) > self._max_keys:
                self._evict_idle(now, idle_seconds=window_seconds * 10)
            return True, 0

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _evict_idle(self, now: float, *, idle_seconds: int) -> None:
        stale = [k for k, w in self._windows.items() if w.last_seen < now - idle_seconds]
        for k in stale:
            del self._windows[k]


limiter = SlidingWindowLimiter()


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or "unknown"
    if request.client:
        return request.client.host
    return "unknown"


def rate_limit(scope: str, *, limit: int, window_seconds: int = 60):
    """Dependency factory limiting requests per client IP within ``scope``."""

    def _dep(request: Request) -> None:
        allowed, retry_after = limiter.hit(f"{scope}:{_client_ip(request)}", limit=limit, window_seconds=window_seconds)
        if not allowed:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests",
                headers={"Retry-After": str(retry_after)},
            )

    return Depends(_dep)
