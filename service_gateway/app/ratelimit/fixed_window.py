"""
Fixed window rate limiter for Gateway service.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, Any, Optional

from fastapi import Request

from shared.logging import get_logger


UNKNOWN_CLIENT = "unknown"


@dataclass
class RateWindow:
    """Request count for one client inside the current window."""

    client_id: str
    count: int
    window_start: float


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate limit check."""

    allowed: bool
    client_id: str
    count: int
    limit: int
    reset_in_seconds: float

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allowed": self.allowed,
            "current_count": self.count,
            "limit": self.limit,
            "remaining": self.remaining,
            "reset_in_seconds": round(self.reset_in_seconds, 3),
        }


class FixedWindowRateLimiter:
    """In-process fixed window rate limiter keyed by client identity.

    ``check`` never awaits, so under a single asyncio loop the read and the
    write of a window happen without interleaving. State lives only in this
    object; it is not shared between processes.
    """

    def __init__(
        self,
        limit: int = 3,
        window_seconds: float = 5.0,
        *,
        max_clients: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self.max_clients = max_clients
        self.clock = clock
        self.logger = get_logger("gateway.rate_limiter")
        self._windows: "OrderedDict[str, RateWindow]" = OrderedDict()

    def check(self, client_id: str) -> RateLimitDecision:
        """Count a request for ``client_id`` and decide whether it may proceed."""
        now = self.clock()
        window = self._windows.get(client_id)

        if window is None or now > window.window_start + self.window_seconds:
            window = RateWindow(client_id=client_id, count=1, window_start=now)
            self._windows[client_id] = window
            self._windows.move_to_end(client_id)
            self._enforce_bound(now)
            return self._decision(window, True, now)

        self._windows.move_to_end(client_id)

        if window.count >= self.limit:
            self.logger.warning(
                "Rate limit exceeded",
                client_id=client_id,
                count=window.count,
                limit=self.limit,
            )
            return self._decision(window, False, now)

        window.count += 1
        return self._decision(window, True, now)

    def _decision(self, window: RateWindow, allowed: bool, now: float) -> RateLimitDecision:
        reset_in = max(0.0, window.window_start + self.window_seconds - now)
        return RateLimitDecision(
            allowed=allowed,
            client_id=window.client_id,
            count=window.count,
            limit=self.limit,
            reset_in_seconds=reset_in,
        )

    def _enforce_bound(self, now: float) -> None:
        if len(self._windows) <= self.max_clients:
            return
        self.prune(now)
        while len(self._windows) > self.max_clients:
            evicted, _ = self._windows.popitem(last=False)
            self.logger.debug("Evicted rate limit window", client_id=evicted)

    def prune(self, now: Optional[float] = None) -> int:
        """Drop windows whose period has elapsed. Returns the number removed."""
        if now is None:
            now = self.clock()
        expired = [
            client_id
            for client_id, window in self._windows.items()
            if now > window.window_start + self.window_seconds
        ]
        for client_id in expired:
            del self._windows[client_id]
        return len(expired)

    def get_window(self, client_id: str) -> Optional[RateWindow]:
        return self._windows.get(client_id)

    def reset(self) -> None:
        """Forget every client window."""
        self._windows.clear()

    def __len__(self) -> int:
        return len(self._windows)

    def get_stats(self) -> Dict[str, Any]:
        """Get rate limiting statistics."""
        return {
            "tracked_clients": len(self._windows),
            "limit": self.limit,
            "window_seconds": self.window_seconds,
            "max_clients": self.max_clients,
        }


def get_client_id(request: Request) -> str:
    """Derive the rate limit identity from proxy headers.

    Callers without proxy headers all share the ``unknown`` bucket.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    return UNKNOWN_CLIENT
