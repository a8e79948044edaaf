"""Fixed-window request counting per client identifier."""

from __future__ import annotations

import asyncio
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)


@dataclass
class RateLimitEntry:
    count: int
    reset_time: float


@dataclass(frozen=True)
class RateLimitInfo:
    allowed: bool
    limit: int
    remaining: int
    reset_time: float
    now: float

    @property
    def retry_after(self) -> int:
        """Whole seconds until the current window closes."""
        return max(0, math.ceil(self.reset_time - self.now))


class RateLimiter:
    """Allow at most ``max_requests`` per ``window_seconds`` for each identifier.

    The first request from an identifier opens a window. Requests made while
    the window is full are rejected without being counted. Once the window's
    reset time has passed the next request opens a fresh window.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    def hit(self, identifier: str) -> RateLimitInfo:
        """Record one request for ``identifier`` and report whether it is allowed."""

        now = self._clock()
        with self._lock:
            entry = self._entries.get(identifier)
            if entry is None or now > entry.reset_time:
                entry = RateLimitEntry(count=1, reset_time=now + self.window_seconds)
                self._entries[identifier] = entry
                allowed = True
            elif entry.count >= self.max_requests:
                allowed = False
            else:
                entry.count += 1
                allowed = True
            return RateLimitInfo(
                allowed=allowed,
                limit=self.max_requests,
                remaining=max(0, self.max_requests - entry.count),
                reset_time=entry.reset_time,
                now=now,
            )

    def is_allowed(self, identifier: str) -> bool:
        return self.hit(identifier).allowed

    def remaining(self, identifier: str) -> int:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(identifier)
            if entry is None or now > entry.reset_time:
                return self.max_requests
            return max(0, self.max_requests - entry.count)

    def reset_time(self, identifier: str) -> float:
        with self._lock:
            entry = self._entries.get(identifier)
            if entry is not None:
                return entry.reset_time
        return self._clock() + self.window_seconds

    def cleanup(self) -> int:
        """Drop entries whose window has expired and return how many were removed."""

        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if now > entry.reset_time]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# --- Identifiers ---
def normalize_email(email: str) -> str:
    return email.strip().lower()


def email_identifier(email: str) -> str:
    return f"email:{normalize_email(email)}"


def ip_identifier(ip: str) -> str:
    return f"ip:{ip}"


def combined_identifier(email: str, ip: str) -> str:
    return f"combined:{normalize_email(email)}:{ip}"


def resolve_client_ip(headers: Mapping[str, str], peer: Optional[str] = None) -> str:
    """Pick the client address from proxy headers, then the socket peer."""

    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return peer or "unknown"


async def run_periodic_cleanup(limiters: Iterable[RateLimiter], interval_seconds: float) -> None:
    """Periodically drop expired rate-limit windows until cancelled."""

    limiters = list(limiters)
    while True:
        await asyncio.sleep(interval_seconds)
        removed = sum(limiter.cleanup() for limiter in limiters)
        if removed:
            logger.debug("Removed %d expired rate-limit windows", removed)


__all__ = [
    "RateLimiter",
    "RateLimitInfo",
    "email_identifier",
    "ip_identifier",
    "combined_identifier",
    "normalize_email",
    "resolve_client_ip",
    "run_periodic_cleanup",
]
