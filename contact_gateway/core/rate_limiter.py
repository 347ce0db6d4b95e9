"""
=============================================================================
CONTACT GATEWAY - RATE LIMITER MODULE
=============================================================================
In-memory sliding-window admission control for the contact endpoint.

Features:
- Per-identity (client IP) sliding window, 10 requests / 15 minutes by default
- Single lock around the prune-check-append sequence; no I/O under the lock
- Denials are never recorded, so a client recovers as soon as its oldest
  admission leaves the window
- Trusted-proxy validation for X-Forwarded-For

State lives in process memory and is lost on restart. Idle identities are
kept; their windows are pruned the next time they are seen.

Usage:
    from contact_gateway.core.rate_limiter import contact_rate_limiter

    if not contact_rate_limiter.admit(client_ip):
        ...
=============================================================================
"""

import ipaddress
import logging
import time
from collections import defaultdict, deque
from threading import Lock
from typing import Callable, Deque, Dict, List

from fastapi import Request

from contact_gateway.core.config import settings

logger = logging.getLogger(__name__)

# Parsed trusted proxy networks (built once at import)
_trusted_networks: List[ipaddress.IPv4Network | ipaddress.IPv6Network] = []


def _build_trusted_networks() -> None:
    """Parse TRUSTED_PROXIES setting into network objects."""
    global _trusted_networks
    nets = []
    for entry in settings.TRUSTED_PROXIES:
        try:
            nets.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            logger.warning("Invalid TRUSTED_PROXIES entry ignored: %s", entry)
    _trusted_networks = nets


_build_trusted_networks()


class SlidingWindowRateLimiter:
    """Thread-safe sliding-window limiter keyed by client identity."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = Lock()
        self._windows: Dict[str, Deque[float]] = defaultdict(deque)

    def admit(self, identity: str) -> bool:
        """Record a request for ``identity`` and return whether it is allowed."""
        now = self._clock()
        window_start = now - self.window_seconds

        with self._lock:
            window = self._windows[identity]

            while window and window[0] <= window_start:
                window.popleft()

            if len(window) >= self.max_requests:
                return False

            window.append(now)
            return True

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def stats(self) -> dict:
        with self._lock:
            return {
                "backend": "in_memory",
                "max_requests": self.max_requests,
                "window_seconds": self.window_seconds,
                "tracked_identities": len(self._windows),
                "windows": {key: len(window) for key, window in self._windows.items()},
            }


contact_rate_limiter = SlidingWindowRateLimiter(
    max_requests=settings.CONTACT_RATE_LIMIT,
    window_seconds=settings.CONTACT_RATE_WINDOW_SECONDS,
)


# =============================================================================
# IP EXTRACTION
# =============================================================================


def _is_trusted_proxy(ip_str: str) -> bool:
    """Check if an IP belongs to the configured trusted proxy ranges."""
    try:
        addr = ipaddress.ip_address(ip_str)
    except ValueError:
        return False
    return any(addr in net for net in _trusted_networks)


def get_client_ip(request: Request) -> str:
    """Extract client IP, trusting X-Forwarded-For only from trusted proxies."""
    direct_ip = request.client.host if request.client else "unknown"

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded and _is_trusted_proxy(direct_ip):
        parts = [p.strip() for p in forwarded.split(",") if p.strip()]
        # Rightmost untrusted IP is the real client
        for ip in reversed(parts):
            if not _is_trusted_proxy(ip):
                return ip
        if parts:
            return parts[0]

    return direct_ip


# =============================================================================
# TEST / DEBUG HELPERS
# =============================================================================


def reset_rate_limiter_state() -> None:
    """Clear rate limiter state. Intended for tests."""
    contact_rate_limiter.reset()


def get_rate_limit_stats() -> dict:
    """Get current rate limiting statistics (for admin/debugging)."""
    return contact_rate_limiter.stats()
