"""
Fixed-window attempt limiting for secret guessing.

Counts live in process memory, so each worker enforces its own window.
"""

import hashlib
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request

from geodrop.services.firebase.auth_service import Identity
from geodrop.utils.exceptions import RateLimitError
from geodrop.utils.logger import get_logger

logger = get_logger(__name__)


class AttemptLimiter:
    """Allows ``max_attempts`` per key in each ``window_seconds`` window."""

    def __init__(
        self,
        max_attempts: int = 5,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> None:
        """
        Count one attempt for ``key``.

        Raises:
            RateLimitError: The key already used every attempt in its current window
        """
        now = self._clock()
        with self._lock:
            started, attempts = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, attempts = now, 0
            if attempts >= self.max_attempts:
                retry_after = self.window_seconds - (now - started)
                logger.warning(
                    "Attempt limit reached",
                    extra={"extra_data": {"key": key, "retry_after": retry_after}},
                )
                raise RateLimitError(retry_after=retry_after)
            self._windows[key] = (started, attempts + 1)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


def client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client is not None:
        return request.client.host
    return "unknown"


def attempt_key(identity: Optional[Identity], request: Request) -> str:
    """Authenticated callers are limited per uid, anonymous ones per hashed IP."""
    if identity is not None:
        return f"user:{identity.uid}"
    ip_hash = hashlib.sha256(client_ip(request).encode("utf-8")).hexdigest()
    return f"ip:{ip_hash}"
