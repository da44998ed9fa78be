"""Per-role sliding window rate limiting.

The limiter keeps request timestamps in memory, so it is only accurate for a
single worker process. It is built once in create_app and read from
app.state by the enforce_rate_limit dependency.
"""

import logging
import time
from collections import deque
from typing import Deque, Dict, Optional, Tuple

from fastapi import Depends, Request

from app.auth.dependencies import get_optional_user
from app.auth.schemas import CurrentUser
from app.core.enums import GUEST_ROLE, UserRole
from app.core.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

# role -> (max requests per window, message)
ROLE_LIMITS: Dict[str, Tuple[int, str]] = {
    UserRole.ADMIN.value: (100, "Admin request limit exceeded (100 per minute). Slow down."),
    UserRole.TEACHER.value: (60, "Teacher/Student request limit exceeded (60 per minute). Please wait."),
    UserRole.STUDENT.value: (60, "Teacher/Student request limit exceeded (60 per minute). Please wait."),
    GUEST_ROLE: (30, "Guest request limit exceeded (30 per minute). Please sign up for higher limits."),
}


class SlidingWindowRateLimiter:
    """Counts hits per key over the last `window_seconds`."""

    def __init__(self, window_seconds: int = 60) -> None:
        self.window_seconds = window_seconds
        self._hits: Dict[str, Deque[float]] = {}
        self._last_sweep: Optional[float] = None

    def __len__(self) -> int:
        return len(self._hits)

    def _sweep(self, window_start: float) -> None:
        """Drop keys with no hit inside the current window."""
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in stale:
            del self._hits[key]
        if stale:
            logger.debug("Rate limiter dropped %d idle keys", len(stale))

    def hit(self, key: str, limit: int, now: Optional[float] = None) -> Optional[int]:
        """Record a hit. Returns None when allowed, else seconds until a slot frees up."""
        now = time.monotonic() if now is None else now
        window_start = now - self.window_seconds

        # Idle keys are swept at most once per window
        if self._last_sweep is None:
            self._last_sweep = now
        elif now - self._last_sweep >= self.window_seconds:
            self._sweep(window_start)
            self._last_sweep = now

        hits = self._hits.get(key)
        if hits is None:
            hits = self._hits[key] = deque()
        while hits and hits[0] <= window_start:
            hits.popleft()

        if len(hits) >= limit:
            return int(hits[0] + self.window_seconds - now) + 1

        hits.append(now)
        return None

    def reset(self) -> None:
        self._hits.clear()
        self._last_sweep = None


async def enforce_rate_limit(
    request: Request,
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
) -> None:
    limiter: Optional[SlidingWindowRateLimiter] = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return

    role = current_user.role.value if current_user else GUEST_ROLE
    limit, message = ROLE_LIMITS.get(role, ROLE_LIMITS[GUEST_ROLE])
    if current_user:
        identity = current_user.id
    else:
        identity = request.client.host if request.client else "unknown"

    retry_after = limiter.hit(f"{role}:{identity}", limit)
    if retry_after is not None:
        logger.warning("Rate limit exceeded for %s:%s (%d per %ds)", role, identity, limit, limiter.window_seconds)
        raise RateLimitExceededError(message, headers={"Retry-After": str(retry_after)})
