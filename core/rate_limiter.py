# core/rate_limiter.py

from typing import Callable, Dict, List, Optional, Tuple
import time

from fastapi import HTTPException, Request


class RateLimiter:
    """
    In-memory sliding-window limiter, per process.
    Used for the auth e-mail endpoints (password reset, confirmation resend).
    Identifiers with no timestamps left inside the widest window seen are
    dropped, so the store only holds recently active keys.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._store: Dict[str, List[float]] = {}
        self._clock = clock
        self._max_window = 0

    def check(self, identifier: str, max_requests: int, window_seconds: int) -> Tuple[bool, int]:
        """
        Returns (allowed, remaining). An allowed call is recorded.
        """
        now = self._clock()
        window_start = now - window_seconds

        self._max_window = max(self._max_window, window_seconds)
        self.clear_expired(now)

        recent = [ts for ts in self._store.get(identifier, []) if ts > window_start]

        if len(recent) >= max_requests:
            self._store[identifier] = recent
            return False, 0

        recent.append(now)
        self._store[identifier] = recent
        return True, max_requests - len(recent)

    def clear_expired(self, now: Optional[float] = None) -> None:
        cutoff = (self._clock() if now is None else now) - self._max_window
        stale = [key for key, stamps in self._store.items() if not stamps or stamps[-1] <= cutoff]
        for key in stale:
            del self._store[key]

    def __len__(self) -> int:
        return len(self._store)

    def clear(self) -> None:
        self._store.clear()
        self._max_window = 0


limiter = RateLimiter()


def get_rate_limit_identifier(request: Request, email: Optional[str] = None) -> str:
    """
    Prefer the e-mail being acted on; otherwise the client IP
    (first X-Forwarded-For hop when behind a proxy).
    """
    if email:
        return f"email:{email}"

    client_ip = request.client.host if request.client else "unknown"
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        client_ip = forwarded_for.split(",")[0].strip()

    return f"ip:{client_ip}"


def require_rate_limit(
    request: Request,
    identifier: Optional[str] = None,
    max_requests: int = 10,
    window_seconds: int = 60,
) -> int:
    """
    Raises HTTPException 429 if the limit is exceeded, otherwise returns
    the remaining allowance.
    """
    if identifier is None:
        identifier = get_rate_limit_identifier(request)

    allowed, remaining = limiter.check(identifier, max_requests, window_seconds)

    if not allowed:
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded. Maximum {max_requests} requests per {window_seconds} seconds.",
            headers={
                "X-RateLimit-Limit": str(max_requests),
                "X-RateLimit-Window": str(window_seconds),
                "Retry-After": str(window_seconds),
            },
        )

    return remaining
