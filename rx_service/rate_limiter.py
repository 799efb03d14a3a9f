"""
Rate limiting for the prescription service API.

Per-client sliding window, one window per endpoint. Model-backed endpoints
get lower limits than plain translation.
"""
import logging
import time
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Callable, Tuple

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window request counter keyed by client identifier."""

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self.requests: dict[str, deque] = defaultdict(deque)

    def is_allowed(self, identifier: str) -> Tuple[bool, int, int]:
        """
        Record a request for identifier if it fits in the window.

        Returns:
            (is_allowed, requests_remaining, retry_after_seconds);
            retry_after_seconds is 0 when allowed
        """
        now = self.clock()
        window = self.requests[identifier]
        while window and window[0] <= now - self.window_seconds:
            window.popleft()

        if len(window) >= self.max_requests:
            retry_after = int(window[0] + self.window_seconds - now) + 1
            return False, 0, retry_after

        window.append(now)
        return True, self.max_requests - len(window), 0

    def reset(self, identifier: str) -> None:
        self.requests.pop(identifier, None)


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests: int = 10
    window_seconds: int = 60


ENDPOINT_LIMITS = {
    # Prescription + optional diagnostics + translation - 10 per minute
    "generate-prescription": RateLimitConfig(max_requests=10, window_seconds=60),
    "summary": RateLimitConfig(max_requests=10, window_seconds=60),
    "llm-suggest": RateLimitConfig(max_requests=20, window_seconds=60),
    "transcribe": RateLimitConfig(max_requests=20, window_seconds=60),
    "translate": RateLimitConfig(max_requests=30, window_seconds=60),
}


def client_identifier(request: Request) -> str:
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitManager:
    """One RateLimiter per endpoint, created on first use."""

    def __init__(self, limits: dict[str, RateLimitConfig] = ENDPOINT_LIMITS):
        self.limits = limits
        self.limiters: dict[str, RateLimiter] = {}

    def get_limiter(self, endpoint: str) -> RateLimiter:
        if endpoint not in self.limiters:
            config = self.limits.get(endpoint, RateLimitConfig())
            self.limiters[endpoint] = RateLimiter(
                max_requests=config.max_requests,
                window_seconds=config.window_seconds,
            )
        return self.limiters[endpoint]

    def check_rate_limit(self, endpoint: str, request: Request) -> dict:
        """
        Count the request against the endpoint's window.

        Returns:
            Rate limit headers to attach to the response

        Raises:
            HTTPException: 429 with Retry-After when the window is full
        """
        limiter = self.get_limiter(endpoint)
        client_ip = client_identifier(request)
        allowed, remaining, retry_after = limiter.is_allowed(client_ip)

        headers = {
            "X-RateLimit-Limit": str(limiter.max_requests),
            "X-RateLimit-Remaining": str(remaining),
            "X-RateLimit-Window": str(limiter.window_seconds),
        }

        if not allowed:
            headers["Retry-After"] = str(retry_after)
            logger.warning(
                f"Rate limit exceeded for {endpoint}. "
                f"Limit: {limiter.max_requests}/{limiter.window_seconds}s. "
                f"Retry after: {retry_after}s"
            )
            raise HTTPException(
                status_code=429,
                detail=f"Rate limit exceeded. Try again in {retry_after} seconds.",
                headers=headers,
            )

        return headers

    def reset(self) -> None:
        self.limiters.clear()


rate_limit_manager = RateLimitManager()


def check_rate_limit(endpoint: str, request: Request) -> dict:
    """Check the shared manager; see RateLimitManager.check_rate_limit."""
    return rate_limit_manager.check_rate_limit(endpoint, request)
