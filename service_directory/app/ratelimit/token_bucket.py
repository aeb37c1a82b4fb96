"""
Token bucket rate limiter for the directory service.
"""

import asyncio
import math
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import Request

from shared.logging import get_logger, set_client_context


class TokenBucket:
    """Continuously refilled bucket; a reservation may drive it negative."""

    def __init__(self, capacity: int, refresh_seconds: float, clock: Callable[[], float] = time.monotonic):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if refresh_seconds <= 0:
            raise ValueError("refresh_seconds must be positive")
        self.capacity = capacity
        self.rate = capacity / refresh_seconds
        self._clock = clock
        self._tokens = float(capacity)
        self._updated = clock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(float(self.capacity), self._tokens + elapsed * self.rate)
        self._updated = now

    @property
    def available(self) -> float:
        self._refill()
        return self._tokens

    def reserve(self, max_wait: float) -> Optional[float]:
        """Take one permit, returning the wait before it may be used.

        Returns ``None`` without taking anything when the wait would exceed
        ``max_wait``.
        """
        self._refill()
        wait = 0.0 if self._tokens >= 1 else (1 - self._tokens) / self.rate
        if wait > max_wait:
            return None
        self._tokens -= 1
        return wait

    def time_until_available(self) -> float:
        self._refill()
        if self._tokens >= 1:
            return 0.0
        return (1 - self._tokens) / self.rate


class TokenBucketRateLimiter:
    """Per-client token buckets."""

    def __init__(
        self,
        limit_for_period: int = 50,
        refresh_seconds: float = 1.0,
        timeout_seconds: float = 0.5,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        max_clients: int = 10000,
    ):
        self.limit_for_period = limit_for_period
        self.refresh_seconds = refresh_seconds
        self.timeout_seconds = timeout_seconds
        self.max_clients = max_clients
        self._clock = clock
        self._sleep = sleep
        self._buckets: Dict[str, TokenBucket] = {}
        self.logger = get_logger("directory.rate_limiter")

    def _bucket(self, client_id: str) -> TokenBucket:
        bucket = self._buckets.get(client_id)
        if bucket is None:
            if len(self._buckets) >= self.max_clients:
                self._prune()
            bucket = TokenBucket(self.limit_for_period, self.refresh_seconds, clock=self._clock)
            self._buckets[client_id] = bucket
        return bucket

    def _prune(self) -> None:
        """Forget buckets that have refilled completely."""
        full = [key for key, bucket in self._buckets.items() if bucket.available >= bucket.capacity]
        for key in full:
            del self._buckets[key]
        self.logger.debug("Pruned idle rate limit buckets", removed=len(full), remaining=len(self._buckets))

    async def check_rate_limit(self, client_id: str, endpoint: str) -> Dict[str, Any]:
        """Admit or reject a request, waiting for a permit when allowed to."""
        bucket = self._bucket(client_id)
        wait = bucket.reserve(self.timeout_seconds)

        if wait is None:
            retry_after = max(1, math.ceil(bucket.time_until_available()))
            self.logger.warning(
                "Rate limit exceeded",
                client_id=client_id,
                endpoint=endpoint,
                limit=self.limit_for_period,
                retry_after=retry_after
            )
            return {
                "allowed": False,
                "limit": self.limit_for_period,
                "remaining": 0,
                "retry_after": retry_after
            }

        if wait > 0:
            await self._sleep(wait)

        return {
            "allowed": True,
            "limit": self.limit_for_period,
            "remaining": max(0, math.floor(bucket.available)),
            "waited_seconds": round(wait, 3)
        }

    def reset(self, client_id: Optional[str] = None) -> None:
        """Reset one client's bucket, or all of them."""
        if client_id is None:
            self._buckets.clear()
        else:
            self._buckets.pop(client_id, None)
        self.logger.info("Rate limit reset", client_id=client_id or "*")


class RateLimitMiddleware:
    """Rate limiting dependency for FastAPI routes."""

    def __init__(self, rate_limiter: TokenBucketRateLimiter):
        self.rate_limiter = rate_limiter
        self.logger = get_logger("directory.rate_limit_middleware")

    async def check_request(self, request: Request) -> Dict[str, Any]:
        """Check rate limit for request."""
        client_id = self._get_client_id(request)
        set_client_context(client_id)
        return await self.rate_limiter.check_rate_limit(client_id, request.url.path)

    def _get_client_id(self, request: Request) -> str:
        """Extract client ID from request."""
        forwarded_for = request.headers.get('X-Forwarded-For')
        if isinstance(forwarded_for, str) and forwarded_for:
            return forwarded_for.split(',')[0].strip()

        real_ip = request.headers.get('X-Real-IP')
        if isinstance(real_ip, str) and real_ip:
            return real_ip

        return request.client.host if request.client else 'unknown'
