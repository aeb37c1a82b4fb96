"""
Admission control for the directory API.

An in-process token bucket per client: each bucket holds ``limit_for_period``
permits refilled over ``refresh_seconds``. Requests may wait up to
``timeout_seconds`` for a permit before being rejected.
"""

from .token_bucket import RateLimitMiddleware, TokenBucket, TokenBucketRateLimiter

__all__ = ["RateLimitMiddleware", "TokenBucket", "TokenBucketRateLimiter"]
