"""
Rate Limiting Middleware

Token bucket rate limiter guarding the login endpoint against password
guessing. Buckets are keyed by client IP.
"""

import time
from dataclasses import dataclass, field
from typing import Dict

from fastapi import HTTPException, Request, status

from teacher_portal.core.config import settings


# ============== Token Bucket Implementation ==============

@dataclass
class TokenBucket:
    """Token bucket for rate limiting."""
    capacity: int          # Maximum tokens
    refill_rate: float     # Tokens per second
    tokens: float = field(default=0, init=False)
    last_refill: float = field(default=0, init=False)

    def __post_init__(self):
        self.tokens = float(self.capacity)
        self.last_refill = time.time()

    def consume(self, tokens: int = 1) -> bool:
        """
        Attempt to consume tokens.

        Args:
            tokens: Number of tokens to consume.

        Returns:
            True if tokens were available, False otherwise.
        """
        self._refill()

        if self.tokens >= tokens:
            self.tokens -= tokens
            return True
        return False

    def _refill(self) -> None:
        now = time.time()
        elapsed = now - self.last_refill
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now


# ============== Rate Limiter ==============

class RateLimiter:
    """Per-client rate limiter using the token bucket algorithm."""

    CLEANUP_INTERVAL = 100  # requests between stale-bucket sweeps

    def __init__(
        self,
        requests_per_minute: int = 60,
        burst_capacity: int = 10,
        trust_forwarded_for: bool = False,
    ):
        """
        Args:
            requests_per_minute: Sustained rate limit.
            burst_capacity: Maximum burst size.
            trust_forwarded_for: Key on X-Forwarded-For instead of the peer
                address. Only safe behind a proxy that overwrites the header.
        """
        self._buckets: Dict[str, TokenBucket] = {}
        self._burst_capacity = burst_capacity
        self._refill_rate = requests_per_minute / 60.0
        self._trust_forwarded_for = trust_forwarded_for
        self._requests = 0

    def _get_key(self, request: Request) -> str:
        forwarded = request.headers.get("X-Forwarded-For") if self._trust_forwarded_for else None
        if forwarded:
            ip = forwarded.split(",")[0].strip()
        else:
            ip = request.client.host if request.client else "unknown"
        return f"ip:{ip}"

    def _get_bucket(self, key: str) -> TokenBucket:
        if key not in self._buckets:
            self._buckets[key] = TokenBucket(
                capacity=self._burst_capacity,
                refill_rate=self._refill_rate,
            )
        return self._buckets[key]

    def is_allowed(self, request: Request) -> bool:
        self._requests += 1
        if self._requests % self.CLEANUP_INTERVAL == 0:
            self.cleanup(max_age=self._full_after())
        return self._get_bucket(self._get_key(request)).consume()

    def _full_after(self) -> float:
        """Seconds after which an idle bucket has refilled completely."""
        return self._burst_capacity / self._refill_rate if self._refill_rate else 3600

    def stats(self) -> Dict[str, int]:
        return {"clients": len(self._buckets), "requests": self._requests}

    def reset(self) -> None:
        self._buckets.clear()
        self._requests = 0

    def cleanup(self, max_age: float = 3600) -> int:
        """
        Remove stale buckets.

        Args:
            max_age: Maximum age in seconds for inactive buckets.

        Returns:
            Number of buckets removed.
        """
        now = time.time()
        stale_keys = [
            key for key, bucket in self._buckets.items()
            if (now - bucket.last_refill) > max_age
        ]
        for key in stale_keys:
            del self._buckets[key]
        return len(stale_keys)


# Login limiter
login_limiter = RateLimiter(
    requests_per_minute=settings.LOGIN_RATE_PER_MINUTE,
    burst_capacity=settings.LOGIN_BURST,
    trust_forwarded_for=settings.TRUST_FORWARDED_FOR,
)


# ============== Dependency ==============

async def limit_login(request: Request) -> None:
    """Route dependency rejecting login attempts beyond the per-IP budget."""
    if not login_limiter.is_allowed(request):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts. Please try again later.",
            headers={"Retry-After": "60"},
        )
