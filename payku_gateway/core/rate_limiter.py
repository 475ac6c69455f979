"""
Per-client minimum-interval rate limiting backed by a key/value store.

Each identity (client address) owns a single key holding the epoch
milliseconds of its last accepted request. The key expires on its own after
one interval, so an absent key always means "allowed".

The check is a plain read followed by a write. Two concurrent requests from
the same identity can both pass before either write lands; the limiter is
best effort.
"""
import math
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

import structlog

from payku_gateway.core.signer import current_timestamp_ms
from payku_gateway.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)

DEFAULT_INTERVAL_MS = 60_000
KEY_PREFIX = "rate_limit:"


class KeyValueStore(Protocol):
    """Narrow store interface the rate limiter depends on."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        ...


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate limit check."""

    allowed: bool
    retry_after_seconds: int = 0


class RateLimiter:
    """
    Enforces a minimum interval between requests from the same identity.

    Usage:
        limiter = RateLimiter(store, interval_ms=60_000)
        decision = await limiter.check_and_record("203.0.113.7")
        if not decision.allowed:
            ...  # respond 429 with decision.retry_after_seconds
    """

    def __init__(
        self,
        store: KeyValueStore,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        clock: Optional[Callable[[], int]] = None,
    ):
        """
        Initialize rate limiter.

        Args:
            store: Key/value store holding the last-request timestamps
            interval_ms: Default minimum interval between requests
            clock: Returns current epoch milliseconds (defaults to wall clock)
        """
        if interval_ms <= 0:
            raise ValueError("Rate limit interval must be positive")
        self.store = store
        self.interval_ms = interval_ms
        self.clock = clock or current_timestamp_ms

    @staticmethod
    def key_for(identity: str) -> str:
        """Store key for an identity."""
        return f"{KEY_PREFIX}{identity}"

    async def check_and_record(
        self, identity: str, interval_ms: Optional[int] = None
    ) -> RateLimitDecision:
        """
        Check whether ``identity`` may proceed and record the attempt if so.

        Args:
            identity: Client identity (usually its address)
            interval_ms: Interval override for this check

        Returns:
            RateLimitDecision: ``allowed`` and, when denied, seconds to wait
        """
        interval = interval_ms if interval_ms is not None else self.interval_ms
        if interval <= 0:
            raise ValueError("Rate limit interval must be positive")

        key = self.key_for(identity)
        now = self.clock()

        last_ts = self._parse_timestamp(await self.store.get(key), key)
        if last_ts is not None:
            elapsed = now - last_ts
            if elapsed < interval:
                retry_after = math.ceil((interval - elapsed) / 1000)
                logger.info(
                    "rate_limit_denied",
                    identity=identity,
                    elapsed_ms=elapsed,
                    retry_after_seconds=retry_after,
                )
                metrics.record_rate_limit_decision(allowed=False)
                return RateLimitDecision(allowed=False, retry_after_seconds=retry_after)

        ttl_seconds = max(1, math.ceil(interval / 1000))
        await self.store.set_with_expiry(key, str(now), ttl_seconds)

        logger.debug("rate_limit_recorded", identity=identity, ttl_seconds=ttl_seconds)
        metrics.record_rate_limit_decision(allowed=True)
        return RateLimitDecision(allowed=True)

    @staticmethod
    def _parse_timestamp(raw: Optional[str], key: str) -> Optional[int]:
        if raw is None:
            return None
        try:
            return int(raw)
        except (TypeError, ValueError):
            # Corrupt record: overwrite it as if absent.
            logger.warning("rate_limit_record_invalid", key=key, value=raw)
            return None
