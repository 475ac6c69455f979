"""
Unit tests for the minimum-interval rate limiter.
"""
import pytest

from payku_gateway.core.rate_limiter import RateLimitDecision, RateLimiter

from .conftest import FakeClock, InMemoryKeyValueStore


@pytest.fixture
def epoch_clock() -> FakeClock:
    return FakeClock(now=0)


@pytest.fixture
def limiter(epoch_clock: FakeClock) -> RateLimiter:
    return RateLimiter(InMemoryKeyValueStore(epoch_clock), interval_ms=60_000, clock=epoch_clock)


class TestRateLimiter:
    """Test suite for RateLimiter."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_allow_deny_allow_sequence(
        self, limiter: RateLimiter, epoch_clock: FakeClock
    ) -> None:
        """t=0 allowed, t=30s denied with 30s to wait, t=61s allowed again."""
        assert await limiter.check_and_record("203.0.113.7", 60_000) == RateLimitDecision(
            allowed=True
        )

        epoch_clock.now = 30_000
        denied = await limiter.check_and_record("203.0.113.7", 60_000)
        assert denied.allowed is False
        assert denied.retry_after_seconds == 30

        epoch_clock.now = 61_000
        assert (await limiter.check_and_record("203.0.113.7", 60_000)).allowed is True

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_record_written_with_interval_ttl(self, epoch_clock: FakeClock) -> None:
        store = InMemoryKeyValueStore(epoch_clock)
        limiter = RateLimiter(store, clock=epoch_clock)
        epoch_clock.now = 1_234

        await limiter.check_and_record("198.51.100.1")

        assert store.data["rate_limit:198.51.100.1"][0] == "1234"
        assert store.ttls["rate_limit:198.51.100.1"] == 60

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_ttl_rounds_up_to_whole_seconds(self, epoch_clock: FakeClock) -> None:
        store = InMemoryKeyValueStore(epoch_clock)
        limiter = RateLimiter(store, clock=epoch_clock)

        await limiter.check_and_record("a", interval_ms=1_500)
        await limiter.check_and_record("b", interval_ms=200)

        assert store.ttls["rate_limit:a"] == 2
        assert store.ttls["rate_limit:b"] == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_retry_after_rounds_up(
        self, limiter: RateLimiter, epoch_clock: FakeClock
    ) -> None:
        await limiter.check_and_record("client")

        epoch_clock.now = 59_001
        assert (await limiter.check_and_record("client")).retry_after_seconds == 1

        epoch_clock.now = 1
        assert (await limiter.check_and_record("client")).retry_after_seconds == 60

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_denied_request_does_not_extend_window(
        self, limiter: RateLimiter, epoch_clock: FakeClock
    ) -> None:
        await limiter.check_and_record("client")
        epoch_clock.now = 50_000
        await limiter.check_and_record("client")

        epoch_clock.now = 60_000
        assert (await limiter.check_and_record("client")).allowed is True

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_identities_are_independent(self, limiter: RateLimiter) -> None:
        assert (await limiter.check_and_record("10.0.0.1")).allowed is True
        assert (await limiter.check_and_record("10.0.0.2")).allowed is True
        assert (await limiter.check_and_record("10.0.0.1")).allowed is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_elapsed_equal_to_interval_is_allowed(self, epoch_clock: FakeClock) -> None:
        store = InMemoryKeyValueStore(epoch_clock)
        await store.set_with_expiry("rate_limit:client", "0", 3600)
        limiter = RateLimiter(store, interval_ms=60_000, clock=epoch_clock)

        epoch_clock.now = 60_000
        assert (await limiter.check_and_record("client")).allowed is True

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_corrupt_record_treated_as_absent(self, epoch_clock: FakeClock) -> None:
        store = InMemoryKeyValueStore(epoch_clock)
        await store.set_with_expiry("rate_limit:client", "not-a-number", 60)
        limiter = RateLimiter(store, clock=epoch_clock)

        assert (await limiter.check_and_record("client")).allowed is True
        assert store.data["rate_limit:client"][0] == "0"

    @pytest.mark.unit
    def test_non_positive_interval_rejected(self, epoch_clock: FakeClock) -> None:
        with pytest.raises(ValueError):
            RateLimiter(InMemoryKeyValueStore(epoch_clock), interval_ms=0)
