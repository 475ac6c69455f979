"""
Pytest configuration and fixtures.
"""
from typing import Any, AsyncGenerator, Dict, Optional, Tuple
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from payku_gateway.api.dependencies import get_health_check, get_payku_client, get_rate_limiter
from payku_gateway.api.main import app
from payku_gateway.config import Settings, get_settings
from payku_gateway.core.rate_limiter import RateLimiter
from payku_gateway.integrations.payku_client import PaykuClient, PaykuCredentials
from payku_gateway.monitoring.health import HealthCheck

TEST_API_KEY = "pk_test_key"
TEST_SECRET_KEY = "sk_test_secret"
TEST_BASE_URL = "https://payku.test/api"


def pytest_configure(config: Any) -> None:
    config.addinivalue_line("markers", "unit: fast tests without external services")
    config.addinivalue_line("markers", "integration: tests exercising the full ASGI app")


class FakeClock:
    """Manually advanced epoch-milliseconds clock."""

    def __init__(self, now: int = 0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class InMemoryKeyValueStore:
    """Key/value store fake with expiry driven by a FakeClock."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.data: Dict[str, Tuple[str, int]] = {}
        self.ttls: Dict[str, int] = {}

    async def get(self, key: str) -> Optional[str]:
        entry = self.data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self.clock() >= expires_at:
            del self.data[key]
            return None
        return value

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        self.data[key] = (value, self.clock() + ttl_seconds * 1000)
        self.ttls[key] = ttl_seconds

    async def ping(self) -> bool:
        return True


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        payku_api_key=TEST_API_KEY,
        payku_secret_key=TEST_SECRET_KEY,
        payku_base_url=TEST_BASE_URL,
        redis_url="redis://localhost:6379/1",
        rate_limit_interval_ms=60_000,
        app_name="payku-gateway-test",
        app_env="test",
        log_level="DEBUG",
    )


@pytest.fixture
def credentials() -> PaykuCredentials:
    return PaykuCredentials(
        api_key=TEST_API_KEY, secret_key=TEST_SECRET_KEY, base_url=TEST_BASE_URL
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(now=1_700_000_000_000)


@pytest.fixture
def kv_store(clock: FakeClock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(clock)


@pytest.fixture
def rate_limiter(kv_store: InMemoryKeyValueStore, clock: FakeClock) -> RateLimiter:
    return RateLimiter(kv_store, interval_ms=60_000, clock=clock)


@pytest.fixture
def mock_payku_client() -> AsyncMock:
    """PaykuClient double; each operation returns a canned gateway body."""
    mock = AsyncMock(spec=PaykuClient)
    mock.create_transaction.return_value = {
        "success": True,
        "data": {"transaction_id": "trx_123", "payment_url": "https://payku.test/pay/trx_123"},
    }
    mock.get_transaction.return_value = {"success": True, "data": {"status": "pending"}}
    mock.cancel_transaction.return_value = {"success": True, "data": {"status": "cancelled"}}
    mock.withdraw.return_value = {"success": True, "data": {"status": "processing"}}
    mock.get_account.return_value = {"success": True, "data": {"balance": 50000}}
    mock.transfer.return_value = {"success": True, "data": {"status": "completed"}}
    return mock


@pytest.fixture
def app_overrides(
    test_settings: Settings,
    rate_limiter: RateLimiter,
    kv_store: InMemoryKeyValueStore,
    mock_payku_client: AsyncMock,
) -> Any:
    """Wire the app to test settings, the in-memory store and the client double."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_payku_client] = lambda: mock_payku_client
    app.dependency_overrides[get_health_check] = lambda: HealthCheck(test_settings, kv_store)
    yield app.dependency_overrides
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app_overrides: Any) -> AsyncGenerator[AsyncClient, Any]:
    """Create test HTTP client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def sample_transaction_data() -> Dict[str, Any]:
    """Sample transaction request body."""
    return {
        "external_id": "order-1001",
        "amount": 10000,
        "customer_name": "Budi Santoso",
        "customer_email": "budi@example.com",
    }
