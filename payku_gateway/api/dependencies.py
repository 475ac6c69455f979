"""FastAPI dependencies shared by the route handlers."""
from functools import lru_cache
from typing import AsyncGenerator

from fastapi import Depends, Request

from payku_gateway.config import Settings, get_settings
from payku_gateway.core.rate_limiter import RateLimiter
from payku_gateway.integrations.payku_client import PaykuClient, PaykuCredentials
from payku_gateway.integrations.redis_store import RedisKeyValueStore
from payku_gateway.monitoring.health import HealthCheck


@lru_cache()
def get_key_value_store() -> RedisKeyValueStore:
    """Process-wide Redis store; the client connects lazily."""
    return RedisKeyValueStore.from_settings(get_settings())


def get_rate_limiter(settings: Settings = Depends(get_settings)) -> RateLimiter:
    return RateLimiter(get_key_value_store(), interval_ms=settings.rate_limit_interval_ms)


def get_health_check(settings: Settings = Depends(get_settings)) -> HealthCheck:
    return HealthCheck(settings, get_key_value_store())


async def get_payku_client(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[PaykuClient, None]:
    """
    Build a PAYKU client for one request.

    Raises:
        ConfigurationError: If PAYKU credentials are not configured
    """
    async with PaykuClient(PaykuCredentials.from_settings(settings)) as client:
        yield client


def client_identity(request: Request) -> str:
    """
    Identity used for rate limiting.

    The X-Forwarded-For value is taken verbatim and is client-controlled
    unless a trusted proxy overwrites it.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
