"""
Health checks for the gateway proxy.

Checks:
- Rate limit store connectivity
- PAYKU credentials presence (no outbound call is made)
"""
from typing import Any, Dict

import structlog

from payku_gateway.config import Settings
from payku_gateway.integrations.redis_store import RedisKeyValueStore

logger = structlog.get_logger(__name__)


class HealthCheckError(Exception):
    """Raised when health check fails."""

    pass


class HealthCheck:
    """Reports the state of the proxy's dependencies."""

    def __init__(self, settings: Settings, store: RedisKeyValueStore) -> None:
        self.settings = settings
        self.store = store

    async def check_store(self) -> Dict[str, Any]:
        """
        Check rate limit store connectivity.

        Raises:
            HealthCheckError: If the store cannot be reached
        """
        try:
            await self.store.ping()
        except Exception as e:
            logger.error("store_health_check_failed", error=str(e))
            raise HealthCheckError(f"Store health check failed: {str(e)}") from e

        return {
            "status": "healthy",
            "service": "rate_limit_store",
            "message": "Store connection successful",
        }

    def check_credentials(self) -> Dict[str, Any]:
        if not self.settings.has_payku_credentials:
            return {
                "status": "unhealthy",
                "service": "payku",
                "error": "PAYKU_API_KEY and PAYKU_SECRET_KEY must be set",
            }
        return {"status": "healthy", "service": "payku", "base_url": self.settings.payku_base_url}

    async def check_all(self) -> Dict[str, Any]:
        """
        Run all health checks.

        Returns:
            Dict[str, Any]: ``healthy`` when every check passes, else ``degraded``
        """
        checks = {"payku": self.check_credentials()}

        try:
            checks["rate_limit_store"] = await self.check_store()
        except HealthCheckError as e:
            checks["rate_limit_store"] = {
                "status": "unhealthy",
                "service": "rate_limit_store",
                "error": str(e),
            }

        all_healthy = all(check["status"] == "healthy" for check in checks.values())
        return {
            "status": "healthy" if all_healthy else "degraded",
            "checks": checks,
        }
