"""External integrations: PAYKU REST API and the rate limit store."""
from .payku_client import ConfigurationError, PaykuClient, PaykuCredentials, PaykuError
from .redis_store import RedisKeyValueStore

__all__ = [
    "ConfigurationError",
    "PaykuClient",
    "PaykuCredentials",
    "PaykuError",
    "RedisKeyValueStore",
]
