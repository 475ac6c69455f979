"""
PAYKU REST API client with HMAC request signing.

Every call:
- stamps a fresh millisecond timestamp
- signs the operation payload with the shared secret
- sends X-API-Key, X-Timestamp and X-Signature headers
- returns the parsed JSON body, or raises PaykuError

No retries and no caching: each call is a single outbound request.
"""
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional
from urllib.parse import quote

import httpx
import structlog

from payku_gateway.config import Settings
from payku_gateway.core.signer import current_timestamp_ms, generate_signature
from payku_gateway.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://payku.my.id/api"

API_KEY_HEADER = "X-API-Key"
TIMESTAMP_HEADER = "X-Timestamp"
SIGNATURE_HEADER = "X-Signature"


class ConfigurationError(Exception):
    """Raised when the client is missing required configuration."""

    pass


class PaykuError(Exception):
    """Raised when a PAYKU call fails at the transport or HTTP level."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Any = None,
        original_error: Optional[Exception] = None,
    ):
        """
        Initialize PAYKU error.

        Args:
            message: Error message
            status_code: Gateway HTTP status, None when no response was received
            body: Gateway response body, passed through as received
            original_error: Underlying transport exception
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body
        self.original_error = original_error


@dataclass(frozen=True)
class PaykuCredentials:
    """Immutable connection settings for a PaykuClient."""

    api_key: str
    secret_key: str
    base_url: str = DEFAULT_BASE_URL

    @classmethod
    def from_settings(cls, settings: Settings) -> "PaykuCredentials":
        return cls(
            api_key=settings.payku_api_key,
            secret_key=settings.payku_secret_key,
            base_url=settings.payku_base_url,
        )


class PaykuClient:
    """
    Async client for the PAYKU payment gateway.

    Usage:
        async with PaykuClient(credentials) as client:
            transaction = await client.get_transaction("trx_123")
    """

    def __init__(
        self,
        credentials: PaykuCredentials,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        """
        Initialize PAYKU client.

        Args:
            credentials: API key, secret key and base URL
            http_client: Optional preconfigured HTTP client (owned by the caller)
            clock: Returns current epoch milliseconds (defaults to wall clock)

        Raises:
            ConfigurationError: If the API key or secret key is empty
        """
        if not credentials.api_key or not credentials.secret_key:
            raise ConfigurationError("PAYKU apiKey and secretKey are required")

        self.credentials = credentials
        self.clock = clock or current_timestamp_ms
        self._owns_http_client = http_client is None
        self.http = http_client or httpx.AsyncClient(
            headers={"Content-Type": "application/json"},
        )

        logger.debug("payku_client_initialized", base_url=credentials.base_url)

    async def __aenter__(self) -> "PaykuClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http_client:
            await self.http.aclose()

    def prepare_headers(self, payload: Optional[Mapping[str, Any]]) -> Dict[str, str]:
        """
        Build authentication headers for a payload.

        Args:
            payload: Payload covered by the signature

        Returns:
            Dict[str, str]: X-API-Key, X-Timestamp and X-Signature headers
        """
        timestamp = str(self.clock())
        signature = generate_signature(self.credentials.secret_key, payload, timestamp)

        return {
            API_KEY_HEADER: self.credentials.api_key,
            TIMESTAMP_HEADER: timestamp,
            SIGNATURE_HEADER: signature,
        }

    def _url(self, path: str) -> str:
        return f"{self.credentials.base_url}{path}"

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        payload: Mapping[str, Any],
        send_body: bool,
    ) -> Any:
        """
        Sign and send one request.

        Raises:
            PaykuError: On transport failure or non-2xx response
        """
        headers = self.prepare_headers(payload)
        start_time = time.time()

        logger.info("gateway_request_sent", operation=operation, method=method, path=path)

        try:
            response = await self.http.request(
                method,
                self._url(path),
                headers=headers,
                json=dict(payload) if send_body else None,
            )
        except httpx.HTTPError as e:
            metrics.record_gateway_call(operation, "transport_error", time.time() - start_time)
            logger.error(
                "gateway_transport_error",
                operation=operation,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise PaykuError(
                f"PAYKU request failed: {e}", status_code=None, original_error=e
            ) from e

        duration = time.time() - start_time
        metrics.record_gateway_call(operation, str(response.status_code), duration)
        body = self._parse_body(response)

        if not response.is_success:
            message = self._error_message(response.status_code, body)
            logger.error(
                "gateway_error_response",
                operation=operation,
                status_code=response.status_code,
                error_message=message,
            )
            raise PaykuError(message, status_code=response.status_code, body=body)

        logger.info(
            "gateway_request_completed",
            operation=operation,
            status_code=response.status_code,
            duration_seconds=duration,
        )
        return body

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _error_message(status_code: int, body: Any) -> str:
        if isinstance(body, dict):
            for field in ("message", "error"):
                if isinstance(body.get(field), str) and body[field]:
                    return body[field]
        return f"Gateway responded with status {status_code}"

    async def create_transaction(self, data: Mapping[str, Any]) -> Any:
        """
        Create a payment transaction.

        Args:
            data: Transaction fields (external_id, amount, customer_name,
                customer_email and any extra scalars)

        Returns:
            Any: Gateway response body
        """
        return await self._request(
            "create_transaction", "POST", "/create-transaction", data, send_body=True
        )

    async def get_transaction(self, transaction_id: str) -> Any:
        """Retrieve a transaction by ID."""
        return await self._request(
            "get_transaction",
            "GET",
            f"/transaction/{quote(transaction_id, safe='')}",
            {"transaction_id": transaction_id},
            send_body=False,
        )

    async def cancel_transaction(self, transaction_id: str) -> Any:
        """Cancel a pending transaction."""
        return await self._request(
            "cancel_transaction",
            "POST",
            f"/transaction/{quote(transaction_id, safe='')}/cancel",
            {"transaction_id": transaction_id},
            send_body=True,
        )

    async def withdraw(self, data: Mapping[str, Any]) -> Any:
        """
        Withdraw balance to an e-wallet or bank.

        Args:
            data: Withdrawal fields (kode, amount, phone, userId)

        Returns:
            Any: Gateway response body
        """
        return await self._request("withdraw", "POST", "/withdraw", data, send_body=True)

    async def get_account(self, user_id: str) -> Any:
        """Retrieve account details for a user."""
        return await self._request(
            "get_account",
            "GET",
            f"/account/{quote(user_id, safe='')}",
            {"userId": user_id},
            send_body=False,
        )

    async def transfer(self, data: Mapping[str, Any]) -> Any:
        """
        Transfer balance to another PAYKU account.

        Args:
            data: Transfer fields (recipient_email, amount)

        Returns:
            Any: Gateway response body
        """
        return await self._request("transfer", "POST", "/transfer", data, send_body=True)
