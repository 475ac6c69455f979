"""
API routes proxying PAYKU operations.

Paths follow the serverless handler names the web client already calls
(``/api/createTransaction``, ``/api/getTransaction?id=...``). Gateway,
configuration and signing errors are translated by the application's
exception handlers.
"""
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from payku_gateway import __version__
from payku_gateway.core.rate_limiter import RateLimiter
from payku_gateway.integrations.payku_client import PaykuClient
from payku_gateway.monitoring.health import HealthCheck

from .dependencies import client_identity, get_health_check, get_payku_client, get_rate_limiter
from .schemas import CreateTransactionRequest, TransferRequest, WithdrawRequest

logger = structlog.get_logger(__name__)

transaction_router = APIRouter(prefix="/api", tags=["transactions"])
account_router = APIRouter(prefix="/api", tags=["accounts"])
monitoring_router = APIRouter(tags=["monitoring"])


@transaction_router.post(
    "/createTransaction",
    summary="Create a transaction",
    description="Create a PAYKU transaction. Limited to one request per client per interval.",
)
async def create_transaction(
    body: CreateTransactionRequest,
    request: Request,
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    client: PaykuClient = Depends(get_payku_client),
) -> Any:
    identity = client_identity(request)
    decision = await rate_limiter.check_and_record(identity)
    if not decision.allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many requests. Try again in {decision.retry_after_seconds} seconds.",
            headers={"Retry-After": str(decision.retry_after_seconds)},
        )

    logger.info("api_create_transaction_request", external_id=body.external_id)
    return await client.create_transaction(body.to_payload())


@transaction_router.get(
    "/getTransaction",
    summary="Get transaction",
    description="Retrieve a PAYKU transaction by ID",
)
async def get_transaction(
    transaction_id: str = Query(..., alias="id", min_length=1, description="Transaction ID"),
    client: PaykuClient = Depends(get_payku_client),
) -> Any:
    logger.info("api_get_transaction_request", transaction_id=transaction_id)
    return await client.get_transaction(transaction_id)


@transaction_router.post(
    "/cancelTransaction",
    summary="Cancel transaction",
    description="Cancel a pending PAYKU transaction",
)
async def cancel_transaction(
    transaction_id: str = Query(..., alias="id", min_length=1, description="Transaction ID"),
    client: PaykuClient = Depends(get_payku_client),
) -> Any:
    logger.info("api_cancel_transaction_request", transaction_id=transaction_id)
    return await client.cancel_transaction(transaction_id)


@account_router.post("/withdraw", summary="Withdraw balance")
async def withdraw(
    body: WithdrawRequest,
    client: PaykuClient = Depends(get_payku_client),
) -> Any:
    logger.info("api_withdraw_request", user_id=body.userId, kode=body.kode)
    return await client.withdraw(body.to_payload())


@account_router.get("/getAccount", summary="Get account")
async def get_account(
    user_id: str = Query(..., alias="userId", min_length=1, description="PAYKU user ID"),
    client: PaykuClient = Depends(get_payku_client),
) -> Any:
    logger.info("api_get_account_request", user_id=user_id)
    return await client.get_account(user_id)


@account_router.post("/transfer", summary="Transfer balance")
async def transfer(
    body: TransferRequest,
    client: PaykuClient = Depends(get_payku_client),
) -> Any:
    logger.info("api_transfer_request")
    return await client.transfer(body.to_payload())


@monitoring_router.get(
    "/health",
    summary="Health check",
    description="Report PAYKU configuration and rate limit store connectivity",
)
async def health(health_check: HealthCheck = Depends(get_health_check)) -> Dict[str, Any]:
    result = await health_check.check_all()
    result["version"] = __version__
    return result


@monitoring_router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Expose Prometheus metrics",
)
async def prometheus_metrics() -> Response:
    """Expose Prometheus metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
