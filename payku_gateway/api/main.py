"""
Main FastAPI application.

PAYKU gateway proxy with:
- Open CORS policy and OPTIONS short-circuit on every path
- Error translation to ``{"error": ...}`` bodies
- Request ID tracking
- Structured logging
- Prometheus metrics
"""
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from payku_gateway import __version__
from payku_gateway.config import get_settings
from payku_gateway.core.signer import SignatureError
from payku_gateway.integrations.payku_client import ConfigurationError, PaykuError
from payku_gateway.monitoring.logging import setup_logging

from .dependencies import get_key_value_store
from .routes import account_router, monitoring_router, transaction_router

# Setup logging first
setup_logging()
logger = structlog.get_logger(__name__)

settings = get_settings()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, Any]:
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        env=settings.app_env,
        payku_configured=settings.has_payku_credentials,
    )

    yield

    logger.info("application_shutdown")
    if get_key_value_store.cache_info().currsize:
        try:
            await get_key_value_store().close()
            logger.info("redis_store_closed")
        except Exception as e:
            logger.error("redis_store_shutdown_error", error=str(e))


app = FastAPI(
    title="PAYKU Gateway Proxy",
    description=(
        "Signs and forwards transaction, withdrawal, transfer and account requests "
        "to the PAYKU payment gateway, with per-client rate limiting on transaction creation."
    ),
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


@app.middleware("http")
async def add_request_id_middleware(request: Request, call_next: Any) -> Response:
    """
    Add request ID to all requests for tracing.

    Also adds timing information and structured logging context.
    """
    request_id = str(uuid.uuid4())
    start_time = time.time()

    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )

    logger.info(
        "request_started",
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        client_host=request.client.host if request.client else None,
    )

    try:
        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id

        duration = time.time() - start_time
        logger.info(
            "request_completed",
            request_id=request_id,
            status_code=response.status_code,
            duration_seconds=duration,
        )

        return response

    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            "request_failed",
            request_id=request_id,
            error=str(e),
            duration_seconds=duration,
        )
        raise

    finally:
        structlog.contextvars.clear_contextvars()


@app.middleware("http")
async def cors_middleware(request: Request, call_next: Any) -> Response:
    """Apply CORS headers to every response; answer OPTIONS on any path with an empty 200."""
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)

    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


def _error_response(
    status_code: int, message: str, details: Any = None, headers: Dict[str, str] | None = None
) -> JSONResponse:
    content: Dict[str, Any] = {"error": message}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _validation_message(errors: List[Dict[str, Any]]) -> str:
    if not errors:
        return "Invalid request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Request body is not valid JSON"
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query"))
    if first.get("type") == "missing":
        return f"Missing required parameter: {field or 'body'}"
    return f"Invalid parameter {field or 'body'}: {first.get('msg', 'invalid value')}"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Missing or malformed input: 400 before any gateway call."""
    errors = exc.errors()
    message = _validation_message(errors)
    logger.warning("request_validation_error", error=message, path=request.url.path)

    details = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg"),
            "type": error.get("type"),
        }
        for error in errors
    ]
    return _error_response(status.HTTP_400_BAD_REQUEST, message, details)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(exc.status_code, str(exc.detail), headers=exc.headers)


@app.exception_handler(PaykuError)
async def payku_error_handler(request: Request, exc: PaykuError) -> JSONResponse:
    """Relay the gateway's status (500 when there was no response) and body."""
    logger.error(
        "api_gateway_error",
        status_code=exc.status_code,
        error=exc.message,
        path=request.url.path,
    )
    return _error_response(
        exc.status_code or status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message, exc.body
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("api_configuration_error", error=str(exc))
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


@app.exception_handler(SignatureError)
async def signature_error_handler(request: Request, exc: SignatureError) -> JSONResponse:
    logger.warning("api_signature_error", error=str(exc))
    return _error_response(status.HTTP_400_BAD_REQUEST, str(exc))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled exceptions.

    Runs outside the HTTP middlewares, so CORS headers are set here.
    """
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )

    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal Server Error",
        headers=CORS_HEADERS,
    )


app.include_router(transaction_router)
app.include_router(account_router)
app.include_router(monitoring_router)


@app.get("/", tags=["root"])
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "service": settings.app_name,
        "version": __version__,
        "status": "operational",
        "environment": settings.app_env,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics",
    }
