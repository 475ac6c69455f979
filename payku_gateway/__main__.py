"""Run the gateway proxy with uvicorn."""
import uvicorn

from payku_gateway.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "payku_gateway.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        workers=settings.api_workers if not settings.debug else 1,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
