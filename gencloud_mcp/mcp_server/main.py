# FastAPI MCP server: one catch-all route handed to the dispatcher

import argparse
import time
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exception_handlers import (
    http_exception_handler as default_http_exception_handler,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

from gencloud_mcp.clients import Collaborators, build_collaborators
from gencloud_mcp.shared.config import Config, Settings, init_config
from gencloud_mcp.shared.observability import (
    get_correlation_id,
    get_logger,
    set_correlation_id,
    setup_logging,
    setup_metrics,
    setup_tracing,
)
from gencloud_mcp.shared.observability.metrics import (
    http_request_duration_seconds,
    http_requests_total,
)

from .dispatcher import Dispatcher, invalid_request_method

logger = get_logger(__name__)

# Every method is routed to the dispatcher, which rejects all but GET/POST
ROUTED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"]


def create_app(
    config: Optional[Config] = None,
    settings: Optional[Settings] = None,
    collaborators: Optional[Collaborators] = None,
) -> FastAPI:
    """
    Build the ASGI app.

    Config and settings are loaded from YAML/environment when not given.
    Collaborators are built from them when not given; injected ones are
    left for the caller to close.
    """
    if config is None:
        config, loaded_settings = init_config()
        settings = settings or loaded_settings
    elif settings is None:
        settings = Settings()

    setup_logging(config.app.log_level)

    owns_collaborators = collaborators is None
    if collaborators is None:
        collaborators = build_collaborators(config, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting MCP server", version=config.app.version)
        setup_metrics(config.monitoring.metrics_port)
        yield
        logger.info("Shutting down MCP server")
        if owns_collaborators:
            await collaborators.aclose()

    # Docs routes are disabled: GET on any path is the health probe
    app = FastAPI(
        title=config.app.name,
        version=config.app.version,
        description="MCP tool server for R2 files and Vectorize semantic search",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.collaborators = collaborators
    app.state.dispatcher = Dispatcher.from_config(config, collaborators)

    if config.monitoring.tracing_enabled:
        setup_tracing(app, settings, service_version=config.app.version)

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        """Add correlation ID to request context"""
        corr_id = request.headers.get("X-Correlation-ID")
        if not corr_id:
            corr_id = get_correlation_id()
        else:
            set_correlation_id(corr_id)

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = corr_id
        return response

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """Track request metrics"""
        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception as e:
            http_requests_total.labels(method=request.method, status="500").inc()
            logger.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
            )
            raise

        latency = time.time() - start_time
        http_requests_total.labels(
            method=request.method, status=str(response.status_code)
        ).inc()
        http_request_duration_seconds.labels(method=request.method).observe(latency)
        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            latency_ms=round(latency * 1000, 2),
        )
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Methods outside ROUTED_METHODS are refused by routing with a 405
        if exc.status_code == 405:
            return invalid_request_method()
        return await default_http_exception_handler(request, exc)

    @app.api_route("/{path:path}", methods=ROUTED_METHODS, include_in_schema=False)
    async def mcp_endpoint(request: Request):
        return await request.app.state.dispatcher.handle(request)

    return app


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the gencloud-qa-mcp server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    config, _ = init_config()
    uvicorn.run(
        "gencloud_mcp.mcp_server.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=config.app.log_level.lower(),
    )


if __name__ == "__main__":
    main()
