"""
Veritas API Proxy Server

FastAPI application for the Veritas API proxy.
"""

import os
import logging
from pathlib import Path
from typing import Optional, List
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import ProxyConfig, load_config, config_from_env
from .errors import ProxyError
from .gateway import ForwardingGateway, INTERNAL_ERROR
from .routes import Route, build_route_table
from .upstream import UpstreamClient

logger = logging.getLogger("veritas-proxy")


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# =============================================================================
# Application Factory
# =============================================================================

def create_app(
    config: Optional[ProxyConfig] = None,
    client: Optional[UpstreamClient] = None,
    routes: Optional[List[Route]] = None,
) -> FastAPI:
    """
    Create FastAPI application.

    Args:
        config: Proxy configuration; read from the environment when omitted
        client: Outbound HTTP capability; a real httpx-backed client by default
        routes: Route table; built from a ForwardingGateway when omitted
    """
    config = config or config_from_env()

    if routes is None:
        gateway = ForwardingGateway(config, client)
        routes = build_route_table(gateway)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        logger.info(f"Veritas API Proxy starting ({len(routes)} routes)")
        logger.info(f"  Trending crypto providers: {', '.join(config.trending.crypto_providers)}")
        yield
        logger.info("Veritas API Proxy shutting down...")

    app = FastAPI(
        title="Veritas API Proxy",
        description="Forwarding proxy for chat, stock and crypto APIs",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.routes = routes

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Routes
    # =========================================================================

    for route in routes:
        app.add_api_route(
            route.path,
            route.handler,
            methods=[route.method],
            name=route.name,
            response_model=None,
        )

    # =========================================================================
    # Error handlers
    # =========================================================================

    @app.exception_handler(ProxyError)
    async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
        log = logger.warning if exc.status_code < 500 else logger.error
        log(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR})

    return app


# =============================================================================
# Main
# =============================================================================

# Carries the config file path into reloaded worker processes
CONFIG_PATH_ENV = "VERITAS_CONFIG"


def app_factory() -> FastAPI:
    """Import-string entry point for uvicorn's reloader."""
    config_path = os.environ.get(CONFIG_PATH_ENV)
    config = load_config(config_path) if config_path else config_from_env()
    return create_app(config)


def main(config_path: str = None, host: str = None, port: int = None, reload: bool = False):
    """Run the Veritas API Proxy server."""
    import uvicorn

    config = load_config(config_path) if config_path else config_from_env()
    if host:
        config.server.host = host
    if port:
        config.server.port = port

    setup_logging(config.server.log_level)
    logger.info(f"Veritas API Proxy running on port {config.server.port}")

    if reload or config.server.reload:
        if config_path:
            os.environ[CONFIG_PATH_ENV] = str(Path(config_path).resolve())
        uvicorn.run(
            "veritas_proxy.server:app_factory",
            factory=True,
            host=config.server.host,
            port=config.server.port,
            reload=True,
            log_level=config.server.log_level.lower(),
        )
        return

    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        log_level=config.server.log_level.lower(),
    )


if __name__ == "__main__":
    main()
