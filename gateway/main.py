"""
FastAPI application for the Tink gateway.

Routes are matched in registration order:

1. POST /api/v1/oauth/token?code=...  exchange an authorization code
2. /api-proxy/*                       forward to the Tink API
3. /static/*                          static assets
4. anything else                      index.html

Usage:
    python -m gateway.main
    python -m gateway.main --port 8080
"""

import argparse
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import uvicorn
from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.concurrency import run_in_threadpool

from utils import log

from .config import Settings, load_settings
from .errors import ConfigError, GatewayError, MissingParameterError
from .models import ErrorResponse
from .upstream import UpstreamClient

logger = logging.getLogger(__name__)

PROXY_PREFIX = "/api-proxy"
STATIC_PREFIX = "/static"
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _not_found() -> PlainTextResponse:
    return PlainTextResponse("Not Found", status_code=404)


def read_file_response(root: Path, relative: str, media_type: str) -> Response:
    """
    Return the bytes of root/relative, or a plain-text 404 when the file
    cannot be read or lies outside root.
    """
    try:
        root = root.resolve()
        target = (root / relative).resolve()
        if root not in target.parents:
            return _not_found()
        content = target.read_bytes()
    except (OSError, ValueError):
        return _not_found()
    return Response(content=content, media_type=media_type)


def upstream_path(request: Request) -> str:
    """
    Path to forward upstream: the request path minus the proxy prefix,
    percent-encoding kept as the client sent it.
    """
    raw = request.scope.get("raw_path", b"").decode("latin-1")
    if raw == PROXY_PREFIX or raw.startswith(PROXY_PREFIX + "/"):
        return raw[len(PROXY_PREFIX):]
    return quote(request.url.path[len(PROXY_PREFIX):])


def static_media_type(path: str) -> str:
    return "text/javascript" if path.endswith(".js") else "text/css"


def create_app(settings: Settings, client: Optional[UpstreamClient] = None) -> FastAPI:
    """
    Build the gateway application.

    Args:
        settings: Immutable gateway configuration
        client: Upstream client to use; one is created from settings if omitted

    Returns:
        Configured FastAPI app
    """
    client = client or UpstreamClient(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        client.close()
        logger.info("Upstream session closed")

    # Interactive docs would shadow the index.html fallback
    app = FastAPI(
        title=settings.title,
        version=settings.version,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.client = client

    @app.middleware("http")
    async def log_request(request: Request, call_next):
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        logger.info(f"{request.method}: {target}")
        return await call_next(request)

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        logger.warning(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=500, content=ErrorResponse(error=str(exc)).model_dump())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"{request.method} {request.url.path} failed")
        return JSONResponse(status_code=500, content=ErrorResponse(error=str(exc)).model_dump())

    # ----------------------------------------------------------------
    # OAuth
    # ----------------------------------------------------------------

    @app.post("/api/v1/oauth/token", responses={500: {"model": ErrorResponse}})
    def exchange_token(code: Optional[str] = Query(None, description="Authorization code")):
        """Exchange an authorization code for an access token."""
        if not code:
            raise MissingParameterError("code")
        return JSONResponse(content=client.fetch_access_token(code))

    # ----------------------------------------------------------------
    # Authenticated proxy
    # ----------------------------------------------------------------

    @app.api_route(PROXY_PREFIX, methods=ALL_METHODS)
    @app.api_route(PROXY_PREFIX + "/{path:path}", methods=ALL_METHODS)
    async def proxy(request: Request):
        """Forward the call to the Tink API with the caller's Authorization header."""
        body = await request.body()
        data = await run_in_threadpool(
            client.forward,
            request.method,
            upstream_path(request),
            authorization=request.headers.get("authorization"),
            params=request.query_params.multi_items(),
            body=body,
            content_type=request.headers.get("content-type"),
        )
        return JSONResponse(content=data)

    # ----------------------------------------------------------------
    # Static content
    # ----------------------------------------------------------------

    @app.api_route(STATIC_PREFIX + "{path:path}", methods=ALL_METHODS)
    def serve_static(path: str):
        """Serve a file from the static directory."""
        return read_file_response(settings.static_dir, path.lstrip("/"), static_media_type(path))

    @app.api_route("/{path:path}", methods=ALL_METHODS)
    def serve_index(path: str):
        """Serve index.html for every other path."""
        index = settings.index_file
        return read_file_response(index.parent, index.name, "text/html")

    return app


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the local Tink gateway")
    parser.add_argument("--host", help="Interface to bind (default: GATEWAY_HOST or localhost)")
    parser.add_argument("--port", type=int, help="Port to listen on (default: GATEWAY_PORT or 3000)")
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except ConfigError as e:
        log.err(str(e))
        sys.exit(1)

    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    if overrides:
        settings = settings.model_copy(update=overrides)

    log.header("TINK GATEWAY")
    log.setup_verbose_logging("gateway", level=logging.INFO, log_file=settings.log_file)
    app = create_app(settings)

    if not settings.index_file.is_file():
        log.warn(f"No index page at {settings.index_file}; fallback requests will 404")

    log.summary_table("Configuration", [
        ("Upstream", settings.api_url),
        ("Static", str(settings.static_dir)),
        ("Index", str(settings.index_file)),
    ])
    log.ok(f"Server running at http://{settings.host}:{settings.port}/")

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level="info",
        access_log=False,
    )


if __name__ == "__main__":
    main()
