from __future__ import annotations

import logging
from typing import Optional, Protocol

from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse

from .config import Configuration
from .schemas import Info

logger = logging.getLogger(__name__)

GREETING = "Hello Pyment!"
# HEAD is answered wherever GET is.
READ_METHODS = ["GET", "HEAD"]


class RouteTable(Protocol):
    """Anything that can register handlers on an app for a given configuration."""

    def setup_routes(self, app: FastAPI, config: Configuration) -> None: ...


class ApiRoutes:
    """The fixed route table: greeting, runtime info and health check."""

    def setup_routes(self, app: FastAPI, config: Configuration) -> None:
        @app.api_route("/", methods=READ_METHODS, response_class=PlainTextResponse)
        def root() -> str:
            return GREETING

        @app.api_route("/info", methods=READ_METHODS, response_model=Info)
        def info():
            try:
                return Info(env=config.environment, port=config.port, endpoint=config.address)
            except ValueError:
                logger.exception("info: failed to build response")
                return JSONResponse(status_code=500, content={"detail": "internal_error"})

        @app.api_route("/health", methods=READ_METHODS, response_class=PlainTextResponse)
        def health() -> str:
            return "OK"


def create_app(config: Configuration, routes: Optional[RouteTable] = None) -> FastAPI:
    # No docs/openapi routes: the route table is the whole HTTP surface.
    app = FastAPI(title="Pyment", version="1.0.0", docs_url=None, redoc_url=None, openapi_url=None)
    (routes or ApiRoutes()).setup_routes(app, config)
    return app
