from __future__ import annotations

import os

from fastapi import FastAPI

from tokenbound.api.errors import ApiError, api_error_handler
from tokenbound.api.routes_public import public_router
from tokenbound.api.structured_logging import RequestLogMiddleware, configure_structured_logging
from tokenbound.runtime.chain_config import load_chain_config
from tokenbound.runtime.executor_boot import build_host as _build_host


def build_host():
    """Build the Host for API runtime.

    This wrapper exists so tests can monkeypatch `tokenbound.api.app.build_host`
    without reaching into runtime modules.
    """
    return _build_host(load_chain_config())


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): load chain config + genesis and attach app.state.host
      - False: no host; tests attach their own
    """
    configure_structured_logging()
    mode = os.environ.get("TOKENBOUND_MODE", "prod").strip().lower()

    # Disable docs in production.
    if mode == "prod":
        app = FastAPI(title="tokenbound node API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="tokenbound node API")

    app.state.host = build_host() if boot_runtime else None

    app.add_middleware(RequestLogMiddleware)
    app.add_exception_handler(ApiError, api_error_handler)

    app.include_router(public_router)
    return app
