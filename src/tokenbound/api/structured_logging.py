# src/tokenbound/api/structured_logging.py
from __future__ import annotations

import json
import logging
import os
import time
import uuid
from typing import Any, Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from tokenbound.runtime.event_log import log_event
from tokenbound.runtime.metrics import inc_counter

Json = Dict[str, Any]

_OFF = {"0", "false", "no", "n", "off"}


class JsonLineFormatter(logging.Formatter):
    """One JSON object per line.

    Messages that already are JSON objects (log_event output) pass through.
    Anything else (uvicorn, library warnings) is wrapped so stdout stays JSONL.
    """

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if msg.startswith("{"):
            return msg
        payload: Json = {
            "ts_ms": int(record.created * 1000),
            "event": "log",
            "level": record.levelname,
            "logger": record.name,
            "message": msg,
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def configure_structured_logging() -> None:
    """Route stdlib logging to stdout as JSONL.

    Level comes from TOKENBOUND_LOG_LEVEL (default INFO). Calling it again only
    re-reads the level.
    """
    level = getattr(logging, (os.environ.get("TOKENBOUND_LOG_LEVEL") or "INFO").strip().upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    if getattr(root, "_tokenbound_configured", False):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(JsonLineFormatter())
    root.handlers = [handler]
    setattr(root, "_tokenbound_configured", True)


def _account_of(request: Request) -> Optional[str]:
    params = getattr(request, "path_params", None) or {}
    addr = params.get("address")
    return str(addr).lower() if addr else None


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Logs one `http_request` event per request and tags the response with x-request-id.

    TOKENBOUND_LOG_REQUESTS=0 turns it off.
    """

    def __init__(self, app) -> None:
        super().__init__(app)
        self._enabled = (os.environ.get("TOKENBOUND_LOG_REQUESTS") or "1").strip().lower() not in _OFF
        self._logger = logging.getLogger("tokenbound.http")

    async def dispatch(self, request: Request, call_next):
        if not self._enabled:
            return await call_next(request)

        started = time.monotonic()
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id

        status = 500
        err: Optional[str] = None
        try:
            response = await call_next(request)
            status = int(response.status_code)
            response.headers.setdefault("x-request-id", request_id)
            return response
        except Exception as e:
            err = f"{type(e).__name__}: {e}"
            raise
        finally:
            inc_counter("http_requests")
            if status >= 500:
                inc_counter("http_errors")
            log_event(
                self._logger,
                "http_request",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                account=_account_of(request),
                status=status,
                duration_ms=int((time.monotonic() - started) * 1000),
                error=err,
            )
