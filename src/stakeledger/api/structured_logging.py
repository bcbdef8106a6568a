# src/stakeledger/api/structured_logging.py
from __future__ import annotations

import logging
import os
import sys
import time
import uuid
from typing import Any, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from stakeledger.runtime.ledger_logging import log_event

_HANDLER_FLAG = "_stakeledger_jsonl"


def configure_structured_logging(level_name: Optional[str] = None) -> logging.Logger:
    """Send the "stakeledger" logger tree to stdout as JSONL.

    Level from the argument, else STAKELEDGER_LOG_LEVEL (default INFO).
    Idempotent: the handler is installed once, the level is updated each call.
    """
    name = (level_name or os.environ.get("STAKELEDGER_LOG_LEVEL") or "INFO").strip().upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger("stakeledger")
    logger.setLevel(level)
    if not any(getattr(h, _HANDLER_FLAG, False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        setattr(handler, _HANDLER_FLAG, True)
        logger.addHandler(handler)
    return logger


def tag_request(request: Request, **fields: Any) -> None:
    """Attach ledger context (caller, ledger error code) to the request log line."""
    tags = getattr(request.state, "ledger_tags", None)
    if tags is None:
        tags = {}
        request.state.ledger_tags = tags
    tags.update(fields)


class RequestLogMiddleware(BaseHTTPMiddleware):
    """One `http_request` event per request on logger "stakeledger.http".

    Besides method/path/status/latency, the line carries the route's pool_id
    and whatever the handlers tagged (caller, ledger_code). Disable with
    STAKELEDGER_LOG_REQUESTS=0.
    """

    def __init__(self, app) -> None:
        super().__init__(app)
        raw = (os.environ.get("STAKELEDGER_LOG_REQUESTS") or "1").strip().lower()
        self._enabled = raw not in {"0", "false", "no", "n", "off"}
        self._logger = logging.getLogger("stakeledger.http")

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        if not self._enabled:
            response = await call_next(request)
            response.headers.setdefault("x-request-id", request_id)
            return response

        started = time.monotonic()
        status = 500
        err: Optional[str] = None
        response: Optional[Response] = None
        try:
            response = await call_next(request)
            status = int(response.status_code)
            return response
        except Exception as e:
            err = f"{type(e).__name__}: {e}"
            raise
        finally:
            # path_params is filled in by the router once the request was matched.
            pool_id = request.path_params.get("pool_id")
            tags = getattr(request.state, "ledger_tags", None) or {}
            log_event(
                self._logger,
                "http_request",
                level=logging.WARNING if status >= 500 else logging.INFO,
                request_id=request_id,
                method=request.method,
                path=str(request.url.path or ""),
                status=status,
                duration_ms=int((time.monotonic() - started) * 1000),
                pool_id=int(pool_id) if pool_id is not None and str(pool_id).isdigit() else pool_id,
                error=err,
                **tags,
            )
            if response is not None:
                response.headers.setdefault("x-request-id", request_id)
