from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from stakeledger.api.structured_logging import tag_request
from stakeledger.runtime.errors import LedgerError


@dataclass(frozen=True, slots=True)
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    @staticmethod
    def bad_request(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(400, code, message, details or {})

    @staticmethod
    def not_found(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(404, code, message, details or {})

    @staticmethod
    def internal(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(500, code, message, details or {})


# LedgerError.code -> HTTP status
LEDGER_STATUS: Dict[str, int] = {
    "invalid_pool_id": 404,
    "invalid_pool_params": 400,
    "invalid_amount": 400,
    "unauthorized": 403,
    "still_locked": 409,
    "reentrant_call": 409,
    "transfer_failed": 502,
    "persistence_failed": 503,
}


def _error_body(code: str, reason: str, details: Any) -> Dict[str, Any]:
    return {"ok": False, "error": {"code": code, "reason": reason, "details": details}}


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.message, exc.details))


async def _ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    tag_request(request, ledger_code=exc.code, ledger_reason=exc.reason)
    status = LEDGER_STATUS.get(exc.code, 400)
    return JSONResponse(status_code=status, content=_error_body(exc.code, exc.reason, exc.details))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(LedgerError, _ledger_error_handler)  # type: ignore[arg-type]
