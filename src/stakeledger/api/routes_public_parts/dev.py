from __future__ import annotations

from fastapi import APIRouter, Request

from stakeledger.api.errors import ApiError
from stakeledger.api.routes_public_parts.common import Json, _engine
from stakeledger.api.schemas import MintRequest
from stakeledger.runtime.gateway import InMemoryTokenGateway

router = APIRouter()


def _memory_gateway(request: Request) -> InMemoryTokenGateway:
    gw = _engine(request).gateway
    if not isinstance(gw, InMemoryTokenGateway):
        raise ApiError.not_found("not_found", "dev gateway not available", {})
    return gw


@router.post("/dev/mint")
def dev_mint(body: MintRequest, request: Request) -> Json:
    """Credit tokens in the in-memory gateway. Mounted only outside prod."""
    gw = _memory_gateway(request)
    gw.mint(body.token, body.account, body.amount)
    _engine(request).checkpoint()
    return {"ok": True, "token": body.token, "account": body.account, "balance": gw.balance_of(body.token, body.account)}


@router.get("/dev/balances/{token}/{account}")
def dev_balance(token: str, account: str, request: Request) -> Json:
    gw = _memory_gateway(request)
    return {"ok": True, "token": token, "account": account, "balance": gw.balance_of(token, account)}
