from __future__ import annotations

from fastapi import APIRouter, Request

from stakeledger.api.routes_public_parts.common import Json, _engine, _now_s, _pool_json, _position_json
from stakeledger.api.schemas import CreatePoolRequest, StakeRequest
from stakeledger.api.structured_logging import tag_request

router = APIRouter()


@router.post("/pools")
def v1_pools_create(body: CreatePoolRequest, request: Request) -> Json:
    """Create a pool. Admin only (403 unauthorized otherwise)."""
    tag_request(request, caller=body.caller)
    eng = _engine(request)
    pool_id = eng.create_pool(
        body.caller,
        stake_token=body.stake_token,
        reward_token=body.reward_token,
        apy_bps=body.apy_bps,
        lock_days=body.lock_days,
    )
    return {"ok": True, "pool": _pool_json(eng.get_pool(pool_id))}


@router.get("/pools")
def v1_pools_list(request: Request) -> Json:
    eng = _engine(request)
    pools = [_pool_json(p) for p in eng.pools()]
    return {"ok": True, "count": len(pools), "pools": pools}


@router.get("/pools/{pool_id}")
def v1_pool_get(pool_id: int, request: Request) -> Json:
    eng = _engine(request)
    return {"ok": True, "pool": _pool_json(eng.get_pool(pool_id))}


@router.post("/pools/{pool_id}/deposit")
def v1_pool_deposit(pool_id: int, body: StakeRequest, request: Request) -> Json:
    tag_request(request, caller=body.caller)
    eng = _engine(request)
    now = _now_s()
    rec = eng.deposit(body.caller, pool_id, body.amount, now=now)
    pos = eng.get_position(pool_id, body.caller)
    return {"ok": True, "notification": rec.to_json(), "position": _position_json(pos, pending_reward=0, now=now)}


@router.post("/pools/{pool_id}/withdraw")
def v1_pool_withdraw(pool_id: int, body: StakeRequest, request: Request) -> Json:
    tag_request(request, caller=body.caller)
    eng = _engine(request)
    now = _now_s()
    rec = eng.withdraw(body.caller, pool_id, body.amount, now=now)
    pos = eng.get_position(pool_id, body.caller)
    reward = eng.pending_reward(body.caller, pool_id, now=now)
    return {"ok": True, "notification": rec.to_json(), "position": _position_json(pos, pending_reward=reward, now=now)}


@router.get("/pools/{pool_id}/positions/{user_id}")
def v1_position_get(pool_id: int, user_id: str, request: Request) -> Json:
    """Position plus a point-in-time pending reward (0 while locked)."""
    eng = _engine(request)
    now = _now_s()
    pos = eng.get_position(pool_id, user_id)
    reward = eng.pending_reward(user_id, pool_id, now=now)
    return {"ok": True, "now": now, "position": _position_json(pos, pending_reward=reward, now=now)}
