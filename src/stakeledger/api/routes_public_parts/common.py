from __future__ import annotations

import time
from typing import Any, Dict

from fastapi import Request

from stakeledger.api.errors import ApiError
from stakeledger.ledger.types import Pool, Position
from stakeledger.runtime.engine import StakingEngine

Json = Dict[str, Any]


def _engine(request: Request) -> StakingEngine:
    eng = getattr(request.app.state, "engine", None)
    if eng is None:
        raise ApiError.internal("not_ready", "engine not attached to app.state", {})
    return eng


def _now_s() -> int:
    return int(time.time())


def _pool_json(pool: Pool) -> Json:
    return pool.to_json()


def _position_json(pos: Position, *, pending_reward: int, now: int) -> Json:
    out = pos.to_json()
    out["pending_reward"] = int(pending_reward)
    out["locked"] = bool(now < int(pos.lock_until))
    return out
