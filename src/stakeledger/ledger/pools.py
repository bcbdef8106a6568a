# src/stakeledger/ledger/pools.py
from __future__ import annotations

"""Pool registry.

Pools live in a dense list; a pool's id is its index. Pools are never removed
or renumbered. Everything except `deposited_amount` is fixed at creation, and
only the position ledger moves that aggregate (via credit/debit).
"""

import dataclasses
from typing import Any, List

from stakeledger.ledger.types import Pool
from stakeledger.runtime.errors import InvalidAmount, InvalidPoolId, InvalidPoolParams


def _require_token(v: Any, *, field: str) -> str:
    if not isinstance(v, str) or not v.strip():
        raise InvalidPoolParams(f"missing_{field}", {"field": field})
    return v.strip()


def _require_non_negative_int(v: Any, *, field: str) -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise InvalidPoolParams(f"{field}_not_int", {"field": field, "type": type(v).__name__})
    if v < 0:
        raise InvalidPoolParams(f"{field}_negative", {"field": field, "value": v})
    return int(v)


class PoolRegistry:
    def __init__(self) -> None:
        self._pools: List[Pool] = []

    def __len__(self) -> int:
        return len(self._pools)

    def pool_count(self) -> int:
        return len(self._pools)

    def create_pool(self, stake_token: str, reward_token: str, apy_bps: int, lock_days: int) -> int:
        stake = _require_token(stake_token, field="stake_token")
        reward = _require_token(reward_token, field="reward_token")
        apy = _require_non_negative_int(apy_bps, field="apy_bps")
        days = _require_non_negative_int(lock_days, field="lock_days")

        pool_id = len(self._pools)
        self._pools.append(
            Pool(
                pool_id=pool_id,
                stake_token=stake,
                reward_token=reward,
                apy_bps=apy,
                lock_days=days,
                deposited_amount=0,
            )
        )
        return pool_id

    def _get(self, pool_id: Any) -> Pool:
        if isinstance(pool_id, bool) or not isinstance(pool_id, int):
            raise InvalidPoolId(pool_id, pool_count=len(self._pools))
        if pool_id < 0 or pool_id >= len(self._pools):
            raise InvalidPoolId(pool_id, pool_count=len(self._pools))
        return self._pools[pool_id]

    def require(self, pool_id: Any) -> None:
        self._get(pool_id)

    def get_pool(self, pool_id: Any) -> Pool:
        """Return a detached copy of the pool."""
        return dataclasses.replace(self._get(pool_id))

    def pools(self) -> List[Pool]:
        return [dataclasses.replace(p) for p in self._pools]

    def credit(self, pool_id: int, amount: int) -> None:
        pool = self._get(pool_id)
        pool.deposited_amount = int(pool.deposited_amount) + int(amount)

    def debit(self, pool_id: int, amount: int) -> None:
        pool = self._get(pool_id)
        if int(amount) > int(pool.deposited_amount):
            raise InvalidAmount(
                "pool_underflow",
                {"pool_id": pool_id, "amount": int(amount), "deposited_amount": int(pool.deposited_amount)},
            )
        pool.deposited_amount = int(pool.deposited_amount) - int(amount)

    # ---- snapshot interop ----

    def to_json(self) -> List[dict]:
        return [p.to_json() for p in self._pools]

    def load_json(self, rows: Any) -> None:
        """Replace the registry contents in place."""
        loaded: List[Pool] = []
        for idx, raw in enumerate(rows if isinstance(rows, list) else []):
            if not isinstance(raw, dict):
                raise ValueError(f"pools[{idx}] must be dict (got {type(raw).__name__})")
            pool = Pool.from_json(raw)
            if pool.pool_id != idx:
                # Ids are dense; a gap means the snapshot is corrupt.
                raise ValueError(f"pools[{idx}] has pool_id={pool.pool_id}, expected {idx}")
            loaded.append(pool)
        self._pools[:] = loaded

    @classmethod
    def from_json(cls, rows: Any) -> "PoolRegistry":
        reg = cls()
        reg.load_json(rows)
        return reg


__all__ = ["PoolRegistry"]
