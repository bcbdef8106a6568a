"""stakeledger.ledger.types

Record types shared by the pool registry, position ledger and notification log.

  - Pool: staking configuration + deposited aggregate
  - Position: one user's stake within one pool
  - NotificationRecord: immutable audit entry

All amounts and timestamps are ints (unix seconds for time).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

Json = Dict[str, Any]


def _as_int(v: Any, *, field: str) -> int:
    # bool is an int subclass; disallow it explicitly
    if isinstance(v, bool):
        raise ValueError(f"field '{field}' must be int (got bool)")
    try:
        return int(v)
    except Exception as e:
        raise ValueError(f"field '{field}' must be int-coercible (got {type(v).__name__})") from e


def _as_str(v: Any, *, field: str) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValueError(f"field '{field}' must be a non-empty string")
    return v.strip()


@dataclass(slots=True)
class Pool:
    pool_id: int
    stake_token: str
    reward_token: str
    apy_bps: int
    lock_days: int
    deposited_amount: int = 0

    def to_json(self) -> Json:
        return {
            "pool_id": int(self.pool_id),
            "stake_token": self.stake_token,
            "reward_token": self.reward_token,
            "apy_bps": int(self.apy_bps),
            "lock_days": int(self.lock_days),
            "deposited_amount": int(self.deposited_amount),
        }

    @classmethod
    def from_json(cls, d: Json) -> "Pool":
        return cls(
            pool_id=_as_int(d.get("pool_id"), field="pool_id"),
            stake_token=_as_str(d.get("stake_token"), field="stake_token"),
            reward_token=_as_str(d.get("reward_token"), field="reward_token"),
            apy_bps=_as_int(d.get("apy_bps"), field="apy_bps"),
            lock_days=_as_int(d.get("lock_days"), field="lock_days"),
            deposited_amount=_as_int(d.get("deposited_amount", 0), field="deposited_amount"),
        )


@dataclass(slots=True)
class Position:
    pool_id: int
    user_id: str
    amount: int = 0
    lock_until: int = 0

    def to_json(self) -> Json:
        return {
            "pool_id": int(self.pool_id),
            "user_id": self.user_id,
            "amount": int(self.amount),
            "lock_until": int(self.lock_until),
        }

    @classmethod
    def from_json(cls, d: Json) -> "Position":
        return cls(
            pool_id=_as_int(d.get("pool_id"), field="pool_id"),
            user_id=_as_str(d.get("user_id"), field="user_id"),
            amount=_as_int(d.get("amount", 0), field="amount"),
            lock_until=_as_int(d.get("lock_until", 0), field="lock_until"),
        )


@dataclass(frozen=True, slots=True)
class NotificationRecord:
    seq: int
    pool_id: int
    amount: int
    user_id: str
    kind: str
    timestamp: int

    def to_json(self) -> Json:
        return {
            "seq": int(self.seq),
            "pool_id": int(self.pool_id),
            "amount": int(self.amount),
            "user_id": self.user_id,
            "kind": self.kind,
            "timestamp": int(self.timestamp),
        }

    @classmethod
    def from_json(cls, d: Json) -> "NotificationRecord":
        return cls(
            seq=_as_int(d.get("seq"), field="seq"),
            pool_id=_as_int(d.get("pool_id"), field="pool_id"),
            amount=_as_int(d.get("amount"), field="amount"),
            user_id=_as_str(d.get("user_id"), field="user_id"),
            kind=_as_str(d.get("kind"), field="kind"),
            timestamp=_as_int(d.get("timestamp"), field="timestamp"),
        )


__all__ = ["Json", "Pool", "Position", "NotificationRecord"]
