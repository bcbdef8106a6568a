from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List

Json = Dict[str, Any]

CURRENT_STATE_VERSION: int = 1


def _require_list(v: Any, *, field: str) -> List[Json]:
    if v is None:
        return []
    if not isinstance(v, list):
        raise ValueError(f"LedgerSnapshot schema error: field '{field}' must be list (got {type(v).__name__})")
    return v


@dataclass(frozen=True, slots=True)
class LedgerSnapshot:
    """
    Immutable, JSON-shaped copy of the whole ledger.

    Layout:
      {
        "state_version": 1,
        "pools":         [ {pool_id, stake_token, reward_token, apy_bps, lock_days, deposited_amount}, ... ],
        "positions":     [ {pool_id, user_id, amount, lock_until}, ... ],
        "notifications": [ {seq, pool_id, amount, user_id, kind, timestamp}, ... ],
        "balances":      [ {token, account, amount}, ... ],
      }

    Pools are ordered by id, positions by (pool_id, user_id), notifications by seq.
    `balances` is only filled when the gateway keeps its balances in the
    snapshot (see runtime.gateway.BalanceSnapshots); otherwise it is empty.
    """

    pools: List[Json] = field(default_factory=list)
    positions: List[Json] = field(default_factory=list)
    notifications: List[Json] = field(default_factory=list)
    balances: List[Json] = field(default_factory=list)

    def to_json(self) -> Json:
        return {
            "state_version": CURRENT_STATE_VERSION,
            "pools": copy.deepcopy(self.pools),
            "positions": copy.deepcopy(self.positions),
            "notifications": copy.deepcopy(self.notifications),
            "balances": copy.deepcopy(self.balances),
        }

    @classmethod
    def from_json(cls, d: Any) -> "LedgerSnapshot":
        if not isinstance(d, dict):
            raise ValueError(f"LedgerSnapshot schema error: expected dict (got {type(d).__name__})")
        try:
            v = int(d.get("state_version", 0))
        except (TypeError, ValueError) as e:
            raise ValueError("LedgerSnapshot schema error: state_version must be int") from e
        if v != CURRENT_STATE_VERSION:
            raise ValueError(
                f"LedgerSnapshot schema error: state_version={v} != CURRENT_STATE_VERSION={CURRENT_STATE_VERSION}"
            )
        return cls(
            pools=copy.deepcopy(_require_list(d.get("pools"), field="pools")),
            positions=copy.deepcopy(_require_list(d.get("positions"), field="positions")),
            notifications=copy.deepcopy(_require_list(d.get("notifications"), field="notifications")),
            balances=copy.deepcopy(_require_list(d.get("balances"), field="balances")),
        )


__all__ = ["CURRENT_STATE_VERSION", "LedgerSnapshot", "Json"]
