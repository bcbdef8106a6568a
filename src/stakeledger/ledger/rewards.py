# src/stakeledger/ledger/rewards.py
from __future__ import annotations

"""Pending reward calculation (read-only).

  elapsed = now - position.lock_until
  reward  = amount * apy_bps * elapsed // (SECONDS_PER_YEAR * BPS_DENOMINATOR)

Rewards are a point-in-time estimate; nothing here credits or pays anything.

Negative elapsed (the position is still locked, including right after a
deposit) yields 0. With all operands non-negative, floor division is the same
as truncation toward zero, and no rounding compensation is applied.
"""

from stakeledger.ledger.constants import BPS_DENOMINATOR, SECONDS_PER_YEAR
from stakeledger.ledger.pools import PoolRegistry
from stakeledger.ledger.positions import PositionLedger

REWARD_DENOMINATOR: int = SECONDS_PER_YEAR * BPS_DENOMINATOR


def compute_reward(amount: int, apy_bps: int, elapsed_s: int) -> int:
    amt = int(amount)
    apy = int(apy_bps)
    elapsed = int(elapsed_s)
    if amt <= 0 or apy <= 0 or elapsed <= 0:
        return 0
    return (amt * apy * elapsed) // REWARD_DENOMINATOR


class RewardCalculator:
    def __init__(self, *, pools: PoolRegistry, positions: PositionLedger) -> None:
        self._pools = pools
        self._positions = positions

    def pending_reward(self, pool_id: int, user_id: str, now: int) -> int:
        pool = self._pools.get_pool(pool_id)
        pos = self._positions.get_position(pool_id, user_id)
        return compute_reward(pos.amount, pool.apy_bps, int(now) - int(pos.lock_until))


__all__ = ["REWARD_DENOMINATOR", "compute_reward", "RewardCalculator"]
