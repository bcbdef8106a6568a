# src/stakeledger/runtime/state_invariants.py
from __future__ import annotations

"""Ledger invariants.

Conservation: for every pool, deposited_amount == sum of position amounts in
that pool, and no amount is negative. Checked after loading a snapshot and
available to tests and operators; the position ledger maintains it on every
mutation.
"""

from typing import Dict, List

from stakeledger.ledger.pools import PoolRegistry
from stakeledger.ledger.positions import PositionLedger


class InvariantViolation(RuntimeError):
    pass


def conservation_report(pools: PoolRegistry, positions: PositionLedger) -> List[Dict[str, int]]:
    """Return one row per pool whose aggregate does not match its positions."""
    bad: List[Dict[str, int]] = []
    for pool in pools.pools():
        amounts = [int(p.amount) for p in positions.positions_for_pool(pool.pool_id)]
        staked = sum(amounts)
        if staked != int(pool.deposited_amount) or any(a < 0 for a in amounts):
            bad.append({"pool_id": pool.pool_id, "deposited_amount": int(pool.deposited_amount), "positions_sum": staked})
    return bad


def check_conservation(pools: PoolRegistry, positions: PositionLedger) -> None:
    """Raise InvariantViolation if any pool breaks conservation."""
    bad = conservation_report(pools, positions)
    if bad:
        raise InvariantViolation(f"conservation violated: {bad}")


__all__ = ["InvariantViolation", "conservation_report", "check_conservation"]
