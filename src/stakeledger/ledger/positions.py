# src/stakeledger/ledger/positions.py
from __future__ import annotations

"""Position ledger: per (pool_id, user_id) stake balances and time locks.

Ordering rules (double-spend safety against a re-entering gateway):

  deposit:  validate -> transfer_in -> credit position + pool -> notify
  withdraw: validate -> debit position + pool -> transfer_out -> notify
            (transfer_out failure restores both debits)

A deposit always resets lock_until to now + lock_days, re-locking the whole
accumulated balance. Withdraw never touches lock_until.
"""

import dataclasses
from typing import Any, Callable, Dict, List, Tuple

from stakeledger.ledger.constants import KIND_DEPOSIT, KIND_WITHDRAW, SECONDS_PER_DAY
from stakeledger.ledger.notifications import NotificationLog
from stakeledger.ledger.pools import PoolRegistry
from stakeledger.ledger.types import NotificationRecord, Position
from stakeledger.runtime.errors import InvalidAmount, StillLocked, TransferFailed
from stakeledger.runtime.gateway import TokenGateway
from stakeledger.runtime.reentrancy import ReentrancyGuard

PositionKey = Tuple[int, str]


def _require_user(user_id: Any) -> str:
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValueError("user_id must be a non-empty string")
    return user_id.strip()


def _require_positive_amount(amount: Any) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount("amount_not_int", {"type": type(amount).__name__})
    if amount <= 0:
        raise InvalidAmount("amount_not_positive", {"amount": amount})
    return int(amount)


def _require_time(now: Any) -> int:
    if isinstance(now, bool) or not isinstance(now, int):
        raise ValueError(f"now must be int unix seconds (got {type(now).__name__})")
    return int(now)


class PositionLedger:
    def __init__(
        self,
        *,
        pools: PoolRegistry,
        notifications: NotificationLog,
        gateway: TokenGateway,
        guard: ReentrancyGuard | None = None,
    ) -> None:
        self._pools = pools
        self._log = notifications
        self._gateway = gateway
        self._guard = guard or ReentrancyGuard()
        self._positions: Dict[PositionKey, Position] = {}

    @property
    def guard(self) -> ReentrancyGuard:
        return self._guard

    # ---- reads ----

    def get_position(self, pool_id: int, user_id: str) -> Position:
        """Copy of the position; a zero position if the user never deposited."""
        self._pools.require(pool_id)
        user = _require_user(user_id)
        pos = self._positions.get((pool_id, user))
        if pos is None:
            return Position(pool_id=pool_id, user_id=user)
        return dataclasses.replace(pos)

    def has_position(self, pool_id: int, user_id: str) -> bool:
        return (pool_id, _require_user(user_id)) in self._positions

    def positions_for_pool(self, pool_id: int) -> List[Position]:
        self._pools.require(pool_id)
        out = [dataclasses.replace(p) for (pid, _), p in self._positions.items() if pid == pool_id]
        out.sort(key=lambda p: p.user_id)
        return out

    def total_staked(self, pool_id: int) -> int:
        return sum(p.amount for p in self.positions_for_pool(pool_id))

    # ---- mutations ----

    def _transfer(
        self,
        fn: Callable[[str, str, int], bool],
        direction: str,
        *,
        token: str,
        account: str,
        amount: int,
        pool_id: int,
    ) -> None:
        details = {"pool_id": pool_id, "token": token, "account": account, "amount": amount}
        try:
            ok = fn(token, account, amount)
        except Exception as e:
            raise TransferFailed(direction, {**details, "error": f"{type(e).__name__}: {e}"}) from e
        if ok is False:
            raise TransferFailed(direction, details)

    def deposit(self, pool_id: int, user_id: str, amount: int, now: int) -> NotificationRecord:
        pool = self._pools.get_pool(pool_id)
        user = _require_user(user_id)
        ts = _require_time(now)

        with self._guard.hold("deposit", pool_id, user):
            amt = _require_positive_amount(amount)

            # Custody first: nothing is credited unless the tokens arrived.
            self._transfer(
                self._gateway.transfer_in,
                "transfer_in",
                token=pool.stake_token,
                account=user,
                amount=amt,
                pool_id=pool_id,
            )

            key = (pool_id, user)
            pos = self._positions.get(key)
            if pos is None:
                pos = Position(pool_id=pool_id, user_id=user)
                self._positions[key] = pos

            pos.amount = int(pos.amount) + amt
            pos.lock_until = ts + int(pool.lock_days) * SECONDS_PER_DAY
            self._pools.credit(pool_id, amt)

            return self._log.record(pool_id, amt, user, KIND_DEPOSIT, ts)

    def withdraw(self, pool_id: int, user_id: str, amount: int, now: int) -> NotificationRecord:
        pool = self._pools.get_pool(pool_id)
        user = _require_user(user_id)
        ts = _require_time(now)

        with self._guard.hold("withdraw", pool_id, user):
            key = (pool_id, user)
            pos = self._positions.get(key)
            balance = int(pos.amount) if pos is not None else 0
            lock_until = int(pos.lock_until) if pos is not None else 0

            if ts < lock_until:
                raise StillLocked(pool_id=pool_id, user_id=user, lock_until=lock_until, now=ts)

            amt = _require_positive_amount(amount)
            if pos is None or amt > balance:
                raise InvalidAmount("exceeds_balance", {"amount": amt, "balance": balance})

            # Debit before the external call so a re-entrant read sees the lower balance.
            pos.amount = balance - amt
            self._pools.debit(pool_id, amt)
            try:
                self._transfer(
                    self._gateway.transfer_out,
                    "transfer_out",
                    token=pool.stake_token,
                    account=user,
                    amount=amt,
                    pool_id=pool_id,
                )
            except TransferFailed:
                pos.amount = int(pos.amount) + amt
                self._pools.credit(pool_id, amt)
                raise

            return self._log.record(pool_id, amt, user, KIND_WITHDRAW, ts)

    # ---- snapshot interop ----

    def to_json(self) -> List[dict]:
        keys = sorted(self._positions.keys())
        return [self._positions[k].to_json() for k in keys]

    def load_json(self, rows: Any) -> None:
        positions: Dict[PositionKey, Position] = {}
        for idx, raw in enumerate(rows if isinstance(rows, list) else []):
            if not isinstance(raw, dict):
                raise ValueError(f"positions[{idx}] must be dict (got {type(raw).__name__})")
            pos = Position.from_json(raw)
            self._pools.require(pos.pool_id)
            if pos.amount < 0:
                raise ValueError(f"positions[{idx}] has negative amount {pos.amount}")
            key = (pos.pool_id, pos.user_id)
            if key in positions:
                raise ValueError(f"positions[{idx}] duplicates key {key}")
            positions[key] = pos
        self._positions = positions


__all__ = ["PositionLedger", "PositionKey"]
