# src/stakeledger/runtime/engine.py
from __future__ import annotations

"""StakingEngine: the public operation surface of the ledger.

Responsibilities:
  - one global serialization point (RLock) around every mutating operation
  - administrator gate for pool creation
  - structured logging + metrics for every outcome
  - write-through persistence of the snapshot after each commit

Reads (get_pool, get_position, pending_reward, notifications) take no lock
and never mutate.

Re-entry: the gateway runs while the RLock is held. A callback on the same
thread re-acquires the RLock; the position ledger's per-(pool, user) guard
then rejects a nested deposit/withdraw for the key already in flight. Other
threads simply wait.

Commit: the outermost operation owns persistence. Mutations nested inside it
(gateway callbacks acting on other keys) are written with it. If the snapshot
cannot be written, in-memory state is restored to what it was before the
outermost operation, every transfer it made is reversed through the gateway,
and PersistenceFailed is raised: an error always means nothing happened.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from stakeledger.ledger.constants import KIND_DEPOSIT
from stakeledger.ledger.notifications import NotificationLog
from stakeledger.ledger.pools import PoolRegistry
from stakeledger.ledger.positions import PositionLedger
from stakeledger.ledger.rewards import RewardCalculator
from stakeledger.ledger.state import Json, LedgerSnapshot
from stakeledger.ledger.types import NotificationRecord, Pool, Position
from stakeledger.runtime import metrics
from stakeledger.runtime.access import AccessControl
from stakeledger.runtime.errors import LedgerError, PersistenceFailed
from stakeledger.runtime.gateway import BalanceSnapshots, TokenGateway
from stakeledger.runtime.ledger_logging import log_event
from stakeledger.runtime.sqlite_db import SqliteLedgerStore
from stakeledger.runtime.state_invariants import check_conservation

log = logging.getLogger("stakeledger.engine")


class StakingEngine:
    def __init__(
        self,
        *,
        gateway: TokenGateway,
        access: AccessControl,
        store: Optional[SqliteLedgerStore] = None,
        snapshot: Optional[LedgerSnapshot] = None,
    ) -> None:
        self.gateway = gateway
        self.access = access
        self.store = store
        self._lock = threading.RLock()

        # Commit bookkeeping for the outermost mutation in flight.
        self._depth = 0
        self._before: Optional[Json] = None
        self._moved: List[NotificationRecord] = []

        if snapshot is None and store is not None and store.exists():
            snapshot = LedgerSnapshot.from_json(store.read())

        self._pools = PoolRegistry()
        self._log = NotificationLog()
        self._positions = PositionLedger(pools=self._pools, notifications=self._log, gateway=gateway)
        self._rewards = RewardCalculator(pools=self._pools, positions=self._positions)

        if snapshot is not None:
            self._load(snapshot)
            if isinstance(gateway, BalanceSnapshots) and snapshot.balances:
                gateway.load_balances_json(snapshot.balances)
            check_conservation(self._pools, self._positions)

        self._publish_gauges()

    # ---- mutations ----

    def create_pool(
        self,
        caller_id: str,
        *,
        stake_token: str,
        reward_token: str,
        apy_bps: int,
        lock_days: int,
    ) -> int:
        with self._commit("create_pool", caller=caller_id):
            self.access.require_admin(caller_id, action="create_pool")
            pool_id = self._pools.create_pool(stake_token, reward_token, apy_bps, lock_days)

        log_event(
            log,
            "pool_created",
            pool_id=pool_id,
            caller=caller_id,
            stake_token=stake_token,
            reward_token=reward_token,
            apy_bps=apy_bps,
            lock_days=lock_days,
        )
        return pool_id

    def deposit(self, caller_id: str, pool_id: int, amount: int, *, now: int) -> NotificationRecord:
        with self._commit("deposit", caller=caller_id, pool_id=pool_id, amount=amount) as moved:
            rec = self._positions.deposit(pool_id, caller_id, amount, now)
            moved.append(rec)

        metrics.inc_counter("deposits_total", pool_id=pool_id)
        metrics.inc_counter("deposited_tokens_total", rec.amount, pool_id=pool_id)
        log_event(log, "deposit", seq=rec.seq, pool_id=pool_id, caller=caller_id, amount=rec.amount, now=now)
        return rec

    def withdraw(self, caller_id: str, pool_id: int, amount: int, *, now: int) -> NotificationRecord:
        with self._commit("withdraw", caller=caller_id, pool_id=pool_id, amount=amount) as moved:
            rec = self._positions.withdraw(pool_id, caller_id, amount, now)
            moved.append(rec)

        metrics.inc_counter("withdrawals_total", pool_id=pool_id)
        metrics.inc_counter("withdrawn_tokens_total", rec.amount, pool_id=pool_id)
        log_event(log, "withdraw", seq=rec.seq, pool_id=pool_id, caller=caller_id, amount=rec.amount, now=now)
        return rec

    def checkpoint(self) -> None:
        """Persist the current state, e.g. after out-of-band gateway mints."""
        with self._commit("checkpoint"):
            pass

    # ---- reads ----

    def pending_reward(self, caller_id: str, pool_id: int, *, now: int) -> int:
        return self._rewards.pending_reward(pool_id, caller_id, now)

    def get_pool(self, pool_id: int) -> Pool:
        return self._pools.get_pool(pool_id)

    def pools(self) -> List[Pool]:
        return self._pools.pools()

    def pool_count(self) -> int:
        return self._pools.pool_count()

    def get_position(self, pool_id: int, user_id: str) -> Position:
        return self._positions.get_position(pool_id, user_id)

    def positions_for_pool(self, pool_id: int) -> List[Position]:
        return self._positions.positions_for_pool(pool_id)

    def notifications(self, since: int = 0) -> List[NotificationRecord]:
        return self._log.since(since)

    def notification_count(self) -> int:
        return len(self._log)

    def snapshot(self) -> LedgerSnapshot:
        with self._lock:
            return LedgerSnapshot.from_json(self._state_json())

    def check_invariants(self) -> None:
        with self._lock:
            check_conservation(self._pools, self._positions)

    # ---- commit / rollback ----

    @contextmanager
    def _commit(self, op: str, **fields: Any) -> Iterator[List[NotificationRecord]]:
        with self._lock:
            outer = self._depth == 0
            if outer:
                self._before = self._state_json() if self.store is not None else None
                self._moved = []
            self._depth += 1
            try:
                yield self._moved
            except Exception as e:
                if isinstance(e, LedgerError):
                    self._rejected(op, e, **fields)
                # Nested operations that succeeded still have to reach disk.
                if outer and self._moved:
                    self._persist(op, **fields)
                raise
            finally:
                self._depth -= 1
            if outer:
                self._persist(op, **fields)

    def _persist(self, op: str, **fields: Any) -> None:
        try:
            if self.store is not None:
                self.store.write(self._state_json())
        except Exception as e:
            before = self._before
            if before is not None:
                self._load(LedgerSnapshot.from_json(before))
            reversed_ = [self._reverse(rec) for rec in reversed(self._moved)]
            self._moved = []
            self._publish_gauges()
            err = PersistenceFailed(op, {"error": f"{type(e).__name__}: {e}", "reversed": reversed_})
            self._rejected(op, err, **fields)
            raise err from e
        self._moved = []
        self._publish_gauges()

    def _reverse(self, rec: NotificationRecord) -> Dict[str, Any]:
        """Undo the token movement behind `rec`; report what happened."""
        token = self._pools.get_pool(rec.pool_id).stake_token
        out: Dict[str, Any] = {"seq": rec.seq, "kind": rec.kind, "pool_id": rec.pool_id, "amount": rec.amount}
        try:
            if rec.kind == KIND_DEPOSIT:
                ok = self.gateway.transfer_out(token, rec.user_id, rec.amount)
            else:
                ok = self.gateway.transfer_in(token, rec.user_id, rec.amount)
        except Exception as e:
            ok = False
            out["error"] = f"{type(e).__name__}: {e}"
        out["ok"] = ok is not False
        if not out["ok"]:
            log_event(log, "transfer_reversal_failed", level=logging.ERROR, user_id=rec.user_id, **out)
        return out

    def _state_json(self) -> Json:
        balances = self.gateway.balances_json() if isinstance(self.gateway, BalanceSnapshots) else []
        return LedgerSnapshot(
            pools=self._pools.to_json(),
            positions=self._positions.to_json(),
            notifications=self._log.to_json(),
            balances=balances,
        ).to_json()

    def _load(self, snap: LedgerSnapshot) -> None:
        # In place: the position ledger and reward calculator hold these objects.
        self._pools.load_json(snap.pools)
        self._log.load_json(snap.notifications)
        self._positions.load_json(snap.positions)

    def _publish_gauges(self) -> None:
        pools = self._pools.pools()
        metrics.set_gauge("pools_total", len(pools))
        for p in pools:
            metrics.set_gauge("pool_deposited_amount", p.deposited_amount, pool_id=p.pool_id)

    def _rejected(self, op: str, err: LedgerError, **fields: Any) -> None:
        metrics.inc_counter("rejections_total", op=op, code=err.code)
        log_event(
            log,
            f"{op}_rejected",
            level=logging.WARNING,
            code=err.code,
            reason=err.reason,
            details=err.details,
            **fields,
        )


__all__ = ["StakingEngine"]
