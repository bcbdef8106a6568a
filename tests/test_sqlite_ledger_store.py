from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from stakeledger.ledger.state import CURRENT_STATE_VERSION, LedgerSnapshot
from stakeledger.runtime.access import AccessControl
from stakeledger.runtime.errors import InvalidPoolId, TransferFailed
from stakeledger.runtime.engine import StakingEngine
from stakeledger.runtime.gateway import InMemoryTokenGateway
from stakeledger.runtime.sqlite_db import SqliteDB, SqliteLedgerStore
from stakeledger.runtime.state_invariants import InvariantViolation

T0 = 1_700_000_000


def _store(tmp_path: Path) -> SqliteLedgerStore:
    return SqliteLedgerStore(db=SqliteDB(path=str(tmp_path / "ledger.db")))


def test_engine_state_survives_restart(tmp_path: Path) -> None:
    gw = InMemoryTokenGateway()
    gw.mint("STK", "alice", 1_000)
    gw.mint("STK", "bob", 1_000)

    eng = StakingEngine(gateway=gw, access=AccessControl(["admin"]), store=_store(tmp_path))
    p0 = eng.create_pool("admin", stake_token="STK", reward_token="RWD", apy_bps=1000, lock_days=7)
    p1 = eng.create_pool("admin", stake_token="STK", reward_token="STK", apy_bps=50, lock_days=0)
    eng.deposit("alice", p0, 300, now=T0)
    eng.deposit("bob", p1, 40, now=T0)
    eng.withdraw("bob", p1, 15, now=T0 + 1)

    # A fresh gateway: custody balances come back from the same snapshot.
    fresh = InMemoryTokenGateway()
    again = StakingEngine(gateway=fresh, access=AccessControl(["admin"]), store=_store(tmp_path))
    assert again.snapshot().to_json() == eng.snapshot().to_json()
    assert fresh.balance_of("STK", fresh.custody_account) == 325
    assert again.get_pool(p0).deposited_amount == 300
    assert again.get_position(p1, "bob").amount == 25
    assert again.get_position(p0, "alice").lock_until == T0 + 7 * 86_400
    assert [r.kind for r in again.notifications()] == ["Deposit", "Deposit", "Withdraw"]

    # Ids keep counting from the persisted registry.
    assert again.create_pool("admin", stake_token="X", reward_token="Y", apy_bps=1, lock_days=1) == 2

    # Staked funds can still be paid out after the restart.
    again.withdraw("bob", p1, 25, now=T0 + 2)
    again.withdraw("alice", p0, 300, now=T0 + 8 * 86_400)
    assert fresh.balance_of("STK", "alice") == 1_000
    assert fresh.balance_of("STK", "bob") == 1_000
    assert fresh.balance_of("STK", fresh.custody_account) == 0


def test_failed_operation_is_not_persisted(tmp_path: Path) -> None:
    gw = InMemoryTokenGateway()
    store = _store(tmp_path)
    eng = StakingEngine(gateway=gw, access=AccessControl(["admin"]), store=store)
    eng.create_pool("admin", stake_token="STK", reward_token="RWD", apy_bps=1, lock_days=0)
    before = store.read()

    with pytest.raises(TransferFailed):
        eng.deposit("alice", 0, 10, now=T0)  # no funds minted

    assert store.read() == before


def test_store_write_and_read_canonical_snapshot(tmp_path: Path) -> None:
    store = _store(tmp_path)
    assert store.exists() is False
    with pytest.raises(FileNotFoundError):
        store.read()

    snap = LedgerSnapshot(
        pools=[{"pool_id": 0, "stake_token": "A", "reward_token": "B", "apy_bps": 1, "lock_days": 0, "deposited_amount": 5}],
        positions=[{"pool_id": 0, "user_id": "u", "amount": 5, "lock_until": 1}],
        notifications=[{"seq": 0, "pool_id": 0, "amount": 5, "user_id": "u", "kind": "Deposit", "timestamp": 1}],
    )
    store.write(snap.to_json())

    assert store.exists() is True
    got = store.read()
    assert got["state_version"] == CURRENT_STATE_VERSION
    assert LedgerSnapshot.from_json(got) == snap

    with store.db.connection() as con:
        row = con.execute("SELECT pool_count, notification_count FROM ledger_state WHERE id=1;").fetchone()
    assert (row["pool_count"], row["notification_count"]) == (1, 1)


def test_boot_refuses_snapshot_that_breaks_conservation(tmp_path: Path) -> None:
    store = _store(tmp_path)
    snap = LedgerSnapshot(
        pools=[{"pool_id": 0, "stake_token": "A", "reward_token": "B", "apy_bps": 1, "lock_days": 0, "deposited_amount": 6}],
        positions=[{"pool_id": 0, "user_id": "u", "amount": 5, "lock_until": 1}],
    )
    store.write(snap.to_json())

    with pytest.raises(InvariantViolation):
        StakingEngine(gateway=InMemoryTokenGateway(), access=AccessControl(), store=store)


def test_snapshot_version_mismatch_is_rejected() -> None:
    with pytest.raises(ValueError):
        LedgerSnapshot.from_json({"state_version": CURRENT_STATE_VERSION + 1, "pools": []})
    with pytest.raises(ValueError):
        LedgerSnapshot.from_json({"pools": []})


def test_positions_for_missing_pool_are_rejected_on_load(tmp_path: Path) -> None:
    store = _store(tmp_path)
    snap = LedgerSnapshot(positions=[{"pool_id": 3, "user_id": "u", "amount": 5, "lock_until": 1}])
    store.write(snap.to_json())
    with pytest.raises(InvalidPoolId):
        StakingEngine(gateway=InMemoryTokenGateway(), access=AccessControl(), store=store)


def test_schema_version_mismatch_refuses_to_start(tmp_path: Path) -> None:
    path = str(tmp_path / "ledger.db")
    SqliteDB(path=path).init_schema()

    con = sqlite3.connect(path)
    con.execute("UPDATE meta SET value='999' WHERE key='schema_version';")
    con.commit()
    con.close()

    with pytest.raises(RuntimeError):
        SqliteDB(path=path).init_schema()


def test_sqlite_pragmas(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STAKELEDGER_MODE", "prod")
    monkeypatch.delenv("STAKELEDGER_SQLITE_SYNCHRONOUS", raising=False)
    monkeypatch.setenv("STAKELEDGER_SQLITE_BUSY_TIMEOUT_MS", "1234")

    db = SqliteDB(path=str(tmp_path / "ledger.db"))
    db.init_schema()
    with db.connection() as con:
        assert str(con.execute("PRAGMA journal_mode;").fetchone()[0]).lower() == "wal"
        assert int(con.execute("PRAGMA synchronous;").fetchone()[0]) == 2  # FULL
        assert int(con.execute("PRAGMA busy_timeout;").fetchone()[0]) == 1234
