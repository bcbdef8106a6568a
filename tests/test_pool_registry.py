# tests/test_pool_registry.py
from __future__ import annotations

import pytest

from stakeledger.ledger.pools import PoolRegistry
from stakeledger.runtime.errors import InvalidAmount, InvalidPoolId, InvalidPoolParams


def test_pool_ids_are_dense_and_zero_based() -> None:
    reg = PoolRegistry()
    assert reg.create_pool("STK", "RWD", 500, 0) == 0
    assert reg.create_pool("STK", "STK", 1000, 7) == 1
    assert reg.create_pool("AAA", "BBB", 0, 30) == 2
    assert reg.pool_count() == 3
    assert [p.pool_id for p in reg.pools()] == [0, 1, 2]


def test_new_pool_starts_empty_and_keeps_its_config() -> None:
    reg = PoolRegistry()
    pid = reg.create_pool("STK", "RWD", 1234, 14)
    pool = reg.get_pool(pid)
    assert pool.stake_token == "STK"
    assert pool.reward_token == "RWD"
    assert pool.apy_bps == 1234
    assert pool.lock_days == 14
    assert pool.deposited_amount == 0


def test_stake_and_reward_token_may_be_the_same() -> None:
    reg = PoolRegistry()
    pid = reg.create_pool("SAME", "SAME", 100, 1)
    assert reg.get_pool(pid).reward_token == "SAME"


@pytest.mark.parametrize("bad_id", [-1, 1, 99, "0", None, True, 0.0])
def test_get_pool_rejects_unknown_ids(bad_id) -> None:
    reg = PoolRegistry()
    reg.create_pool("STK", "RWD", 100, 1)
    with pytest.raises(InvalidPoolId) as e:
        reg.get_pool(bad_id)
    assert e.value.code == "invalid_pool_id"
    assert e.value.details["pool_count"] == 1


def test_get_pool_on_empty_registry_fails() -> None:
    with pytest.raises(InvalidPoolId):
        PoolRegistry().get_pool(0)


def test_get_pool_returns_a_detached_copy() -> None:
    reg = PoolRegistry()
    pid = reg.create_pool("STK", "RWD", 100, 1)
    copy1 = reg.get_pool(pid)
    copy1.deposited_amount = 10_000
    copy1.apy_bps = 0
    assert reg.get_pool(pid).deposited_amount == 0
    assert reg.get_pool(pid).apy_bps == 100


@pytest.mark.parametrize(
    "args,reason",
    [
        (("", "RWD", 100, 1), "missing_stake_token"),
        (("STK", "  ", 100, 1), "missing_reward_token"),
        (("STK", "RWD", -1, 1), "apy_bps_negative"),
        (("STK", "RWD", 100, -7), "lock_days_negative"),
        (("STK", "RWD", 1.5, 1), "apy_bps_not_int"),
        (("STK", "RWD", 100, True), "lock_days_not_int"),
    ],
)
def test_create_pool_rejects_bad_params(args, reason) -> None:
    reg = PoolRegistry()
    with pytest.raises(InvalidPoolParams) as e:
        reg.create_pool(*args)
    assert e.value.reason == reason
    assert reg.pool_count() == 0


def test_debit_cannot_drive_aggregate_negative() -> None:
    reg = PoolRegistry()
    pid = reg.create_pool("STK", "RWD", 100, 1)
    reg.credit(pid, 40)
    with pytest.raises(InvalidAmount):
        reg.debit(pid, 41)
    assert reg.get_pool(pid).deposited_amount == 40


def test_registry_snapshot_rejects_gaps_in_ids() -> None:
    rows = [
        {"pool_id": 0, "stake_token": "A", "reward_token": "B", "apy_bps": 1, "lock_days": 0, "deposited_amount": 0},
        {"pool_id": 2, "stake_token": "A", "reward_token": "B", "apy_bps": 1, "lock_days": 0, "deposited_amount": 0},
    ]
    with pytest.raises(ValueError):
        PoolRegistry.from_json(rows)


def test_registry_snapshot_round_trip_preserves_order() -> None:
    reg = PoolRegistry()
    reg.create_pool("A", "B", 1, 0)
    reg.create_pool("C", "D", 2, 3)
    reg.credit(1, 77)

    again = PoolRegistry.from_json(reg.to_json())
    assert [p.to_json() for p in again.pools()] == [p.to_json() for p in reg.pools()]
