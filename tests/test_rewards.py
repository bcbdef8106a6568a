# tests/test_rewards.py
from __future__ import annotations

import pytest

from stakeledger.ledger.constants import SECONDS_PER_DAY, SECONDS_PER_YEAR
from stakeledger.ledger.rewards import REWARD_DENOMINATOR, compute_reward
from stakeledger.runtime.access import AccessControl
from stakeledger.runtime.engine import StakingEngine
from stakeledger.runtime.errors import InvalidPoolId
from stakeledger.runtime.gateway import InMemoryTokenGateway

T0 = 1_700_000_000


def _engine(*, apy_bps: int, lock_days: int):
    gw = InMemoryTokenGateway()
    gw.mint("STK", "alice", 10**12)
    eng = StakingEngine(gateway=gw, access=AccessControl(["admin"]))
    pid = eng.create_pool("admin", stake_token="STK", reward_token="RWD", apy_bps=apy_bps, lock_days=lock_days)
    return eng, pid


def test_constants() -> None:
    assert SECONDS_PER_YEAR == 31_536_000
    assert REWARD_DENOMINATOR == 31_536_000 * 10_000


def test_one_year_at_ten_percent_on_1000_is_100() -> None:
    assert compute_reward(1000, 1000, 31_536_000) == 100


def test_engine_reward_after_one_year_past_unlock() -> None:
    eng, pid = _engine(apy_bps=1000, lock_days=0)
    eng.deposit("alice", pid, 1000, now=T0)
    assert eng.pending_reward("alice", pid, now=T0 + SECONDS_PER_YEAR) == 100


@pytest.mark.parametrize(
    "amount,apy,elapsed,expected",
    [
        (999, 1000, SECONDS_PER_YEAR, 99),  # 99.9 truncates
        (1000, 1000, SECONDS_PER_YEAR // 2, 50),
        (1, 1, SECONDS_PER_YEAR, 0),
        (10**18, 500, 1, 10**18 * 500 // REWARD_DENOMINATOR),
        (1000, 0, SECONDS_PER_YEAR, 0),
        (0, 1000, SECONDS_PER_YEAR, 0),
    ],
)
def test_integer_division_truncates(amount: int, apy: int, elapsed: int, expected: int) -> None:
    assert compute_reward(amount, apy, elapsed) == expected


def test_reward_is_zero_while_still_locked() -> None:
    eng, pid = _engine(apy_bps=1000, lock_days=7)
    eng.deposit("alice", pid, 1000, now=T0)

    assert eng.pending_reward("alice", pid, now=T0) == 0
    assert eng.pending_reward("alice", pid, now=T0 + 6 * SECONDS_PER_DAY) == 0
    # Accrual is measured from lock expiry, not from the deposit.
    lock_until = eng.get_position(pid, "alice").lock_until
    assert eng.pending_reward("alice", pid, now=lock_until) == 0
    assert eng.pending_reward("alice", pid, now=lock_until + SECONDS_PER_YEAR) == 100


def test_redeposit_restarts_accrual_clock() -> None:
    eng, pid = _engine(apy_bps=1000, lock_days=0)
    eng.deposit("alice", pid, 1000, now=T0)
    assert eng.pending_reward("alice", pid, now=T0 + SECONDS_PER_YEAR) == 100

    eng.deposit("alice", pid, 1000, now=T0 + SECONDS_PER_YEAR)
    assert eng.pending_reward("alice", pid, now=T0 + SECONDS_PER_YEAR) == 0
    assert eng.pending_reward("alice", pid, now=T0 + 2 * SECONDS_PER_YEAR) == 200


def test_reward_query_has_no_side_effects() -> None:
    eng, pid = _engine(apy_bps=1000, lock_days=0)
    eng.deposit("alice", pid, 1000, now=T0)
    before = eng.snapshot().to_json()

    for k in range(5):
        eng.pending_reward("alice", pid, now=T0 + k * SECONDS_PER_YEAR)

    assert eng.snapshot().to_json() == before


def test_reward_for_unknown_user_is_zero() -> None:
    eng, pid = _engine(apy_bps=1000, lock_days=0)
    assert eng.pending_reward("nobody", pid, now=T0) == 0


def test_reward_for_unknown_pool_fails() -> None:
    eng, pid = _engine(apy_bps=1000, lock_days=0)
    with pytest.raises(InvalidPoolId):
        eng.pending_reward("alice", pid + 1, now=T0)
