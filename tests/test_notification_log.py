from __future__ import annotations

import dataclasses

import pytest

from stakeledger.ledger.notifications import NotificationLog


def test_records_are_append_ordered_and_immutable() -> None:
    log = NotificationLog()
    a = log.record(0, 10, "alice", "Deposit", 100)
    b = log.record(1, 5, "bob", "Withdraw", 101)

    assert (a.seq, b.seq) == (0, 1)
    assert log.records() == [a, b]
    with pytest.raises(dataclasses.FrozenInstanceError):
        a.amount = 99  # type: ignore[misc]


def test_kind_is_extensible_but_not_empty() -> None:
    log = NotificationLog()
    rec = log.record(0, 1, "alice", "RewardQuoted", 100)
    assert rec.kind == "RewardQuoted"
    with pytest.raises(ValueError):
        log.record(0, 1, "alice", "  ", 100)
    assert len(log) == 1


def test_since_is_a_cursor() -> None:
    log = NotificationLog()
    for i in range(5):
        log.record(0, i + 1, "alice", "Deposit", 100 + i)

    assert [r.seq for r in log.since(0)] == [0, 1, 2, 3, 4]
    assert [r.seq for r in log.since(3)] == [3, 4]
    assert log.since(5) == []
    assert [r.seq for r in log.since(-2)] == [0, 1, 2, 3, 4]


def test_records_returns_a_copy() -> None:
    log = NotificationLog()
    log.record(0, 1, "alice", "Deposit", 1)
    out = log.records()
    out.clear()
    assert len(log) == 1


def test_snapshot_rejects_out_of_order_seq() -> None:
    rows = [
        {"seq": 1, "pool_id": 0, "amount": 1, "user_id": "a", "kind": "Deposit", "timestamp": 1},
    ]
    with pytest.raises(ValueError):
        NotificationLog.from_json(rows)
