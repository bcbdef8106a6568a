# src/stakeledger/ledger/notifications.py
from __future__ import annotations

"""Append-only notification log.

The log is an audit trail, not a pub/sub channel: records are ordered by
append, never edited, and nothing here delivers them anywhere. Consumers poll
with `since(seq)`.
"""

from typing import Any, Iterator, List

from stakeledger.ledger.types import NotificationRecord


class NotificationLog:
    def __init__(self) -> None:
        self._records: List[NotificationRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[NotificationRecord]:
        return iter(list(self._records))

    def record(self, pool_id: int, amount: int, user_id: str, kind: str, timestamp: int) -> NotificationRecord:
        k = str(kind or "").strip()
        if not k:
            raise ValueError("notification kind must be a non-empty string")
        rec = NotificationRecord(
            seq=len(self._records),
            pool_id=int(pool_id),
            amount=int(amount),
            user_id=str(user_id),
            kind=k,
            timestamp=int(timestamp),
        )
        self._records.append(rec)
        return rec

    def records(self) -> List[NotificationRecord]:
        return list(self._records)

    def since(self, seq: int) -> List[NotificationRecord]:
        """Records with seq >= `seq`, in append order."""
        start = max(0, int(seq))
        return self._records[start:]

    def to_json(self) -> List[dict]:
        return [r.to_json() for r in self._records]

    def load_json(self, rows: Any) -> None:
        loaded: List[NotificationRecord] = []
        for idx, raw in enumerate(rows if isinstance(rows, list) else []):
            if not isinstance(raw, dict):
                raise ValueError(f"notifications[{idx}] must be dict (got {type(raw).__name__})")
            rec = NotificationRecord.from_json(raw)
            if rec.seq != idx:
                raise ValueError(f"notifications[{idx}] has seq={rec.seq}, expected {idx}")
            loaded.append(rec)
        self._records[:] = loaded

    @classmethod
    def from_json(cls, rows: Any) -> "NotificationLog":
        log = cls()
        log.load_json(rows)
        return log


__all__ = ["NotificationLog"]
