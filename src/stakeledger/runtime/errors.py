from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class LedgerError(Exception):
    """Canonical error type for staking ledger failures."""

    code: str
    reason: str
    details: Any | None = None

    def __str__(self) -> str:  # pragma: no cover
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"


class InvalidPoolId(LedgerError):
    def __init__(self, pool_id: Any, *, pool_count: int) -> None:
        super().__init__("invalid_pool_id", "pool_not_found", {"pool_id": pool_id, "pool_count": int(pool_count)})


class InvalidPoolParams(LedgerError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("invalid_pool_params", reason, details)


class InvalidAmount(LedgerError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("invalid_amount", reason, details)


class StillLocked(LedgerError):
    def __init__(self, *, pool_id: int, user_id: str, lock_until: int, now: int) -> None:
        super().__init__(
            "still_locked",
            "lock_not_expired",
            {"pool_id": pool_id, "user_id": user_id, "lock_until": int(lock_until), "now": int(now)},
        )


class TransferFailed(LedgerError):
    def __init__(self, direction: str, details: Any | None = None) -> None:
        super().__init__("transfer_failed", f"{direction}_failed", details)


class Unauthorized(LedgerError):
    def __init__(self, caller_id: str, action: str) -> None:
        super().__init__("unauthorized", "admin_required", {"caller": caller_id, "action": action})


class ReentrantCall(LedgerError):
    def __init__(self, *, op: str, pool_id: int, user_id: str, active_op: str) -> None:
        super().__init__(
            "reentrant_call",
            "operation_in_progress",
            {"op": op, "pool_id": pool_id, "user_id": user_id, "active_op": active_op},
        )


class PersistenceFailed(LedgerError):
    def __init__(self, op: str, details: Any | None = None) -> None:
        super().__init__("persistence_failed", f"{op}_not_persisted", details)


__all__ = [
    "LedgerError",
    "InvalidPoolId",
    "InvalidPoolParams",
    "InvalidAmount",
    "StillLocked",
    "TransferFailed",
    "Unauthorized",
    "ReentrantCall",
    "PersistenceFailed",
]
