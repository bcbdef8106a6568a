# src/stakeledger/runtime/gateway.py
from __future__ import annotations

"""Token transfer gateway.

The ledger never moves tokens itself. It asks a gateway to move stake between
a user account and the custody account, and treats the gateway as untrusted:
a transfer that returns False or raises is a failed transfer, and the gateway
may call back into the ledger while the ledger is mid-operation.

InMemoryTokenGateway is the reference implementation used by the dev API and
tests. Each call is all-or-nothing: the transfer hook runs before any balance
moves, so a hook that raises (or an insufficient balance) leaves every
balance untouched. Its balances can be snapshotted alongside the ledger.
"""

import threading
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from stakeledger.ledger.constants import CUSTODY_ACCOUNT_ID


class TokenGateway(Protocol):
    def transfer_in(self, token: str, from_account: str, amount: int) -> bool:
        """Move `amount` of `token` from `from_account` into custody."""
        ...

    def transfer_out(self, token: str, to_account: str, amount: int) -> bool:
        """Move `amount` of `token` out of custody to `to_account`."""
        ...


@runtime_checkable
class BalanceSnapshots(Protocol):
    """A gateway whose balances are persisted with the ledger snapshot."""

    def balances_json(self) -> List[Dict[str, Any]]: ...

    def load_balances_json(self, rows: Any) -> None: ...


class InsufficientFunds(RuntimeError):
    pass


TransferHook = Callable[[str, str, str, int], None]


class InMemoryTokenGateway:
    """Balances keyed by (token, account)."""

    def __init__(self, *, custody_account: str = CUSTODY_ACCOUNT_ID) -> None:
        self.custody_account = str(custody_account)
        self._balances: Dict[Tuple[str, str], int] = {}
        self._lock = threading.Lock()
        # Called before balances move: (direction, token, account, amount).
        # Raising aborts the transfer.
        self.on_transfer: Optional[TransferHook] = None

    def mint(self, token: str, account: str, amount: int) -> None:
        if int(amount) < 0:
            raise ValueError("mint amount must be >= 0")
        with self._lock:
            key = (str(token), str(account))
            self._balances[key] = int(self._balances.get(key, 0)) + int(amount)

    def balance_of(self, token: str, account: str) -> int:
        with self._lock:
            return int(self._balances.get((str(token), str(account)), 0))

    def _move(self, token: str, src: str, dst: str, amount: int) -> None:
        amt = int(amount)
        if amt <= 0:
            raise ValueError("transfer amount must be > 0")
        with self._lock:
            src_key = (str(token), str(src))
            dst_key = (str(token), str(dst))
            have = int(self._balances.get(src_key, 0))
            if have < amt:
                raise InsufficientFunds(f"{src} holds {have} {token}, needs {amt}")
            self._balances[src_key] = have - amt
            self._balances[dst_key] = int(self._balances.get(dst_key, 0)) + amt

    def transfer_in(self, token: str, from_account: str, amount: int) -> bool:
        if self.on_transfer is not None:
            self.on_transfer("in", token, from_account, int(amount))
        self._move(token, from_account, self.custody_account, amount)
        return True

    def transfer_out(self, token: str, to_account: str, amount: int) -> bool:
        if self.on_transfer is not None:
            self.on_transfer("out", token, to_account, int(amount))
        self._move(token, self.custody_account, to_account, amount)
        return True

    # ---- snapshot interop ----

    def balances_json(self) -> List[Dict[str, Any]]:
        with self._lock:
            rows = [
                {"token": token, "account": account, "amount": int(amount)}
                for (token, account), amount in self._balances.items()
                if int(amount) != 0
            ]
        rows.sort(key=lambda r: (r["token"], r["account"]))
        return rows

    def load_balances_json(self, rows: Any) -> None:
        balances: Dict[Tuple[str, str], int] = {}
        for idx, raw in enumerate(rows if isinstance(rows, list) else []):
            if not isinstance(raw, dict):
                raise ValueError(f"balances[{idx}] must be dict (got {type(raw).__name__})")
            key = (str(raw.get("token") or ""), str(raw.get("account") or ""))
            amount = raw.get("amount")
            if not key[0] or not key[1]:
                raise ValueError(f"balances[{idx}] needs token and account")
            if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
                raise ValueError(f"balances[{idx}] has invalid amount {amount!r}")
            if key in balances:
                raise ValueError(f"balances[{idx}] duplicates {key}")
            balances[key] = amount
        with self._lock:
            self._balances = balances


__all__ = ["TokenGateway", "BalanceSnapshots", "InMemoryTokenGateway", "InsufficientFunds", "TransferHook"]
