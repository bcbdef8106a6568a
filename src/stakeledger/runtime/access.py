from __future__ import annotations

from typing import Iterable, Set

from stakeledger.runtime.errors import Unauthorized


class AccessControl:
    """Administrator allow-list for privileged ledger actions (pool creation)."""

    def __init__(self, admins: Iterable[str] = ()) -> None:
        self._admins: Set[str] = {str(a).strip() for a in admins if str(a).strip()}

    @property
    def admins(self) -> Set[str]:
        return set(self._admins)

    def is_admin(self, caller_id: str) -> bool:
        return str(caller_id or "").strip() in self._admins

    def require_admin(self, caller_id: str, *, action: str) -> None:
        if not self.is_admin(caller_id):
            raise Unauthorized(str(caller_id or ""), action)


__all__ = ["AccessControl"]
