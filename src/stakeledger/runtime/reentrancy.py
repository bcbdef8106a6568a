from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Tuple

from stakeledger.runtime.errors import ReentrantCall

GuardKey = Tuple[int, str]


class ReentrancyGuard:
    """
    Rejects nested deposit/withdraw calls for the same (pool_id, user_id).

    The key is held for the whole operation, including the gateway call, and
    released on every exit path. A second entry for a held key raises
    ReentrantCall before touching any state.
    """

    def __init__(self) -> None:
        self._active: Dict[GuardKey, str] = {}
        self._lock = threading.Lock()

    def is_held(self, pool_id: int, user_id: str) -> bool:
        with self._lock:
            return (int(pool_id), str(user_id)) in self._active

    @contextmanager
    def hold(self, op: str, pool_id: int, user_id: str) -> Iterator[None]:
        key = (int(pool_id), str(user_id))
        with self._lock:
            active = self._active.get(key)
            if active is not None:
                raise ReentrantCall(op=op, pool_id=key[0], user_id=key[1], active_op=active)
            self._active[key] = op
        try:
            yield
        finally:
            with self._lock:
                self._active.pop(key, None)


__all__ = ["ReentrancyGuard", "GuardKey"]
