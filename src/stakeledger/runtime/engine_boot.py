# src/stakeledger/runtime/engine_boot.py
from __future__ import annotations

from typing import Optional

from stakeledger.runtime.access import AccessControl
from stakeledger.runtime.engine import StakingEngine
from stakeledger.runtime.gateway import InMemoryTokenGateway, TokenGateway
from stakeledger.runtime.ledger_config import LedgerConfig, load_ledger_config
from stakeledger.runtime.sqlite_db import SqliteDB, SqliteLedgerStore


def build_engine(cfg: Optional[LedgerConfig] = None, *, gateway: Optional[TokenGateway] = None) -> StakingEngine:
    """
    Build a StakingEngine from an explicit config or, if omitted, from
    STAKELEDGER_CONFIG_PATH / environment.

    Without an injected gateway the engine custodies tokens in an
    InMemoryTokenGateway (dev/testnet use). With db_path set, its balances
    are written in the same SQLite snapshot as the ledger, so custody and
    positions survive a restart together. An injected gateway is expected to
    keep its own durable balances.
    """
    c = cfg or load_ledger_config()
    gw = gateway or InMemoryTokenGateway(custody_account=c.custody_account)

    store = None
    if c.db_path.strip():
        store = SqliteLedgerStore(db=SqliteDB(path=c.db_path))

    return StakingEngine(gateway=gw, access=AccessControl(c.admins), store=store)
