#!/usr/bin/env python3

"""Smoke run for the stake ledger API.

It verifies:
  - the engine boots on a fresh SQLite db
  - the FastAPI app serves /v1/health
  - a pool can be created, staked into and withdrawn from
  - a restarted app sees the same ledger and custody, and can pay out

Usage:
  python3 scripts/smoke.py
"""

from __future__ import annotations

import dataclasses
import os
import tempfile

from fastapi.testclient import TestClient

from stakeledger.api.app import create_app
from stakeledger.runtime.ledger_config import default_ledger_config


def _check(cond: bool, what: str) -> None:
    if not cond:
        raise RuntimeError(f"smoke failed: {what}")


def main() -> int:
    with tempfile.TemporaryDirectory(prefix="stakeledger-smoke-") as td:
        cfg = dataclasses.replace(
            default_ledger_config(),
            ledger_id="smoke",
            mode="dev",
            db_path=os.path.join(td, "ledger.db"),
            admins=("admin",),
        )

        with TestClient(create_app(cfg=cfg)) as c:
            _check(c.get("/v1/health").json().get("ready") is True, "health not ready")

            r = c.post(
                "/v1/pools",
                json={"caller": "admin", "stake_token": "STK", "reward_token": "RWD", "apy_bps": 500, "lock_days": 0},
            )
            _check(r.status_code == 200, f"create pool: {r.text}")

            c.post("/v1/dev/mint", json={"token": "STK", "account": "alice", "amount": 500})
            r = c.post("/v1/pools/0/deposit", json={"caller": "alice", "amount": 500})
            _check(r.status_code == 200, f"deposit: {r.text}")
            r = c.post("/v1/pools/0/withdraw", json={"caller": "alice", "amount": 200})
            _check(r.status_code == 200, f"withdraw: {r.text}")

        with TestClient(create_app(cfg=cfg)) as c:
            pool = c.get("/v1/pools/0").json()["pool"]
            _check(pool["deposited_amount"] == 300, f"restart lost state: {pool}")
            _check(c.get("/v1/notifications").json()["total"] == 2, "notification log not persisted")

            r = c.post("/v1/pools/0/withdraw", json={"caller": "alice", "amount": 300})
            _check(r.status_code == 200, f"withdraw after restart: {r.text}")
            bal = c.get("/v1/dev/balances/STK/alice").json()["balance"]
            _check(bal == 500, f"alice balance after full withdraw: {bal}")

    print("OK: stake ledger smoke passed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
