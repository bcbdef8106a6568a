# src/stakeledger/runtime/ledger_config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from stakeledger.ledger.constants import CUSTODY_ACCOUNT_ID

Json = Dict[str, Any]


def _as_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return int(default)


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


def _as_admins(v: Any, default: Tuple[str, ...]) -> Tuple[str, ...]:
    if v is None:
        return tuple(default)
    if isinstance(v, str):
        items = v.split(",")
    elif isinstance(v, (list, tuple)):
        items = [str(x) for x in v]
    else:
        return tuple(default)
    out = []
    for it in items:
        s = it.strip()
        if s and s not in out:
            out.append(s)
    return tuple(out)


@dataclass(frozen=True)
class LedgerConfig:
    ledger_id: str
    mode: str  # "dev" | "testnet" | "prod"

    # SQLite snapshot path; empty keeps the ledger in memory only.
    db_path: str

    admins: Tuple[str, ...]
    custody_account: str

    api_host: str
    api_port: int

    log_level: str


_ALLOWED_MODES = {"dev", "testnet", "prod"}
_ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def validate_ledger_config(cfg: LedgerConfig) -> None:
    """Fail-fast validation for operator config."""

    if not isinstance(cfg.ledger_id, str) or not cfg.ledger_id.strip():
        raise ValueError("ledger_id must be a non-empty string")

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {_ALLOWED_MODES}; got: {cfg.mode!r}")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")

    if not isinstance(cfg.custody_account, str) or not cfg.custody_account.strip():
        raise ValueError("custody_account must be a non-empty string")

    if cfg.custody_account in cfg.admins:
        raise ValueError("custody_account must not be an admin")

    if mode == "prod":
        # Pool creation would be impossible, and an in-memory prod ledger loses funds on restart.
        if not cfg.admins:
            raise ValueError("prod mode requires at least one admin")
        if not cfg.db_path.strip():
            raise ValueError("prod mode requires db_path")

    if str(cfg.log_level or "").strip().upper() not in _ALLOWED_LOG_LEVELS:
        raise ValueError(f"log_level must be one of {_ALLOWED_LOG_LEVELS}; got: {cfg.log_level!r}")


def default_ledger_config() -> LedgerConfig:
    return LedgerConfig(
        ledger_id="stakeledger-dev",
        mode="dev",
        db_path="",
        admins=(),
        custody_account=CUSTODY_ACCOUNT_ID,
        api_host="127.0.0.1",
        api_port=8080,
        log_level="INFO",
    )


def _from_mapping(raw: Json, d: LedgerConfig) -> LedgerConfig:
    return LedgerConfig(
        ledger_id=_as_str(raw.get("ledger_id"), d.ledger_id),
        mode=_as_str(raw.get("mode"), d.mode).strip().lower(),
        db_path=str(raw.get("db_path") if raw.get("db_path") is not None else d.db_path),
        admins=_as_admins(raw.get("admins"), d.admins),
        custody_account=_as_str(raw.get("custody_account"), d.custody_account),
        api_host=_as_str(raw.get("api_host"), d.api_host),
        api_port=_as_int(raw.get("api_port"), d.api_port),
        log_level=_as_str(raw.get("log_level"), d.log_level).strip().upper(),
    )


def read_ledger_config_file(path: str) -> LedgerConfig:
    p = Path(path)
    raw = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("ledger config must be a JSON object")

    cfg = _from_mapping(raw, default_ledger_config())
    validate_ledger_config(cfg)
    return cfg


def ledger_config_from_env() -> LedgerConfig:
    raw: Json = {
        "ledger_id": os.environ.get("STAKELEDGER_LEDGER_ID"),
        "mode": os.environ.get("STAKELEDGER_MODE"),
        "db_path": os.environ.get("STAKELEDGER_DB_PATH"),
        "admins": os.environ.get("STAKELEDGER_ADMINS"),
        "custody_account": os.environ.get("STAKELEDGER_CUSTODY_ACCOUNT"),
        "api_host": os.environ.get("STAKELEDGER_API_HOST"),
        "api_port": os.environ.get("STAKELEDGER_API_PORT"),
        "log_level": os.environ.get("STAKELEDGER_LOG_LEVEL"),
    }
    cfg = _from_mapping(raw, default_ledger_config())
    validate_ledger_config(cfg)
    return cfg


def load_ledger_config(*, config_path: Optional[str] = None) -> LedgerConfig:
    """Config file (arg or STAKELEDGER_CONFIG_PATH) wins; otherwise env over defaults."""
    p = config_path or os.environ.get("STAKELEDGER_CONFIG_PATH")
    if p:
        return read_ledger_config_file(p)
    return ledger_config_from_env()


__all__ = [
    "LedgerConfig",
    "default_ledger_config",
    "validate_ledger_config",
    "read_ledger_config_file",
    "ledger_config_from_env",
    "load_ledger_config",
]
