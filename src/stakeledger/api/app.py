from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from stakeledger.api.errors import install_error_handlers
from stakeledger.api.routes_public import build_public_router
from stakeledger.api.structured_logging import RequestLogMiddleware, configure_structured_logging
from stakeledger.runtime.engine import StakingEngine
from stakeledger.runtime.engine_boot import build_engine as _build_engine
from stakeledger.runtime.ledger_config import LedgerConfig, load_ledger_config


def build_engine(cfg: LedgerConfig) -> StakingEngine:
    """Build the StakingEngine for the API runtime.

    This wrapper exists so tests can monkeypatch `stakeledger.api.app.build_engine`
    without reaching into runtime modules.
    """
    return _build_engine(cfg)


def create_app(*, cfg: Optional[LedgerConfig] = None, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): build the engine (loading the SQLite snapshot if configured)
      - False: no engine; routes that need it answer 500 not_ready

    The dev mint/balance routes are mounted only when mode != "prod".
    """
    c = cfg or load_ledger_config()
    configure_structured_logging(c.log_level)

    # Disable docs in production.
    if c.mode == "prod":
        app = FastAPI(title="Stake Ledger API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="Stake Ledger API")

    app.state.cfg = c
    app.state.engine = build_engine(c) if boot_runtime else None

    app.add_middleware(RequestLogMiddleware)
    install_error_handlers(app)
    app.include_router(build_public_router(include_dev=c.mode != "prod"))

    return app
