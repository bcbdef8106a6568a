from __future__ import annotations

from fastapi import APIRouter, Request

from stakeledger.api.routes_public_parts.common import Json

router = APIRouter()


@router.get("/health")
def health(request: Request) -> Json:
    eng = getattr(request.app.state, "engine", None)
    cfg = getattr(request.app.state, "cfg", None)
    return {
        "ok": True,
        "ready": eng is not None,
        "ledger_id": getattr(cfg, "ledger_id", ""),
        "mode": getattr(cfg, "mode", ""),
        "pools": eng.pool_count() if eng is not None else 0,
        "notifications": eng.notification_count() if eng is not None else 0,
        "persistent": bool(eng is not None and eng.store is not None),
    }
