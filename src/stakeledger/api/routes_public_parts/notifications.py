from __future__ import annotations

from fastapi import APIRouter, Query, Request

from stakeledger.api.routes_public_parts.common import Json, _engine

router = APIRouter()


@router.get("/notifications")
def v1_notifications(request: Request, since: int = Query(default=0, ge=0), limit: int = Query(default=100, ge=1, le=1000)) -> Json:
    """Cursor-style read of the append-only notification log.

    Clients pass back `next` as `since` to continue.
    """
    eng = _engine(request)
    recs = eng.notifications(since)[:limit]
    nxt = recs[-1].seq + 1 if recs else since
    return {"ok": True, "since": since, "next": nxt, "total": eng.notification_count(), "items": [r.to_json() for r in recs]}
