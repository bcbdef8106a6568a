# src/stakeledger/api/routes_public.py
from __future__ import annotations

from fastapi import APIRouter

from stakeledger.api.routes_public_parts.dev import router as dev_router
from stakeledger.api.routes_public_parts.health import router as health_router
from stakeledger.api.routes_public_parts.metrics import router as metrics_router
from stakeledger.api.routes_public_parts.notifications import router as notifications_router
from stakeledger.api.routes_public_parts.pools import router as pools_router


def build_public_router(*, include_dev: bool) -> APIRouter:
    public_router = APIRouter()

    # Versioned API surface
    public_router.include_router(health_router, prefix="/v1", tags=["health"])
    public_router.include_router(pools_router, prefix="/v1", tags=["pools"])
    public_router.include_router(notifications_router, prefix="/v1", tags=["notifications"])

    # Ops
    public_router.include_router(metrics_router, prefix="/v1", tags=["metrics"])

    if include_dev:
        public_router.include_router(dev_router, prefix="/v1", tags=["dev"])

    return public_router
