"""Operational endpoints for DocVault."""

from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from docvault.api.dependencies import get_container
from docvault.core.container import Container

router = APIRouter(tags=["admin"])


@router.get("/health")
async def healthcheck(container: Container = Depends(get_container)) -> Dict[str, str]:
    """Liveness probe."""

    return {"status": "ok", "environment": container.settings.ENVIRONMENT}


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus exposition."""

    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
