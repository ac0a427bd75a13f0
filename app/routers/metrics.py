# =============================================
# File: app/routers/metrics.py
# Purpose: Expose health, readiness and request metrics as JSON
# =============================================
from __future__ import annotations
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from loguru import logger

from app.utils import metrics, slog

router = APIRouter(prefix="/monitoring", tags=["monitoring"])


@router.get("/health")
def get_health():
    """Health check: memory usage, uptime and request success rate. Always 200; status is in the body."""
    health = metrics.health_status()
    logger.info(f"Health check requested - Status: {health['status']}")
    slog.log_probe("health", health["status"], health["memory"]["percentage"])
    return health


@router.get("/metrics")
def get_metrics():
    """Return in-process metrics (JSON)."""
    logger.info("Metrics requested")
    return metrics.snapshot()


@router.get("/ready", responses={503: {"description": "Application is not ready"}})
def get_readiness():
    """Readiness probe. Not ready answers 503 with {"status": "not ready"}, not a 200 body."""
    health = metrics.health_status()
    body = metrics.readiness(health)
    ready = body["status"] == "ready"
    logger.info(f"Readiness check - Ready: {ready}")
    slog.log_probe("ready", body["status"], health["memory"]["percentage"])
    if not ready:
        return JSONResponse(status_code=503, content=body)
    return body
