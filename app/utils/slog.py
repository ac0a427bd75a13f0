# =============================================
# File: app/utils/slog.py
# Purpose: JSON event log for requests, stored recommendations and monitoring probes
# =============================================
from __future__ import annotations
import json
import logging
import os
import uuid
from typing import Any, Dict, Optional

_LOGGER_NAME = "life_insurance"

_logger = logging.getLogger(_LOGGER_NAME)
if not _logger.handlers:
    _logger.setLevel(getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO))
    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter("%(message)s"))
    _logger.addHandler(_handler)
    _logger.propagate = True  # pytest caplog


def new_request_id() -> str:
    return uuid.uuid4().hex


def is_success(status: int) -> bool:
    return 200 <= status < 400


def _emit(event: str, fields: Dict[str, Any], level: int = logging.INFO) -> None:
    payload = {"event": event, **{k: v for k, v in fields.items() if v is not None}}
    _logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))


def log_request(
    request_id: str,
    method: str,
    path: str,
    latency_ms: float,
    status: Optional[int] = None,
    client_ip: Optional[str] = None,
    error: Optional[str] = None,
    ctx: Optional[Dict[str, Any]] = None,
) -> None:
    """
    One line per finished request.
    status=None means the handler raised: logged as `request.error` at ERROR level.
    Router context (owner, policy type) is merged in.
    """
    fields: Dict[str, Any] = dict(ctx or {})
    fields.update(
        request_id=request_id,
        method=method,
        path=path,
        latency_ms=latency_ms,
        client_ip=client_ip or "",
    )
    if status is None:
        fields.update(success=False, error=error or "unhandled")
        _emit("request.error", fields, logging.ERROR)
        return
    fields.update(status=status, success=is_success(status))
    _emit("request.completed", fields)


def log_recommendation(
    submission_id: Optional[int],
    user_id: Optional[str],
    age: int,
    dependents: int,
    risk_tolerance: str,
    policy_type: str,
    coverage_amount: int,
    term_years: int,
) -> None:
    # income never goes into the event log
    _emit(
        "recommendation.created",
        {
            "submission_id": submission_id,
            "user_id": user_id,
            "age": age,
            "dependents": dependents,
            "risk_tolerance": risk_tolerance,
            "policy_type": policy_type,
            "coverage_amount": coverage_amount,
            "term_years": term_years,
        },
    )


def log_probe(probe: str, status: str, memory_pct: Optional[float] = None) -> None:
    level = logging.INFO if status in ("healthy", "ready", "ok") else logging.WARNING
    _emit("monitoring.probe", {"probe": probe, "status": status, "memory_pct": memory_pct}, level)
