"""
Health check endpoint for the ensemble service.

Exposes a ``/health`` endpoint returning service status and the
readiness of every configured model runner.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request) -> dict[str, Any]:
    """Return service health including model readiness.

    Returns:
        Dict with ``status``, ``service``, and ``models`` keys.
    """
    classifier = getattr(request.app.state, "classifier", None)
    models: dict[str, bool] = {}
    if classifier is not None:
        models = {name: runner.is_ready for name, runner in classifier.runners.items()}
    all_ok = bool(models) and all(models.values())
    return {
        "status": "ok" if all_ok else "degraded",
        "service": "ensemble",
        "models": models,
    }
