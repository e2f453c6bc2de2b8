from __future__ import annotations

from fastapi import APIRouter

from otp_packager.core.observability.metrics import snapshot

router = APIRouter()


@router.get("/health/live")
def live():
    return {"status": "ok"}


@router.get("/api/v2/metrics/runs")
def runs():
    return snapshot()
