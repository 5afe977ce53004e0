from __future__ import annotations

import os

from fastapi import APIRouter, Depends

from advisor.routes.deps import get_orchestrator
from advisor.services.orchestrator import AdvisorOrchestrator

router = APIRouter()


def _get_commit_sha() -> str | None:
    for key in (
        "RAILWAY_GIT_COMMIT_SHA",
        "GITHUB_SHA",
        "VERCEL_GIT_COMMIT_SHA",
        "COMMIT_SHA",
        "GIT_SHA",
    ):
        value = os.getenv(key)
        if value:
            return value
    return None


@router.get("/healthz")
async def healthz(deep: bool = False, orchestrator: AdvisorOrchestrator = Depends(get_orchestrator)):
    primary = orchestrator.primary_service
    fallback = orchestrator.fallback_service
    payload = {
        "ok": True,
        "service": "rehui-advisor",
        "commit_sha": _get_commit_sha(),
        "environment": os.getenv("ENVIRONMENT"),
        "all_valid": orchestrator.all_valid,
        "primary_service": primary.name if primary else None,
        "fallback_service": fallback.name if fallback else None,
        "providers": [a.model_dump() for a in orchestrator.availability()],
    }
    if deep:
        checks = await orchestrator.health()
        payload["provider_health"] = checks
        payload["ok"] = any(checks.values())
    return payload
