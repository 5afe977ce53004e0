from __future__ import annotations

from fastapi import Request

from advisor.services.orchestrator import AdvisorOrchestrator


def get_orchestrator(request: Request) -> AdvisorOrchestrator:
    return request.app.state.orchestrator
