from __future__ import annotations

import logging
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from advisor.config import AdvisorSettings, load_settings, validate_environment
from advisor.routes.health import router as health_router
from advisor.routes.v1 import router as v1_router
from advisor.services.errors import AdvisorError, ConfigurationError, FormatError, ValidationError, format_error_message
from advisor.services.orchestrator import AdvisorOrchestrator
from advisor.services.providers.base import BaseProviderClient
from advisor.services.providers.gemini import GeminiClient
from advisor.services.providers.groq import GroqClient
from advisor.services.types import normalize_language

logger = logging.getLogger("rehui-advisor.main")

_CLIENTS: dict[str, type[BaseProviderClient]] = {"groq": GroqClient, "gemini": GeminiClient}


def _parse_cors_origins(raw: Optional[str]) -> list[str]:
    if not raw:
        return ["*"]
    parts = [p.strip() for p in raw.split(",")]
    return [p for p in parts if p]


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_orchestrator(
    settings: AdvisorSettings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AdvisorOrchestrator:
    providers = [_CLIENTS[cfg.name](cfg, transport=transport) for cfg in settings.provider_configs()]
    return AdvisorOrchestrator(
        providers,
        failover_delay_s=settings.failover_delay_s,
        deadline_s=settings.deadline_s,
    )


def _error_status(exc: AdvisorError) -> int:
    if isinstance(exc, ConfigurationError):
        return 503
    if isinstance(exc, (FormatError, ValidationError)):
        return 422
    return 502


async def _advisor_error_handler(request: Request, exc: AdvisorError) -> JSONResponse:
    language = normalize_language(request.headers.get("X-Language") or request.query_params.get("language"))
    logger.warning("advisor_error path=%s code=%s err=%s", request.url.path, exc.code, exc)
    return JSONResponse(
        status_code=_error_status(exc),
        content={"error": exc.code, "message": format_error_message(exc, language)},
    )


def create_app(
    settings: Optional[AdvisorSettings] = None,
    *,
    orchestrator: Optional[AdvisorOrchestrator] = None,
) -> FastAPI:
    settings = settings or load_settings()
    _setup_logging(settings.log_level)
    app = FastAPI(title="ReHui Car Advisor", version="0.1.0")

    env_status = validate_environment(settings)
    if not env_status["all_valid"]:
        logger.warning("No AI provider key configured (GROQ_API_KEY / GEMINI_API_KEY); responses will use defaults.")

    app.state.settings = settings
    app.state.orchestrator = orchestrator or build_orchestrator(settings)

    origins = _parse_cors_origins(settings.cors_origins)
    allow_all = "*" in origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=86400,
    )

    app.add_exception_handler(AdvisorError, _advisor_error_handler)
    app.include_router(health_router)
    app.include_router(v1_router, prefix="/v1")

    return app


app = create_app()
