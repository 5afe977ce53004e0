from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict

from advisor.services.providers.gemini import GEMINI_BASE_URL, GEMINI_DEFAULT_MODEL, gemini_config
from advisor.services.providers.groq import GROQ_BASE_URL, GROQ_DEFAULT_MODEL, groq_config
from advisor.services.providers.base import ProviderConfig


class AdvisorSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    groq_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    groq_model: str = GROQ_DEFAULT_MODEL
    gemini_model: str = GEMINI_DEFAULT_MODEL
    groq_base_url: str = GROQ_BASE_URL
    gemini_base_url: str = GEMINI_BASE_URL
    timeout_s: float = 30.0
    failover_delay_s: float = 2.0
    deadline_s: Optional[float] = None
    temperature: float = 0.7
    max_tokens: int = 2048
    log_level: str = "INFO"
    cors_origins: Optional[str] = None

    def provider_configs(self) -> list[ProviderConfig]:
        """Provider configs in failover priority order (Groq first)."""
        shared = {"timeout_s": self.timeout_s, "temperature": self.temperature, "max_tokens": self.max_tokens}
        return [
            groq_config(self.groq_api_key, model=self.groq_model, base_url=self.groq_base_url, **shared),
            gemini_config(self.gemini_api_key, model=self.gemini_model, base_url=self.gemini_base_url, **shared),
        ]


def _str(environ: Mapping[str, str], *keys: str) -> Optional[str]:
    for key in keys:
        value = (environ.get(key) or "").strip()
        if value:
            return value
    return None


def _float(environ: Mapping[str, str], key: str, default: Optional[float]) -> Optional[float]:
    raw = (environ.get(key) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def load_settings(environ: Optional[Mapping[str, str]] = None) -> AdvisorSettings:
    env = os.environ if environ is None else environ
    return AdvisorSettings(
        groq_api_key=_str(env, "GROQ_API_KEY"),
        gemini_api_key=_str(env, "GEMINI_API_KEY", "GOOGLE_GEMINI_API_KEY"),
        groq_model=_str(env, "GROQ_MODEL") or GROQ_DEFAULT_MODEL,
        gemini_model=_str(env, "GEMINI_MODEL") or GEMINI_DEFAULT_MODEL,
        timeout_s=_float(env, "AI_TIMEOUT_S", 30.0) or 30.0,
        failover_delay_s=max(_float(env, "AI_FAILOVER_DELAY_S", 2.0) or 0.0, 0.0),
        deadline_s=_float(env, "AI_DEADLINE_S", None),
        temperature=_float(env, "AI_TEMPERATURE", 0.7) or 0.0,
        max_tokens=int(_float(env, "AI_MAX_TOKENS", 2048) or 2048),
        log_level=(_str(env, "LOG_LEVEL") or "INFO").upper(),
        cors_origins=_str(env, "CORS_ORIGINS"),
    )


def validate_environment(settings: AdvisorSettings) -> dict[str, bool]:
    groq = bool(settings.groq_api_key)
    gemini = bool(settings.gemini_api_key)
    return {"groq": groq, "gemini": gemini, "all_valid": groq or gemini}
