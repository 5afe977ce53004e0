from __future__ import annotations

from typing import Any, Optional, Sequence

from advisor.services.providers.base import BaseProviderClient, ProviderConfig, Turn

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
GROQ_DEFAULT_MODEL = "llama-3.1-8b-instant"


def groq_config(
    api_key: Optional[str],
    *,
    model: str = GROQ_DEFAULT_MODEL,
    base_url: str = GROQ_BASE_URL,
    timeout_s: float = 30.0,
    temperature: float = 0.7,
    max_tokens: int = 2048,
) -> ProviderConfig:
    return ProviderConfig(
        name="groq",
        api_key=api_key,
        model=model,
        base_url=base_url,
        timeout_s=timeout_s,
        temperature=temperature,
        max_tokens=max_tokens,
    )


class GroqClient(BaseProviderClient):
    """OpenAI-compatible chat completions endpoint with bearer auth."""

    def _endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/chat/completions"

    def _headers(self, api_key: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}

    def _build_body(self, turns: Sequence[Turn], *, max_tokens: int) -> dict[str, Any]:
        return {
            "model": self.config.model,
            "messages": [{"role": t["role"], "content": t["content"]} for t in turns],
            "temperature": self.config.temperature,
            "max_tokens": max_tokens,
        }

    def _extract_text(self, data: dict[str, Any]) -> str:
        return data["choices"][0]["message"]["content"]

    def _extract_tokens(self, data: dict[str, Any]) -> int:
        usage = data.get("usage")
        tokens = usage.get("total_tokens") if isinstance(usage, dict) else None
        return tokens if isinstance(tokens, int) else 0
