from __future__ import annotations

from typing import Any, Optional, Sequence

from advisor.services.providers.base import BaseProviderClient, ProviderConfig, Turn

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_DEFAULT_MODEL = "gemini-2.5-flash"


def gemini_config(
    api_key: Optional[str],
    *,
    model: str = GEMINI_DEFAULT_MODEL,
    base_url: str = GEMINI_BASE_URL,
    timeout_s: float = 30.0,
    temperature: float = 0.7,
    max_tokens: int = 2048,
) -> ProviderConfig:
    return ProviderConfig(
        name="gemini",
        api_key=api_key,
        model=model,
        base_url=base_url,
        timeout_s=timeout_s,
        temperature=temperature,
        max_tokens=max_tokens,
    )


class GeminiClient(BaseProviderClient):
    """generateContent endpoint; the key travels as a query parameter."""

    def _endpoint(self) -> str:
        model = self.config.model.replace("models/", "")
        return f"{self.config.base_url.rstrip('/')}/models/{model}:generateContent"

    def _params(self, api_key: str) -> Optional[dict[str, str]]:
        return {"key": api_key}

    def _build_body(self, turns: Sequence[Turn], *, max_tokens: int) -> dict[str, Any]:
        # Gemini only knows "user" and "model"; system text rides as a user turn.
        contents = [
            {"role": "model" if t["role"] == "assistant" else "user", "parts": [{"text": t["content"]}]}
            for t in turns
        ]
        return {
            "contents": contents,
            "generationConfig": {
                "temperature": self.config.temperature,
                "maxOutputTokens": max_tokens,
            },
        }

    def _extract_text(self, data: dict[str, Any]) -> str:
        return data["candidates"][0]["content"]["parts"][0]["text"]

    def _extract_tokens(self, data: dict[str, Any]) -> int:
        usage = data.get("usageMetadata")
        tokens = usage.get("totalTokenCount") if isinstance(usage, dict) else None
        return tokens if isinstance(tokens, int) else 0
