from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

import httpx
from pydantic import BaseModel, ConfigDict

from advisor.services.errors import ConfigurationError, NetworkError, ParseError
from advisor.services.json_text import parse_json
from advisor.services.prompts import build_prompt, system_prompt
from advisor.services.result import Err
from advisor.services.types import UsageStats

logger = logging.getLogger("rehui-advisor.providers")

Turn = dict[str, str]


class ProviderConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    api_key: Optional[str] = None
    model: str
    base_url: str
    timeout_s: float = 30.0
    temperature: float = 0.7
    max_tokens: int = 2048

    @property
    def api_key_present(self) -> bool:
        return bool((self.api_key or "").strip())


@runtime_checkable
class ProviderClient(Protocol):
    name: str

    @property
    def api_key_present(self) -> bool: ...

    async def generate_chat_response(self, messages: Sequence[Any], language: str) -> str: ...

    async def generate_car_recommendation(self, user_message: str, language: str) -> Any: ...

    async def generate_structured(self, task: str, task_input: Any, language: str) -> Any: ...

    async def health_check(self) -> bool: ...

    def get_usage_stats(self) -> UsageStats: ...


class BaseProviderClient:
    """HTTP plumbing shared by the provider clients.

    Subclasses describe their wire format (`_endpoint`, `_headers`, `_params`,
    `_build_body`, `_extract_text`, `_extract_tokens`); this class does the
    POST, error typing, JSON parsing and token accounting.
    """

    def __init__(self, config: ProviderConfig, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.config = config
        self.name = config.name
        self._transport = transport
        self._total_tokens = 0

    @property
    def api_key_present(self) -> bool:
        return self.config.api_key_present

    def _require_api_key(self) -> str:
        if not self.config.api_key_present:
            raise ConfigurationError(f"{self.name} API key is not configured", provider=self.name)
        return str(self.config.api_key).strip()

    def _endpoint(self) -> str:
        raise NotImplementedError

    def _headers(self, api_key: str) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def _params(self, api_key: str) -> Optional[dict[str, str]]:
        return None

    def _build_body(self, turns: Sequence[Turn], *, max_tokens: int) -> dict[str, Any]:
        raise NotImplementedError

    def _extract_text(self, data: dict[str, Any]) -> str:
        raise NotImplementedError

    def _extract_tokens(self, data: dict[str, Any]) -> int:
        return 0

    async def _complete(self, turns: Sequence[Turn], *, max_tokens: Optional[int] = None) -> str:
        api_key = self._require_api_key()
        body = self._build_body(turns, max_tokens=max_tokens or self.config.max_tokens)

        async with httpx.AsyncClient(timeout=self.config.timeout_s, transport=self._transport) as client:
            try:
                res = await client.post(
                    self._endpoint(),
                    headers=self._headers(api_key),
                    params=self._params(api_key),
                    json=body,
                )
            except httpx.TimeoutException as exc:
                raise NetworkError(f"{self.name} request timed out", provider=self.name, timeout=True) from exc
            except httpx.HTTPError as exc:
                raise NetworkError(f"{self.name} transport error: {exc}", provider=self.name) from exc

        if res.status_code >= 400:
            raise NetworkError(
                f"{self.name} returned HTTP {res.status_code}",
                provider=self.name,
                status_code=res.status_code,
                text=res.text[:500],
            )

        try:
            data = res.json()
        except ValueError as exc:
            raise ParseError(f"{self.name} returned a non-JSON body", provider=self.name, raw=res.text[:500]) from exc
        if not isinstance(data, dict):
            raise ParseError(f"{self.name} returned an unexpected body", provider=self.name, raw=res.text[:500])

        self._total_tokens += self._extract_tokens(data)
        try:
            text = self._extract_text(data)
        except (KeyError, IndexError, TypeError) as exc:
            raise ParseError(f"{self.name} response has no completion text", provider=self.name, raw=res.text[:500]) from exc
        return text if isinstance(text, str) else ""

    async def generate_chat_response(self, messages: Sequence[Any], language: str) -> str:
        self._require_api_key()
        turns = [{"role": "user", "content": build_prompt("chat", list(messages), language)}]
        text = await self._complete(turns)
        return text.strip()

    async def generate_structured(self, task: str, task_input: Any, language: str) -> Any:
        """Run a JSON-producing task and return the parsed, unvalidated payload."""
        self._require_api_key()
        turns = [
            {"role": "system", "content": system_prompt(language)},
            {"role": "user", "content": build_prompt(task, task_input, language)},
        ]
        text = await self._complete(turns)
        logger.debug("provider=%s task=%s raw=%s", self.name, task, text[:500])

        parsed = parse_json(text, provider=self.name)
        if isinstance(parsed, Err):
            raise parsed.error
        return parsed.value

    async def generate_car_recommendation(self, user_message: str, language: str) -> Any:
        return await self.generate_structured("car_recommendation", user_message, language)

    async def health_check(self) -> bool:
        if not self.api_key_present:
            return False
        try:
            text = await self._complete([{"role": "user", "content": "Hello"}], max_tokens=10)
        except (NetworkError, ParseError) as exc:
            logger.warning("health_check_failed provider=%s err=%s", self.name, exc)
            return False
        return bool(text)

    def get_usage_stats(self) -> UsageStats:
        return UsageStats(
            total_tokens=self._total_tokens,
            model=self.config.model,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
