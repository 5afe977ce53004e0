from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Sequence

from advisor.services.defaults import generate_default_response
from advisor.services.errors import NetworkError, is_failover_error
from advisor.services.merger import merge_ai_responses
from advisor.services.prompts import build_prompt
from advisor.services.providers.base import ProviderClient
from advisor.services.result import Err, Invalid, Ok, Result
from advisor.services.types import AIRecommendationResponse, ChatReply, ProviderAvailability
from advisor.services.validator import check_ai_response, normalize_ai_response

logger = logging.getLogger("rehui-advisor.orchestrator")

ProviderCall = Callable[[ProviderClient], Awaitable[Any]]


def _remaining(deadline: Optional[float]) -> Optional[float]:
    if deadline is None:
        return None
    return deadline - time.monotonic()


async def _attempt(provider: ProviderClient, fn: ProviderCall, deadline: Optional[float]) -> Any:
    remaining = _remaining(deadline)
    if remaining is None:
        return await fn(provider)
    try:
        return await asyncio.wait_for(fn(provider), timeout=max(remaining, 0.0))
    except asyncio.TimeoutError as exc:
        raise NetworkError(f"{provider.name} exceeded the request deadline", provider=provider.name, timeout=True) from exc


async def try_in_order(
    providers: Sequence[ProviderClient],
    fn: ProviderCall,
    *,
    deadline: Optional[float] = None,
    failover_delay_s: float = 0.0,
) -> Result:
    """Call `fn` on each provider in turn until one succeeds.

    Returns `Ok((provider_name, value))` or `Err([(provider_name, error), ...])`.
    Providers are tried sequentially and at most once each. Only configuration,
    network and parse errors move on to the next provider; anything else
    propagates.
    """
    failures: list[tuple[str, Exception]] = []
    for index, provider in enumerate(providers):
        if index > 0 and failover_delay_s > 0:
            remaining = _remaining(deadline)
            delay = failover_delay_s if remaining is None else min(failover_delay_s, max(remaining, 0.0))
            await asyncio.sleep(delay)

        remaining = _remaining(deadline)
        if remaining is not None and remaining <= 0:
            failures.append((provider.name, NetworkError("request deadline exhausted", provider=provider.name, timeout=True)))
            break

        try:
            value = await _attempt(provider, fn, deadline)
        except Exception as exc:
            if not is_failover_error(exc):
                raise
            logger.warning("provider_failed provider=%s err_type=%s err=%s", provider.name, type(exc).__name__, exc)
            failures.append((provider.name, exc))
            continue
        return Ok((provider.name, value))
    return Err(failures)


class AdvisorOrchestrator:
    """Chooses providers by fixed priority and turns their output into responses."""

    def __init__(
        self,
        providers: Sequence[ProviderClient],
        *,
        failover_delay_s: float = 0.0,
        deadline_s: Optional[float] = None,
    ) -> None:
        self.providers = list(providers)
        self.failover_delay_s = failover_delay_s
        self.deadline_s = deadline_s

    def availability(self) -> list[ProviderAvailability]:
        return [
            ProviderAvailability(name=p.name, available=p.api_key_present, api_key_present=p.api_key_present)
            for p in self.providers
        ]

    def _available(self) -> list[ProviderClient]:
        return [p for p in self.providers if p.api_key_present]

    @property
    def primary_service(self) -> Optional[ProviderClient]:
        available = self._available()
        return available[0] if available else None

    @property
    def fallback_service(self) -> Optional[ProviderClient]:
        available = self._available()
        return available[1] if len(available) > 1 else None

    @property
    def all_valid(self) -> bool:
        return bool(self._available())

    def select_provider(self) -> Optional[ProviderClient]:
        return self.primary_service

    def _candidates(self) -> list[ProviderClient]:
        return [p for p in (self.primary_service, self.fallback_service) if p is not None]

    def _deadline(self, deadline_s: Optional[float]) -> Optional[float]:
        budget = deadline_s if deadline_s is not None else self.deadline_s
        return None if budget is None else time.monotonic() + budget

    async def recommend(
        self,
        user_message: str,
        language: str,
        *,
        task: str = "car_recommendation",
        deadline_s: Optional[float] = None,
    ) -> AIRecommendationResponse:
        candidates = self._candidates()
        if not candidates:
            logger.warning("no_provider_available task=%s; using default response", task)
            return generate_default_response(language)

        outcome = await try_in_order(
            candidates,
            lambda p: p.generate_structured(task, user_message, language),
            deadline=self._deadline(deadline_s),
            failover_delay_s=self.failover_delay_s,
        )
        if isinstance(outcome, Err):
            logger.warning(
                "all_providers_failed task=%s tried=%s; using default response",
                task,
                [name for name, _ in outcome.error],
            )
            return generate_default_response(language)

        provider_name, raw = outcome.value
        checked = check_ai_response(raw)
        if isinstance(checked, Invalid):
            logger.warning("invalid_ai_response provider=%s reasons=%s", provider_name, list(checked.reasons))
            return generate_default_response(language)

        try:
            response = normalize_ai_response(checked)
        except Exception as exc:
            logger.warning("normalize_failed provider=%s err_type=%s err=%s", provider_name, type(exc).__name__, exc)
            return generate_default_response(language)

        logger.info("recommendation_ready provider=%s task=%s", provider_name, task)
        return response

    async def recommend_consensus(
        self,
        user_message: str,
        language: str,
        *,
        task: str = "car_recommendation",
        deadline_s: Optional[float] = None,
    ) -> AIRecommendationResponse:
        """Ask every available provider in turn and merge what comes back."""
        deadline = self._deadline(deadline_s)
        raws: list[Any] = []
        for provider in self._available():
            outcome = await try_in_order(
                [provider],
                lambda p: p.generate_structured(task, user_message, language),
                deadline=deadline,
            )
            if isinstance(outcome, Ok):
                raws.append(outcome.value[1])
        return merge_ai_responses(raws, language)

    async def chat(self, messages: Sequence[Any], language: str, *, deadline_s: Optional[float] = None) -> ChatReply:
        candidates = self._candidates()
        if not candidates:
            reason = "服务不可用" if language == "zh" else "no AI provider is configured"
            return ChatReply(reply=build_prompt("error", reason, language), provider=None, degraded=True)

        outcome = await try_in_order(
            candidates,
            lambda p: p.generate_chat_response(messages, language),
            deadline=self._deadline(deadline_s),
            failover_delay_s=self.failover_delay_s,
        )
        if isinstance(outcome, Err):
            reason = "AI服务错误" if language == "zh" else "AI service error"
            return ChatReply(reply=build_prompt("error", reason, language), provider=None, degraded=True)

        provider_name, text = outcome.value
        if not text:
            reason = "AI 未返回内容" if language == "zh" else "the AI returned an empty reply"
            return ChatReply(reply=build_prompt("error", reason, language), provider=provider_name, degraded=True)
        return ChatReply(reply=text, provider=provider_name, degraded=False)

    async def health(self) -> dict[str, bool]:
        results: dict[str, bool] = {}
        for provider in self.providers:
            results[provider.name] = await provider.health_check()
        return results
