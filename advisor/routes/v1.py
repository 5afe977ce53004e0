from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from advisor.routes.deps import get_orchestrator
from advisor.services.orchestrator import AdvisorOrchestrator
from advisor.services.prompts import RECOMMENDATION_TASKS
from advisor.services.text_utils import generate_conversation_summary
from advisor.services.types import (
    AIRecommendationResponse,
    ChatMessage,
    ChatReply,
    FormattedResponse,
    normalize_language,
)
from advisor.services.validator import format_ai_response

router = APIRouter()

logger = logging.getLogger("rehui-advisor.v1")

MAX_MESSAGE_CHARS = 2000


def _require_message(body: dict[str, Any]) -> str:
    message = body.get("message") or body.get("query")
    if not isinstance(message, str) or not message.strip():
        raise HTTPException(status_code=400, detail="Missing `message`")
    if len(message) > MAX_MESSAGE_CHARS:
        raise HTTPException(status_code=400, detail=f"`message` longer than {MAX_MESSAGE_CHARS} characters")
    return message.strip()


def _messages(body: dict[str, Any]) -> list[ChatMessage]:
    raw = body.get("messages")
    messages: list[ChatMessage] = []
    if isinstance(raw, list):
        for item in raw:
            if isinstance(item, dict) and isinstance(item.get("content"), str):
                role = item.get("role") or item.get("type")
                messages.append(ChatMessage(role=role if role in {"user", "assistant"} else "user", content=item["content"]))
    return messages


@router.post("/recommendations", response_model=AIRecommendationResponse)
async def recommendations(
    body: dict[str, Any] = Body(...),
    orchestrator: AdvisorOrchestrator = Depends(get_orchestrator),
):
    message = _require_message(body)
    language = normalize_language(body.get("language"))
    task = body.get("task") if body.get("task") in RECOMMENDATION_TASKS else "car_recommendation"

    if body.get("consensus") is True:
        return await orchestrator.recommend_consensus(message, language, task=task)
    return await orchestrator.recommend(message, language, task=task)


@router.post("/chat", response_model=ChatReply)
async def chat(
    body: dict[str, Any] = Body(...),
    orchestrator: AdvisorOrchestrator = Depends(get_orchestrator),
):
    language = normalize_language(body.get("language"))
    messages = _messages(body)
    if not messages or body.get("message"):
        messages.append(ChatMessage(role="user", content=_require_message(body)))
    return await orchestrator.chat(messages, language)


@router.post("/summary")
async def summary(body: dict[str, Any] = Body(...)):
    language = normalize_language(body.get("language"))
    return {"summary": generate_conversation_summary(_messages(body), language), "language": language}


@router.get("/providers")
async def providers(orchestrator: AdvisorOrchestrator = Depends(get_orchestrator)):
    return {
        "all_valid": orchestrator.all_valid,
        "providers": [a.model_dump() for a in orchestrator.availability()],
        "usage": {p.name: p.get_usage_stats().model_dump() for p in orchestrator.providers},
    }


@router.post("/format", response_model=FormattedResponse)
async def format_response(body: dict[str, Any] = Body(...), language: Optional[str] = None):
    lang = normalize_language(body.get("language") or language)
    # FormatError is rendered by the app-level AdvisorError handler.
    return format_ai_response(body.get("response"), lang)
