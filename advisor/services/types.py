from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Language = Literal["en", "zh"]
Priority = Literal["high", "medium", "low"]
ActionType = Literal["research", "visit", "contact", "prepare"]

PRIORITIES: tuple[str, ...] = ("high", "medium", "low")
ACTION_TYPES: tuple[str, ...] = ("research", "visit", "contact", "prepare")

_CN_LANGUAGE_CODES = {"CN", "ZH", "ZH-CN", "ZH_CN", "ZH_HANS", "ZH-HANS"}


def normalize_language(value: Any, default: Language = "en") -> Language:
    if isinstance(value, str) and value.strip():
        return "zh" if value.strip().upper() in _CN_LANGUAGE_CODES else "en"
    return default


class BilingualText(BaseModel):
    model_config = ConfigDict(frozen=True)

    en: str
    zh: str


class CarRecommendation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    car_id: str
    match_score: float = Field(ge=0.0, le=1.0)
    reasoning: BilingualText


class NextStep(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    title: BilingualText
    description: BilingualText
    priority: Priority = "medium"
    action_type: ActionType = "research"
    url: Optional[str] = None
    is_completed: Optional[bool] = None


class AIRecommendationResponse(BaseModel):
    summary: BilingualText
    recommendations: list[CarRecommendation] = Field(default_factory=list)
    next_steps: list[NextStep] = Field(default_factory=list)


class FormattedResponse(BaseModel):
    summary: str
    recommendations: list[Any] = Field(default_factory=list)
    next_steps: list[Any] = Field(default_factory=list)


class ChatMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: Literal["user", "assistant", "system"] = "user"
    content: str = ""


class ChatReply(BaseModel):
    reply: str
    provider: Optional[str] = None
    degraded: bool = False


class ProviderAvailability(BaseModel):
    name: str
    available: bool
    api_key_present: bool


class UsageStats(BaseModel):
    total_tokens: int = 0
    model: str
    timestamp: str
