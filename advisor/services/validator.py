from __future__ import annotations

import hashlib
import logging
import re
from typing import Any, Mapping, Optional

from advisor.services.errors import FormatError, ValidationError
from advisor.services.result import Invalid, Ok, Validated
from advisor.services.text_utils import get_bilingual_text
from advisor.services.types import (
    ACTION_TYPES,
    PRIORITIES,
    AIRecommendationResponse,
    BilingualText,
    CarRecommendation,
    FormattedResponse,
    NextStep,
)

logger = logging.getLogger("rehui-advisor.validator")

_SLUG_RE = re.compile(r"[^a-z0-9]+")

DEFAULT_MATCH_SCORE = 0.5
_REASONING_FALLBACK = BilingualText(en="No reasoning provided", zh="未提供推理")
_TITLE_FALLBACK = BilingualText(en="Next Step", zh="下一步")
_DESCRIPTION_FALLBACK = BilingualText(en="No description provided", zh="未提供描述")


def _collect_reasons(raw: Any) -> list[str]:
    if not isinstance(raw, Mapping):
        return [f"response must be an object, got {type(raw).__name__}"]

    reasons: list[str] = []
    summary = raw.get("summary")
    if not isinstance(summary, Mapping):
        reasons.append("summary must be an object")
    else:
        for key in ("en", "zh"):
            value = summary.get(key)
            if not isinstance(value, str):
                reasons.append(f"summary.{key} is missing")
            elif not value.strip():
                reasons.append(f"summary.{key} is empty")
    if not isinstance(raw.get("recommendations"), list):
        reasons.append("recommendations must be an array")
    if not isinstance(raw.get("next_steps"), list):
        reasons.append("next_steps must be an array")
    return reasons


def check_ai_response(raw: Any) -> Validated:
    """Top-level shape check; individual items are not inspected."""
    try:
        reasons = _collect_reasons(raw)
    except Exception as exc:
        return Invalid((f"inspection failed: {exc!r}",))
    if reasons:
        return Invalid(tuple(reasons))
    return Ok(raw)


def validate_ai_response(raw: Any) -> bool:
    return isinstance(check_ai_response(raw), Ok)


def format_ai_response(raw: Any, language: str) -> FormattedResponse:
    checked = check_ai_response(raw)
    if isinstance(checked, Invalid):
        cause = ValidationError(checked.reasons)
        raise FormatError(f"Cannot format AI response: {cause}", cause=cause) from cause

    data = checked.value
    return FormattedResponse(
        summary=get_bilingual_text(data.get("summary"), language),
        recommendations=list(data.get("recommendations") or []),
        next_steps=list(data.get("next_steps") or []),
    )


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _bilingual(item: Mapping[str, Any], key: str, fallback: BilingualText) -> BilingualText:
    nested = item.get(key)
    nested = nested if isinstance(nested, Mapping) else {}
    en = _as_str(nested.get("en")) or _as_str(item.get(f"{key}_en"))
    zh = _as_str(nested.get("zh")) or _as_str(item.get(f"{key}_zh"))
    return BilingualText(en=en or fallback.en, zh=zh or fallback.zh)


def _clamp_score(value: Any) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return DEFAULT_MATCH_SCORE
    except OverflowError:
        # ints beyond float range
        return 1.0 if value > 0 else 0.0
    if score != score:
        return DEFAULT_MATCH_SCORE
    return min(max(score, 0.0), 1.0)


def _derive_car_id(item: Mapping[str, Any]) -> str:
    car_id = _as_str(item.get("car_id"))
    if car_id:
        return car_id
    make_model = f"{_as_str(item.get('car_make'))} {_as_str(item.get('car_model'))}".lower()
    return _SLUG_RE.sub("-", make_model).strip("-")


def normalize_recommendation(item: Any) -> Optional[CarRecommendation]:
    if not isinstance(item, Mapping):
        return None
    car_id = _derive_car_id(item)
    if not car_id:
        logger.warning("Dropping recommendation without car_id. keys=%s", sorted(item.keys()))
        return None
    return CarRecommendation(
        car_id=car_id,
        match_score=_clamp_score(item.get("match_score", DEFAULT_MATCH_SCORE)),
        reasoning=_bilingual(item, "reasoning", _REASONING_FALLBACK),
    )


def _derive_step_id(item: Mapping[str, Any], title: BilingualText) -> str:
    step_id = _as_str(item.get("id"))
    if step_id:
        return step_id
    digest = hashlib.sha1(f"{title.en}\n{title.zh}".encode("utf-8")).hexdigest()
    return f"step-{digest[:10]}"


def normalize_next_step(item: Any) -> Optional[NextStep]:
    if not isinstance(item, Mapping):
        return None
    title = _bilingual(item, "title", _TITLE_FALLBACK)
    priority = item.get("priority")
    action_type = item.get("action_type")
    url = _as_str(item.get("url")) or None
    completed = item.get("is_completed")
    return NextStep(
        id=_derive_step_id(item, title),
        title=title,
        description=_bilingual(item, "description", _DESCRIPTION_FALLBACK),
        priority=priority if priority in PRIORITIES else "medium",
        action_type=action_type if action_type in ACTION_TYPES else "research",
        url=url,
        is_completed=completed if isinstance(completed, bool) else False,
    )


def normalize_ai_response(validated: Ok[Any]) -> AIRecommendationResponse:
    """Map a validated wire payload onto the response model.

    Only accepts the `Ok` produced by `check_ai_response`, so unvalidated data
    cannot reach this point.
    """
    data = validated.value
    summary = data["summary"]
    recommendations = [r for r in map(normalize_recommendation, data["recommendations"]) if r is not None]
    next_steps = [s for s in map(normalize_next_step, data["next_steps"]) if s is not None]
    return AIRecommendationResponse(
        summary=BilingualText(en=summary["en"], zh=summary["zh"]),
        recommendations=recommendations,
        next_steps=next_steps,
    )
