from __future__ import annotations

import logging
from typing import Any, Sequence

from advisor.services.defaults import generate_default_response
from advisor.services.result import Ok
from advisor.services.types import AIRecommendationResponse, BilingualText, CarRecommendation, NextStep
from advisor.services.validator import check_ai_response, normalize_recommendation, normalize_next_step

logger = logging.getLogger("rehui-advisor.merger")


def merge_ai_responses(responses: Sequence[Any], language: str) -> AIRecommendationResponse:
    """Fold several raw provider payloads into one response.

    Invalid payloads are skipped. Summaries are joined per language in input
    order; recommendations and next steps keep the first item seen for each
    `car_id` / `id`.
    """
    if not responses:
        return generate_default_response(language)

    try:
        valid = [checked.value for checked in map(check_ai_response, responses) if isinstance(checked, Ok)]
        if not valid:
            logger.warning("merge_no_valid_responses count=%s language=%s", len(responses), language)
            return generate_default_response(language)

        summary = BilingualText(
            en=" ".join(r["summary"]["en"] for r in valid if r["summary"]["en"]),
            zh=" ".join(r["summary"]["zh"] for r in valid if r["summary"]["zh"]),
        )

        recommendations: list[CarRecommendation] = []
        seen_cars: set[str] = set()
        for raw_item in (item for r in valid for item in r["recommendations"]):
            rec = normalize_recommendation(raw_item)
            if rec is None or rec.car_id in seen_cars:
                continue
            seen_cars.add(rec.car_id)
            recommendations.append(rec)

        next_steps: list[NextStep] = []
        seen_steps: set[str] = set()
        for raw_item in (item for r in valid for item in r["next_steps"]):
            step = normalize_next_step(raw_item)
            if step is None or step.id in seen_steps:
                continue
            seen_steps.add(step.id)
            next_steps.append(step)

        return AIRecommendationResponse(summary=summary, recommendations=recommendations, next_steps=next_steps)
    except Exception as exc:
        logger.warning("merge_failed language=%s err=%r", language, exc)
        return generate_default_response(language)
