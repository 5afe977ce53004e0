from __future__ import annotations

import logging

from advisor.services.types import AIRecommendationResponse, BilingualText, NextStep

logger = logging.getLogger("rehui-advisor.defaults")

DEFAULT_SUMMARY = BilingualText(
    en="Unable to generate recommendations at this time. Please try again later.",
    zh="目前无法生成推荐，请稍后再试。",
)

DEFAULT_NEXT_STEP_ID = "default-1"


def generate_default_response(language: str) -> AIRecommendationResponse:
    """Canned bilingual payload used whenever no usable AI result exists.

    The payload is identical for every language; `language` only tags the log
    line so fallbacks can be traced per locale.
    """
    logger.debug("default_response language=%s", language)
    return AIRecommendationResponse(
        summary=DEFAULT_SUMMARY,
        recommendations=[],
        next_steps=[
            NextStep(
                id=DEFAULT_NEXT_STEP_ID,
                title=BilingualText(en="Try Again", zh="重试"),
                description=BilingualText(en="Try Again", zh="重试"),
                priority="medium",
                action_type="research",
            )
        ],
    )
