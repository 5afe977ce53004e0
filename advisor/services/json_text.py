"""Turn model completion text into JSON values."""

from __future__ import annotations

import json
import re
from typing import Any, Optional, Union

from advisor.services.errors import ParseError
from advisor.services.result import Err, Ok

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_DECODER = json.JSONDecoder()


def clean_completion_text(text: str) -> str:
    cleaned = (text or "").strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_RE.sub("", cleaned).strip()
    return cleaned


def find_json_object(text: str) -> Optional[dict[str, Any]]:
    """First decodable JSON object embedded in `text`, ignoring any prose around it."""
    start = text.find("{") if text else -1
    while start != -1:
        try:
            obj, _ = _DECODER.raw_decode(text, start)
        except json.JSONDecodeError:
            obj = None
        if isinstance(obj, dict):
            return obj
        start = text.find("{", start + 1)
    return None


def parse_json(text: str, *, provider: Optional[str] = None) -> Union[Ok[Any], Err[ParseError]]:
    """Parse a completion as JSON.

    Markdown fences are stripped first. When the whole text is not JSON, the
    first embedded object wins; the error keeps the first 500 raw characters.
    """
    cleaned = clean_completion_text(text)
    if not cleaned:
        return Err(ParseError("empty completion text", provider=provider, raw=text))

    try:
        return Ok(json.loads(cleaned))
    except json.JSONDecodeError as exc:
        obj = find_json_object(cleaned)
        if obj is None:
            return Err(
                ParseError(
                    f"no JSON object found in completion text ({exc.msg} at char {exc.pos})",
                    provider=provider,
                    raw=text[:500],
                )
            )
    return Ok(obj)
