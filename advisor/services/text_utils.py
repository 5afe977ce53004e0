"""Lightweight text helpers: keywords, similarity and templated summaries."""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping, Optional

from advisor.services.types import BilingualText

_NON_WORD_RE = re.compile(r"\W+")

_STOPWORDS_EN = frozenset(
    {
        "the",
        "and",
        "for",
        "are",
        "but",
        "not",
        "you",
        "all",
        "any",
        "can",
        "had",
        "her",
        "was",
        "one",
        "our",
        "out",
        "has",
        "have",
        "his",
        "how",
        "its",
        "may",
        "who",
        "did",
        "does",
        "get",
        "got",
        "him",
        "she",
        "too",
        "use",
        "with",
        "this",
        "that",
        "from",
        "they",
        "them",
        "then",
        "than",
        "there",
        "their",
        "what",
        "when",
        "where",
        "which",
        "will",
        "would",
        "could",
        "should",
        "about",
        "into",
        "over",
        "under",
        "some",
        "such",
        "very",
        "just",
        "also",
        "been",
        "being",
        "were",
        "your",
        "yours",
        "want",
        "need",
        "like",
        "looking",
        "please",
    }
)

# Chinese text has no spaces, so most phrases survive as a single token; this
# only filters filler tokens that are long enough to pass the length check.
# English fillers are included for mixed-language input.
_STOPWORDS_ZH = frozenset(
    {
        "为什么",
        "怎么样",
        "是不是",
        "有没有",
        "可不可以",
        "能不能",
        "我想要",
        "我需要",
        "请问一下",
        "谢谢你",
    }
) | _STOPWORDS_EN

STOPWORDS: dict[str, frozenset[str]] = {"en": _STOPWORDS_EN, "zh": _STOPWORDS_ZH}

_NO_INPUT = {"en": "No user input yet", "zh": "暂无用户输入"}


def extract_keywords(text: str, language: str) -> list[str]:
    stopwords = STOPWORDS.get(language, _STOPWORDS_EN)
    normalized = _NON_WORD_RE.sub(" ", (text or "").lower())

    keywords: list[str] = []
    seen: set[str] = set()
    for token in normalized.split():
        if len(token) <= 2 or token in stopwords or token in seen:
            continue
        seen.add(token)
        keywords.append(token)
    return keywords


def calculate_similarity(a: str, b: str) -> float:
    """Jaccard index of the two strings' lowercase word sets."""
    if not a or not b:
        return 0.0
    words_a = set(a.lower().split())
    words_b = set(b.lower().split())
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def _message_field(message: Any, key: str) -> Optional[str]:
    if isinstance(message, Mapping):
        value = message.get(key)
    else:
        value = getattr(message, key, None)
    return value if isinstance(value, str) else None


def generate_conversation_summary(messages: Iterable[Any], language: str) -> str:
    user_texts = []
    for message in messages or []:
        role = _message_field(message, "role") or _message_field(message, "type")
        if role != "user":
            continue
        user_texts.append(_message_field(message, "content") or "")

    is_chinese = language == "zh"
    top = extract_keywords(" ".join(user_texts), language)[:5]
    if not top:
        return _NO_INPUT["zh" if is_chinese else "en"]

    if is_chinese:
        return f"用户咨询了关于{'、'.join(top)}的问题"
    return f"User inquired about {', '.join(top)}"


def get_bilingual_text(text: Any, language: str) -> str:
    if isinstance(text, BilingualText):
        text = text.model_dump()
    if not isinstance(text, Mapping):
        return ""
    for key in (language, "en", "zh"):
        value = text.get(key)
        if value:
            return str(value)
    return ""


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    if len(text) <= max_length:
        return text
    return text[: max(0, max_length - len(suffix))] + suffix
