"""Prompt templates for every advisory task, one English and one Chinese each.

`build_prompt` is pure: the same (task, input, language) always renders the
same string, which keeps prompts testable and cacheable.
"""

from __future__ import annotations

from typing import Any, Callable, Literal, Mapping

Task = Literal[
    "chat", "car_recommendation", "car_search", "price_analysis", "comparison", "buying_process", "error"
]

TASKS: tuple[str, ...] = (
    "chat",
    "car_recommendation",
    "car_search",
    "price_analysis",
    "comparison",
    "buying_process",
    "error",
)
RECOMMENDATION_TASKS = frozenset(
    {"car_recommendation", "car_search", "price_analysis", "comparison", "buying_process"}
)

RESPONSE_SCHEMA = (
    "{\n"
    '  "summary": { "en": string, "zh": string },\n'
    '  "recommendations": [\n'
    '    { "car_id": string, "match_score": number, "reasoning_en": string, "reasoning_zh": string }\n'
    "  ],\n"
    '  "next_steps": [\n'
    '    { "title_en": string, "title_zh": string, "description_en": string, "description_zh": string,\n'
    '      "priority": "high" | "medium" | "low", "action_type": "research" | "visit" | "contact" | "prepare" }\n'
    "  ]\n"
    "}"
)

_RULES_EN = (
    "Return ONLY a valid JSON object (no markdown, no commentary) with exactly this shape:\n"
    f"{RESPONSE_SCHEMA}\n\n"
    "Rules:\n"
    "- Keep every field name in English exactly as shown, whatever the reply language.\n"
    "- match_score must be a number between 0 and 1 (inclusive), where 1 is a perfect match.\n"
    "- car_id must identify the model, e.g. \"toyota-rav4-hybrid\".\n"
    "- Fill both the English and the Chinese variant of every text field.\n"
    "- Give 1 to 5 recommendations and 2 to 4 next steps.\n"
)

_RULES_ZH = (
    "只返回一个合法的 JSON 对象（不要 markdown，不要额外说明），结构必须完全如下：\n"
    f"{RESPONSE_SCHEMA}\n\n"
    "规则：\n"
    "- 无论回复语言是什么，所有字段名都必须保持上面的英文写法。\n"
    "- match_score 必须是 0 到 1 之间（含 0 和 1）的数字，1 表示完全匹配。\n"
    "- car_id 用于标识车型，例如 \"toyota-rav4-hybrid\"。\n"
    "- 每个文本字段都要同时填写英文和中文版本。\n"
    "- 给出 1 到 5 个推荐和 2 到 4 个下一步建议。\n"
)

_ADVISOR_EN = (
    "You are a professional Canadian car buying advisor. "
    "Give personalized, practical and honest advice; prices are in CAD."
)
_ADVISOR_ZH = "你是一名专业的加拿大汽车购买顾问。请提供个性化、实用、诚实的建议；价格使用加元。"


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _render_history(value: Any) -> str:
    if not isinstance(value, (list, tuple)):
        return _as_text(value)
    lines: list[str] = []
    for message in value:
        if isinstance(message, Mapping):
            role, content = message.get("role"), message.get("content")
        else:
            role, content = getattr(message, "role", None), getattr(message, "content", None)
        speaker = "User" if role == "user" else "Assistant"
        lines.append(f"{speaker}: {_as_text(content)}")
    return "\n".join(lines)


def _render_budget(value: Any) -> str:
    if isinstance(value, Mapping):
        budget = _as_text(value.get("budget"))
        currency = _as_text(value.get("currency")) or "CAD"
        notes = _as_text(value.get("notes"))
        text = f"{budget} {currency}".strip()
        return f"{text}; {notes}" if notes else text
    return _as_text(value)


def _render_cars(value: Any) -> str:
    if not isinstance(value, (list, tuple)):
        return _as_text(value)
    return "\n".join(f"- {_as_text(car)}" for car in value)


def _chat(history: str, zh: bool) -> str:
    if zh:
        return (
            f"{_ADVISOR_ZH}\n\n"
            f"对话历史：\n{history}\n\n"
            "请基于以上对话历史，用简体中文给出有用的购车建议。回答简洁，必要时提出一个澄清问题。"
        )
    return (
        f"{_ADVISOR_EN}\n\n"
        f"Conversation history:\n{history}\n\n"
        "Based on the conversation above, give useful car buying advice in English. "
        "Be concise and ask one clarifying question when needed."
    )


def _car_recommendation(message: str, zh: bool) -> str:
    if zh:
        return (
            f"{_ADVISOR_ZH}\n\n"
            f"用户需求：{message}\n"
            "回复语言：中文\n\n"
            "推荐时请考虑：车型品牌和型号、预算（加元）、适用场景、优缺点。\n\n"
            f"{_RULES_ZH}"
        )
    return (
        f"{_ADVISOR_EN}\n\n"
        f"User needs: {message}\n"
        "Response language: English\n\n"
        "Consider make and model, budget (CAD), use cases, pros and cons.\n\n"
        f"{_RULES_EN}"
    )


def _car_search(query: str, zh: bool) -> str:
    if zh:
        return (
            f"{_ADVISOR_ZH}\n\n"
            f"搜索条件：{query}\n"
            "回复语言：中文\n\n"
            "请找出最符合这些条件的车型，并按匹配度从高到低排序。\n\n"
            f"{_RULES_ZH}"
        )
    return (
        f"{_ADVISOR_EN}\n\n"
        f"Search criteria: {query}\n"
        "Response language: English\n\n"
        "Find the models that best match these criteria, ordered by match score, highest first.\n\n"
        f"{_RULES_EN}"
    )


def _price_analysis(budget: str, zh: bool) -> str:
    if zh:
        return (
            f"{_ADVISOR_ZH}\n\n"
            f"预算：{budget}\n"
            "回复语言：中文\n\n"
            "请分析：新车与二手车的选择、不同价位的车型、贷款与全款、保险和保养费用、保值率。"
            "在 summary 中给出第一年总成本的估算。\n\n"
            f"{_RULES_ZH}"
        )
    return (
        f"{_ADVISOR_EN}\n\n"
        f"Budget: {budget}\n"
        "Response language: English\n\n"
        "Analyse new vs used options, models per price range, financing vs cash, insurance and "
        "maintenance costs, and resale value. Put a first-year total cost estimate in the summary.\n\n"
        f"{_RULES_EN}"
    )


def _comparison(cars: str, zh: bool) -> str:
    if zh:
        return (
            f"{_ADVISOR_ZH}\n\n"
            f"请比较以下车型：\n{cars}\n"
            "回复语言：中文\n\n"
            "比较维度：性价比、可靠性、油耗、安全评级、适用场景、保养成本、保值率。"
            "每个车型给出一条推荐，match_score 反映其综合表现，并在 summary 中说明推荐哪一款及原因。\n\n"
            f"{_RULES_ZH}"
        )
    return (
        f"{_ADVISOR_EN}\n\n"
        f"Compare the following cars:\n{cars}\n"
        "Response language: English\n\n"
        "Compare price value, reliability, fuel economy, safety rating, use cases, maintenance cost "
        "and resale value. Give one recommendation per car with a match_score reflecting its overall "
        "standing, and name the winner and why in the summary.\n\n"
        f"{_RULES_EN}"
    )


_BUYING_STEPS_EN = (
    "1. Needs analysis and budget planning",
    "2. Car research and comparison",
    "3. Dealer selection and test drive appointment",
    "4. Vehicle inspection and history report",
    "5. Price negotiation and contract signing",
    "6. Loan application and approval",
    "7. Insurance purchase",
    "8. Vehicle registration and licensing",
    "9. Delivery and acceptance",
    "10. Follow-up maintenance and service",
)

_BUYING_STEPS_ZH = (
    "1. 需求分析和预算制定",
    "2. 车型研究和比较",
    "3. 经销商选择和预约试驾",
    "4. 车辆检查和历史报告",
    "5. 价格谈判和合同签署",
    "6. 贷款申请和审批",
    "7. 保险购买",
    "8. 车辆注册和上牌",
    "9. 交车和验收",
    "10. 后续维护和服务",
)


def _buying_process(situation: str, zh: bool) -> str:
    steps = "\n".join(_BUYING_STEPS_ZH if zh else _BUYING_STEPS_EN)
    if zh:
        return (
            f"{_ADVISOR_ZH}\n\n"
            "请提供详细的加拿大购车流程指导。\n"
            f"买家情况：{situation or '未提供'}\n"
            "回复语言：中文\n\n"
            f"购车流程步骤：\n{steps}\n\n"
            f"{_RULES_ZH}\n"
            "本任务中：recommendations 可以为空数组；next_steps 按顺序列出上述每个步骤（最多 10 个），"
            "在 description 中写明实用提示和所需文件，summary 中说明最重要的注意事项。"
        )
    return (
        f"{_ADVISOR_EN}\n\n"
        "Provide detailed Canadian car buying process guidance.\n"
        f"Buyer situation: {situation or 'not provided'}\n"
        "Response language: English\n\n"
        f"Car buying process steps:\n{steps}\n\n"
        f"{_RULES_EN}\n"
        "For this task: recommendations may be an empty array; next_steps list each step above in "
        "order (up to 10), with practical tips and the documents needed in the description, and the "
        "summary names the most important notes."
    )


def _error(reason: str, zh: bool) -> str:
    if zh:
        return (
            f"抱歉，在处理您的请求时遇到了问题：{reason}\n\n"
            "请稍后重试，或者您可以：\n"
            "1. 重新描述您的需求\n"
            "2. 提供更具体的信息\n"
            "3. 尝试不同的关键词\n\n"
            "我会继续为您提供汽车购买建议。"
        )
    return (
        f"Sorry, we encountered an issue while processing your request: {reason}\n\n"
        "Please try again later, or you can:\n"
        "1. Redescribe your needs\n"
        "2. Provide more specific information\n"
        "3. Try different keywords\n\n"
        "I'll continue to provide car buying advice for you."
    )


_RENDERERS: dict[str, tuple[Callable[[Any], str], Callable[[str, bool], str]]] = {
    "chat": (_render_history, _chat),
    "car_recommendation": (_as_text, _car_recommendation),
    "car_search": (_as_text, _car_search),
    "price_analysis": (_render_budget, _price_analysis),
    "comparison": (_render_cars, _comparison),
    "buying_process": (_as_text, _buying_process),
    "error": (_as_text, _error),
}


def build_prompt(task: str, task_input: Any, language: str) -> str:
    """Render the prompt for `task`; unknown tasks fall back to `chat`."""
    render_input, template = _RENDERERS.get(task, _RENDERERS["chat"])
    return template(render_input(task_input), language == "zh")


def system_prompt(language: str) -> str:
    return _ADVISOR_ZH if language == "zh" else _ADVISOR_EN
