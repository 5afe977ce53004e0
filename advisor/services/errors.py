from __future__ import annotations

from typing import Any, Optional, Sequence


class AdvisorError(RuntimeError):
    """Base error for the recommendation pipeline."""

    code = "AI_SERVICE_ERROR"


class ConfigurationError(AdvisorError):
    """A provider is missing required configuration (usually its API key)."""

    code = "SERVICE_UNAVAILABLE"

    def __init__(self, message: str, *, provider: Optional[str] = None) -> None:
        super().__init__(message)
        self.provider = provider


class NetworkError(AdvisorError):
    """Non-2xx response or transport failure talking to a provider."""

    code = "NETWORK_ERROR"

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        text: Optional[str] = None,
        timeout: bool = False,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.text = text
        if timeout:
            self.code = "TIMEOUT_ERROR"


class ParseError(AdvisorError):
    """Provider completion text could not be turned into JSON."""

    code = "AI_SERVICE_ERROR"

    def __init__(self, message: str, *, provider: Optional[str] = None, raw: Optional[str] = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.raw = raw


class ValidationError(AdvisorError):
    """Parsed JSON does not have the recommendation shape."""

    code = "VALIDATION_ERROR"

    def __init__(self, reasons: Sequence[str]) -> None:
        self.reasons = tuple(reasons)
        super().__init__("; ".join(self.reasons) or "invalid AI response")


class FormatError(AdvisorError):
    code = "INVALID_PARAMETERS"

    def __init__(self, message: str, *, cause: Any = None) -> None:
        super().__init__(message)
        self.cause = cause


def is_failover_error(exc: BaseException) -> bool:
    return isinstance(exc, (ConfigurationError, NetworkError, ParseError))


ERROR_MESSAGES: dict[str, dict[str, str]] = {
    "UNKNOWN_ERROR": {"en": "An unknown error occurred", "zh": "发生未知错误"},
    "VALIDATION_ERROR": {"en": "Validation failed", "zh": "验证失败"},
    "NETWORK_ERROR": {"en": "Network error", "zh": "网络错误"},
    "TIMEOUT_ERROR": {"en": "Request timeout", "zh": "请求超时"},
    "INVALID_PARAMETERS": {"en": "Invalid parameters", "zh": "无效参数"},
    "AI_SERVICE_ERROR": {"en": "AI service error", "zh": "AI服务错误"},
    "SERVICE_UNAVAILABLE": {"en": "Service unavailable", "zh": "服务不可用"},
}


def format_error_message(error: Any, language: str) -> str:
    is_chinese = language == "zh"
    if isinstance(error, AdvisorError):
        catalogue = ERROR_MESSAGES.get(error.code) or ERROR_MESSAGES["UNKNOWN_ERROR"]
        label = catalogue["zh" if is_chinese else "en"]
        detail = str(error)
        return f"{label}: {detail}" if detail else label
    if isinstance(error, BaseException):
        return f"错误: {error}" if is_chinese else f"Error: {error}"
    if isinstance(error, str) and error:
        return f"错误: {error}" if is_chinese else f"Error: {error}"
    return ERROR_MESSAGES["UNKNOWN_ERROR"]["zh" if is_chinese else "en"]
