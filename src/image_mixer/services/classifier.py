"""Классификация отказов провайдеров в стабильные `ApiError`.

Два независимых пути:

* путь A: исключение из вызова провайдера. Порядок проверок: HTTP-статус
  (таблица правил провайдера), тип транспортной ошибки httpx, и только если
  статуса нет, поиск подстрок в тексте исключения (`MessageMatcher`);
* путь B: транспорт успешен, но `finish_reason` модели не `stop`.

Всё здесь чистые функции: один и тот же отказ даёт одинаковую ошибку.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping, Protocol

import httpx

from image_mixer.providers.base import VendorError
from image_mixer.services.errors import ApiError, ErrorKind, make_error

NORMAL_FINISH_REASON = "stop"


@dataclass(frozen=True)
class ErrorRule:
    """Шаблон ошибки. `message=None`: взять текст исходного исключения."""

    kind: ErrorKind
    title: str
    code: str
    message: str | None = None
    http_status: int | None = None
    retryable: bool | None = None


@dataclass(frozen=True)
class VendorBody:
    """То, что удалось достать из тела ошибки провайдера."""

    message: str | None = None
    details: str | None = None
    code: str | None = None


BodyReader = Callable[[Any], VendorBody]
FinishReader = Callable[[dict], tuple[str | None, str | None]]


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _format_detail_item(item: Any) -> str:
    if not isinstance(item, dict):
        return str(item)
    loc = item.get("loc")
    if isinstance(loc, (list, tuple)):
        location = ".".join(str(part) for part in loc)
    else:
        location = str(loc or "")
    return f"{location} - {item.get('msg') or ''}"


def read_fal_body(body: Any) -> VendorBody:
    """fal.ai: `{"message": ...}` и/или `{"detail": [{"loc": [...], "msg": ...}] | str}`."""
    if not isinstance(body, dict):
        return VendorBody(message=_str_or_none(body))
    message = _str_or_none(body.get("message"))
    detail = body.get("detail")
    details = None
    if isinstance(detail, list) and detail:
        details = ", ".join(_format_detail_item(d) for d in detail)
    elif isinstance(detail, str) and detail:
        details = detail
    return VendorBody(message=message, details=details or message)


def read_openai_body(body: Any) -> VendorBody:
    """OpenAI-compatible: `{"error": {"message": ..., "code": ...}}`.

    Числовой `code` (OpenRouter кладёт туда HTTP-статус) не переносим.
    """
    if not isinstance(body, dict):
        return VendorBody(message=_str_or_none(body))
    err = body.get("error")
    if not isinstance(err, dict):
        return VendorBody(message=_str_or_none(err) or _str_or_none(body.get("message")))
    message = _str_or_none(err.get("message"))
    return VendorBody(message=message, details=message, code=_str_or_none(err.get("code")))


def read_google_body(body: Any) -> VendorBody:
    """Google API: `{"error": {"code": 400, "message": ..., "status": "INVALID_ARGUMENT"}}`."""
    if not isinstance(body, dict) or not isinstance(body.get("error"), dict):
        return VendorBody(message=_str_or_none(body))
    err = body["error"]
    message = _str_or_none(err.get("message"))
    return VendorBody(message=message, details=message, code=_str_or_none(err.get("status")))


def read_chat_finish(data: dict) -> tuple[str | None, str | None]:
    """`(finish_reason, native_finish_reason)` первого choice."""
    choices = data.get("choices") if isinstance(data, dict) else None
    choice = choices[0] if isinstance(choices, list) and choices else None
    if not isinstance(choice, dict):
        return None, None
    return (
        _str_or_none(choice.get("finish_reason")),
        _str_or_none(choice.get("native_finish_reason")),
    )


class MessageMatcher(Protocol):
    """Разбор текста исключения, когда HTTP-статуса нет (хрупко, поэтому заменяемо)."""

    def match(self, text: str) -> ErrorRule | None: ...


@dataclass(frozen=True)
class SubstringMatcher:
    """Первое правило, чья подстрока встретилась в тексте, побеждает."""

    rules: tuple[tuple[tuple[str, ...], ErrorRule], ...]

    def match(self, text: str) -> ErrorRule | None:
        for needles, rule in self.rules:
            if any(n in text for n in needles):
                return rule
        return None


DEFAULT_MESSAGE_MATCHER = SubstringMatcher(
    rules=(
        (
            ("API key",),
            ErrorRule(ErrorKind.AUTHENTICATION, "API Key Error", "INVALID_API_KEY"),
        ),
        (
            ("timeout", "ECONNRESET"),
            ErrorRule(ErrorKind.NETWORK, "Network Error", "NETWORK_TIMEOUT"),
        ),
        (
            ("rate limit",),
            ErrorRule(ErrorKind.RATE_LIMIT, "Rate Limit Exceeded", "RATE_LIMIT"),
        ),
    )
)

_TIMEOUT_RULE = ErrorRule(
    ErrorKind.NETWORK,
    "Network Error",
    "NETWORK_TIMEOUT",
    message="The AI provider did not respond in time",
)
_TRANSPORT_RULE = ErrorRule(
    ErrorKind.NETWORK,
    "Network Error",
    "NETWORK_ERROR",
    message="Could not connect to the AI provider",
)


@dataclass(frozen=True)
class VendorProfile:
    """Всё, что классификатору нужно знать о конкретном провайдере."""

    name: str
    display_name: str
    status_rules: Mapping[int, ErrorRule]
    body_reader: BodyReader
    default_message: str
    finish_reader: FinishReader | None = None


def _standard_status_rules(default_message: str) -> dict[int, ErrorRule]:
    return {
        400: ErrorRule(ErrorKind.VALIDATION, "Invalid Request", "BAD_REQUEST", default_message),
        401: ErrorRule(
            ErrorKind.AUTHENTICATION, "Authentication Failed", "UNAUTHORIZED", default_message
        ),
        403: ErrorRule(ErrorKind.AUTHORIZATION, "Access Denied", "FORBIDDEN", default_message),
        429: ErrorRule(ErrorKind.RATE_LIMIT, "Rate Limit Exceeded", "RATE_LIMIT", default_message),
        500: ErrorRule(
            ErrorKind.SERVER, "Server Error", "INTERNAL_SERVER_ERROR", default_message
        ),
        503: ErrorRule(
            ErrorKind.SERVER,
            "Service Unavailable",
            "SERVICE_UNAVAILABLE",
            default_message,
            http_status=503,
        ),
    }


FAL_PROFILE = VendorProfile(
    name="fal",
    display_name="FAL AI",
    status_rules={
        400: ErrorRule(
            ErrorKind.VALIDATION,
            "FAL AI Validation Error",
            "FAL_BAD_REQUEST",
            "Invalid request parameters for FAL AI",
        ),
        # 422 у fal.ai означает кривые параметры запроса
        422: ErrorRule(
            ErrorKind.VALIDATION,
            "FAL AI Validation Error",
            "FAL_VALIDATION_ERROR",
            "Invalid request parameters for FAL AI",
            http_status=422,
        ),
        401: ErrorRule(
            ErrorKind.AUTHENTICATION,
            "FAL AI Authentication Error",
            "FAL_AUTH_ERROR",
            "Invalid FAL AI API key",
        ),
        403: ErrorRule(
            ErrorKind.AUTHORIZATION,
            "FAL AI Access Denied",
            "FAL_FORBIDDEN",
            "FAL AI denied access to the requested model",
        ),
        429: ErrorRule(
            ErrorKind.RATE_LIMIT, "FAL AI Rate Limit", "FAL_RATE_LIMIT", "FAL AI rate limit exceeded"
        ),
        500: ErrorRule(
            ErrorKind.SERVER,
            "FAL AI Server Error",
            "FAL_SERVER_ERROR",
            "Failed to process images with FAL AI",
        ),
        503: ErrorRule(
            ErrorKind.SERVER,
            "FAL AI Unavailable",
            "FAL_SERVICE_UNAVAILABLE",
            "FAL AI is temporarily unavailable",
            http_status=503,
        ),
    },
    body_reader=read_fal_body,
    default_message="Failed to process images with FAL AI",
)

OPENROUTER_PROFILE = VendorProfile(
    name="openrouter",
    display_name="OpenRouter",
    status_rules=_standard_status_rules("Failed to process images with OpenRouter"),
    body_reader=read_openai_body,
    default_message="Failed to process images with OpenRouter",
    finish_reader=read_chat_finish,
)

GEMINI_PROFILE = VendorProfile(
    name="gemini",
    display_name="Gemini",
    status_rules=_standard_status_rules("Failed to get response from Gemini"),
    body_reader=read_google_body,
    default_message="Failed to get response from Gemini",
)


def _status_of(exc: BaseException) -> int | None:
    if isinstance(exc, VendorError):
        return exc.status_code
    if isinstance(exc, httpx.HTTPStatusError):
        return int(exc.response.status_code)
    status = getattr(exc, "status_code", None)
    return status if isinstance(status, int) else None


def _body_of(exc: BaseException) -> Any:
    if isinstance(exc, VendorError):
        return exc.body
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            return exc.response.json()
        except ValueError:
            return exc.response.text or None
    return getattr(exc, "body", None)


def classify_finish_reason(
    finish_reason: str | None,
    native_finish_reason: str | None = None,
) -> ApiError | None:
    """Путь B: `None`, если модель закончила нормально (`stop`)."""
    if finish_reason == NORMAL_FINISH_REASON:
        return None

    details = f"Model finish reason: {finish_reason}"
    if native_finish_reason:
        details += f" ({native_finish_reason})"

    if finish_reason == "content_filter":
        if isinstance(native_finish_reason, str) and native_finish_reason:
            message = native_finish_reason.lower().replace("_", " ")
        else:
            message = "content is prohibited"
        return make_error(
            ErrorKind.CONTENT_FILTER,
            title="Content Prohibited",
            message=message,
            details=details,
            code="CONTENT_FILTER",
        )
    if finish_reason == "length":
        return make_error(
            ErrorKind.LENGTH_LIMIT,
            title="Response Too Long",
            message="The response was truncated due to length limits",
            details=details,
            code="LENGTH_LIMIT",
        )
    if finish_reason in ("function_call", "tool_calls"):
        return make_error(
            ErrorKind.TOOL_CALL,
            title="Tool Call Issue",
            message="The model tried to call a function but encountered an issue",
            details=details,
            code="TOOL_CALL_ERROR",
        )
    return make_error(
        ErrorKind.MODEL,
        title="Processing Issue",
        message="The AI model encountered an issue while processing your request",
        details=details,
        code="MODEL_ISSUE",
    )


@dataclass(frozen=True)
class ErrorClassifier:
    profile: VendorProfile
    matcher: MessageMatcher = field(default=DEFAULT_MESSAGE_MATCHER)

    def classify_exception(self, exc: BaseException) -> ApiError:
        """Путь A: исключение из вызова провайдера -> `ApiError`."""
        raw = str(exc) or type(exc).__name__
        status = _status_of(exc)
        if status is not None:
            return self._classify_status(status, _body_of(exc), raw)

        if isinstance(exc, httpx.TimeoutException):
            return self._from_rule(_TIMEOUT_RULE, raw)
        if isinstance(exc, httpx.TransportError):
            return self._from_rule(_TRANSPORT_RULE, raw)

        rule = self.matcher.match(raw)
        if rule is not None:
            return self._from_rule(rule, raw)

        return make_error(
            ErrorKind.UNKNOWN,
            title="Processing Error",
            message=self.profile.default_message,
            details=raw,
            code="UNKNOWN_ERROR",
        )

    def inspect_result(self, data: dict) -> ApiError | None:
        """Путь B для провайдеров с `finish_reason`; остальные всегда успешны."""
        if self.profile.finish_reader is None:
            return None
        finish_reason, native = self.profile.finish_reader(data)
        issue = classify_finish_reason(finish_reason, native)
        if issue is not None and finish_reason is None:
            # 200 без choices: провайдер мог вернуть ошибку в теле.
            vendor = self.profile.body_reader(data)
            if vendor.details or vendor.message:
                issue = replace(issue, details=vendor.details or vendor.message)
        return issue

    def _classify_status(self, status: int, body: Any, raw: str) -> ApiError:
        vendor = self.profile.body_reader(body)
        rule = self.profile.status_rules.get(status)
        if rule is None:
            rule = self._unmatched_status_rule(status)
        return make_error(
            rule.kind,
            title=rule.title,
            message=vendor.message or rule.message or raw,
            details=vendor.details or vendor.message or raw,
            code=vendor.code or rule.code,
            http_status=rule.http_status,
            retryable=rule.retryable,
        )

    def _unmatched_status_rule(self, status: int) -> ErrorRule:
        if 500 <= status < 600:
            return ErrorRule(
                ErrorKind.SERVER,
                "Server Error",
                "UPSTREAM_ERROR",
                self.profile.default_message,
                http_status=status,
            )
        if 400 <= status < 500:
            # Прочие 4xx: проблема в самом запросе, повтор без изменений бесполезен.
            return ErrorRule(
                ErrorKind.UNKNOWN,
                "Request Rejected",
                "UPSTREAM_REJECTED",
                self.profile.default_message,
                http_status=status,
                retryable=False,
            )
        return ErrorRule(
            ErrorKind.UNKNOWN,
            "Processing Error",
            "UNKNOWN_ERROR",
            self.profile.default_message,
        )

    def _from_rule(self, rule: ErrorRule, raw: str) -> ApiError:
        return make_error(
            rule.kind,
            title=rule.title,
            message=rule.message or raw,
            details=raw,
            code=rule.code,
            http_status=rule.http_status,
            retryable=rule.retryable,
        )
