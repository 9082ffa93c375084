"""Таксономия ошибок и публичная запись об ошибке (стабильные type/code/httpStatus)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """Закрытый список видов ошибок, которые видит клиент."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    RATE_LIMIT = "rate_limit"
    CONTENT_FILTER = "content_filter"
    LENGTH_LIMIT = "length_limit"
    TOOL_CALL = "tool_call"
    NETWORK = "network"
    SERVER = "server"
    MODEL = "model"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class KindDefaults:
    http_status: int
    retryable: bool


KIND_DEFAULTS: dict[ErrorKind, KindDefaults] = {
    ErrorKind.VALIDATION: KindDefaults(400, False),
    ErrorKind.AUTHENTICATION: KindDefaults(401, False),
    ErrorKind.AUTHORIZATION: KindDefaults(403, False),
    ErrorKind.RATE_LIMIT: KindDefaults(429, True),
    ErrorKind.CONTENT_FILTER: KindDefaults(422, False),
    ErrorKind.LENGTH_LIMIT: KindDefaults(500, True),
    ErrorKind.TOOL_CALL: KindDefaults(500, True),
    ErrorKind.NETWORK: KindDefaults(503, True),
    ErrorKind.SERVER: KindDefaults(500, True),
    ErrorKind.MODEL: KindDefaults(500, True),
    ErrorKind.UNKNOWN: KindDefaults(500, True),
}

# Повтор запроса без изменений здесь не поможет, что бы ни ответил провайдер.
NEVER_RETRYABLE = frozenset(
    {
        ErrorKind.VALIDATION,
        ErrorKind.AUTHENTICATION,
        ErrorKind.AUTHORIZATION,
        ErrorKind.CONTENT_FILTER,
    }
)


@dataclass(frozen=True)
class ApiError:
    """Публичная ошибка для ответа клиенту."""

    kind: ErrorKind
    title: str
    message: str
    details: str
    code: str
    retryable: bool
    http_status: int


def make_error(
    kind: ErrorKind,
    *,
    title: str,
    message: str,
    details: str,
    code: str,
    http_status: int | None = None,
    retryable: bool | None = None,
) -> ApiError:
    """Собирает `ApiError` с дефолтами вида и проверкой инвариантов.

    `http_status` вне 4xx/5xx заменяется дефолтом вида; для видов из
    `NEVER_RETRYABLE` флаг `retryable` всегда False.
    """
    defaults = KIND_DEFAULTS[kind]
    status = http_status if http_status is not None else defaults.http_status
    if not 400 <= status < 600:
        status = defaults.http_status
    retry = defaults.retryable if retryable is None else retryable
    if kind in NEVER_RETRYABLE:
        retry = False
    return ApiError(
        kind=kind,
        title=title,
        message=message,
        details=details,
        code=code,
        retryable=retry,
        http_status=status,
    )


def validation_error(code: str, title: str, message: str, details: str) -> ApiError:
    return make_error(
        ErrorKind.VALIDATION,
        title=title,
        message=message,
        details=details,
        code=code,
    )


def internal_error(exc: BaseException) -> ApiError:
    """Последний рубеж: необработанное исключение внутри обработчика."""
    return make_error(
        ErrorKind.SERVER,
        title="Server Error",
        message="Internal server error occurred",
        details=str(exc) or type(exc).__name__,
        code="INTERNAL_ERROR",
    )


def error_payload(err: ApiError) -> dict:
    """Формирует JSON `{type, title, ...}` для поля `error` конверта."""
    return {
        "type": err.kind.value,
        "title": err.title,
        "message": err.message,
        "details": err.details,
        "code": err.code,
        "retryable": err.retryable,
        "httpStatus": err.http_status,
    }
