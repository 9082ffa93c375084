"""Общее для эндпоинтов: чтение загрузок, защита от падений, ответ + метрики."""

from __future__ import annotations

import time
from typing import Callable

import structlog
from fastapi import UploadFile
from fastapi.responses import JSONResponse

from image_mixer.metrics import errors_total, request_latency_seconds, requests_total
from image_mixer.providers.base import ImageBlob
from image_mixer.services.envelope import UnifiedResponse
from image_mixer.services.errors import internal_error
from image_mixer.services.validation import InvalidRequest, image_too_large

log = structlog.get_logger()

FALLBACK_CONTENT_TYPE = "application/octet-stream"


def read_upload(upload: UploadFile | None, max_bytes: int | None = None) -> ImageBlob | None:
    """Пустую часть формы (браузер шлёт её без выбранного файла) считаем отсутствующей.

    С `max_bytes` читается не больше `max_bytes + 1` байт: слишком большая часть
    отклоняется (`IMAGE_TOO_LARGE`), не попадая в память целиком.
    """
    if upload is None:
        return None
    file_name = upload.filename or "upload"
    if max_bytes is None:
        data = upload.file.read()
    else:
        if upload.size is not None and upload.size > max_bytes:
            raise InvalidRequest(image_too_large(file_name, upload.size, max_bytes))
        data = upload.file.read(max_bytes + 1)
        if len(data) > max_bytes:
            raise InvalidRequest(image_too_large(file_name, upload.size or len(data), max_bytes))
    if not upload.filename and not data:
        return None
    return ImageBlob(
        file_name=file_name,
        content_type=upload.content_type or FALLBACK_CONTENT_TYPE,
        data=data,
    )


def read_uploads(
    uploads: list[UploadFile | None],
    max_bytes: int | None = None,
) -> list[ImageBlob]:
    blobs = []
    for upload in uploads:
        blob = read_upload(upload, max_bytes)
        if blob is not None:
            blobs.append(blob)
    return blobs


def guarded(endpoint: str, handler: Callable[[], UnifiedResponse]) -> UnifiedResponse:
    """Любое необработанное исключение превращается в `server`/`INTERNAL_ERROR`."""
    try:
        return handler()
    except InvalidRequest as e:
        log.info("request_rejected", endpoint=endpoint, code=e.error.code)
        return UnifiedResponse.failure(e.error)
    except Exception as e:
        log.exception("handler_error", endpoint=endpoint, err=str(e))
        return UnifiedResponse.failure(internal_error(e))


def respond(
    endpoint: str,
    provider: str,
    envelope: UnifiedResponse,
    t0: float,
) -> dict | JSONResponse:
    """Успех: dict (200). Ошибка: JSONResponse со статусом `error.httpStatus`."""
    status = "succeeded" if envelope.success else "failed"
    requests_total.labels(endpoint=endpoint, provider=provider, status=status).inc()
    request_latency_seconds.labels(endpoint=endpoint, provider=provider).observe(
        time.time() - t0
    )
    if envelope.error is not None:
        errors_total.labels(endpoint=endpoint, kind=envelope.error.kind.value).inc()
        return JSONResponse(status_code=envelope.http_status, content=envelope.to_dict())
    return envelope.to_dict()
