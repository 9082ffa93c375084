"""Обработка одного запроса: валидация -> маршрут -> провайдер -> нормализация | классификация."""

from __future__ import annotations

from dataclasses import replace

import structlog

from image_mixer.metrics import tokens_total
from image_mixer.services.envelope import UnifiedResponse
from image_mixer.services.errors import validation_error
from image_mixer.services.routing import DispatchRouter, Route, UnknownModel
from image_mixer.services.validation import (
    InvalidRequest,
    RawRequest,
    RequestInput,
    UploadLimits,
    validate_request,
)

log = structlog.get_logger()


class MixerPipeline:
    """Без состояния между запросами; ретраев нет (`retryable` это подсказка клиенту)."""

    def __init__(self, router: DispatchRouter, limits: UploadLimits | None = None) -> None:
        self.router = router
        self.limits = limits or UploadLimits()

    def run(self, raw: RawRequest, route: Route | None = None, min_images: int = 1) -> UnifiedResponse:
        """`route` задаёт провайдера явно (эндпоинты с фиксированной моделью)."""
        limits = UploadLimits(
            max_images=self.limits.max_images,
            max_image_bytes=self.limits.max_image_bytes,
            min_images=min_images,
        )
        try:
            req = validate_request(
                raw,
                None if route is not None else self.router.is_known,
                limits,
            )
        except InvalidRequest as e:
            log.info("request_rejected", code=e.error.code, model=raw.model_id)
            return UnifiedResponse.failure(e.error)

        if route is None:
            try:
                route = self.router.dispatch(req.model_id)
            except UnknownModel as e:
                # Валидатор уже должен был отсеять такую модель.
                log.error("unroutable_model", model=e.model_id)
                return UnifiedResponse.failure(
                    validation_error(
                        "UNKNOWN_MODEL",
                        "Unknown Model",
                        "Unknown model specified",
                        f'Model "{e.model_id}" is not supported',
                    )
                )

        return self._call(route, req)

    def _call(self, route: Route, req: RequestInput) -> UnifiedResponse:
        provider = route.provider_id
        if route.vendor_model and route.vendor_model != req.model_id:
            log.info(
                "vendor_model_pinned",
                provider=provider,
                requested=req.model_id,
                model=route.vendor_model,
            )
            req = replace(req, model_id=route.vendor_model)
        try:
            result = route.provider.run(req.prompt, req.images, req.model_id)
        except Exception as e:
            err = route.classifier.classify_exception(e)
            log.warning(
                "vendor_error",
                provider=provider,
                model=req.model_id,
                kind=err.kind.value,
                code=err.code,
                http_status=err.http_status,
                err=str(e),
            )
            return UnifiedResponse.failure(err)

        issue = route.classifier.inspect_result(result.json)
        if issue is not None:
            log.warning(
                "vendor_finish_issue",
                provider=provider,
                model=req.model_id,
                kind=issue.kind.value,
                details=issue.details,
            )
            return UnifiedResponse.failure(issue)

        data = route.normalize(result, req, provider)
        if data.usage is not None and (data.usage.total_tokens or 0) > 0:
            tokens_total.labels(
                provider=provider,
                model=data.model_id or "-",
                kind="total",
            ).inc(data.usage.total_tokens)
        log.info(
            "vendor_success",
            provider=provider,
            model=data.model_id,
            response_id=data.response_id,
            images=len(data.images),
            content_len=len(data.content),
        )
        return UnifiedResponse.ok(data)
