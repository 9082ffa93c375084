"""Эндпоинт `/api/openrouter-edit`: одна картинка + промпт через мультимодальный чат."""

import time

import structlog
from fastapi import APIRouter, Depends, File, Form, UploadFile

from image_mixer.api.common import guarded, read_uploads, respond
from image_mixer.api.deps import get_app_settings, get_pipeline
from image_mixer.services.pipeline import MixerPipeline
from image_mixer.services.validation import RawRequest
from image_mixer.settings import Settings

router = APIRouter()
log = structlog.get_logger()


@router.post("/openrouter-edit")
def openrouter_edit(
    prompt: str | None = Form(default=None),
    image: UploadFile | None = File(default=None),
    pipeline: MixerPipeline = Depends(get_pipeline),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    endpoint = "openrouter-edit"
    t0 = time.time()
    route = pipeline.router.route_for("openrouter")

    def handle():
        images = read_uploads([image], pipeline.limits.max_image_bytes)
        log.info(
            "openrouter_edit_request",
            model=settings.openrouter_model,
            file_name=images[0].file_name if images else None,
            prompt_len=len(prompt or ""),
        )
        raw = RawRequest(prompt=prompt, model_id=settings.openrouter_model, images=images)
        return pipeline.run(raw, route=route)

    return respond(endpoint, route.provider_id, guarded(endpoint, handle), t0)
