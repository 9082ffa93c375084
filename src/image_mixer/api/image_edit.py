"""Эндпоинт `/api/image-edit`: одна картинка + промпт, всегда через fal.ai."""

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


@router.post("/image-edit")
def image_edit(
    prompt: str | None = Form(default=None),
    image: UploadFile | None = File(default=None),
    pipeline: MixerPipeline = Depends(get_pipeline),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    endpoint = "image-edit"
    t0 = time.time()
    route = pipeline.router.route_for("fal")

    def handle():
        images = read_uploads([image], pipeline.limits.max_image_bytes)
        log.info(
            "image_edit_request",
            file_name=images[0].file_name if images else None,
            file_size=images[0].size if images else None,
            prompt_preview=(prompt or "")[:50],
        )
        raw = RawRequest(prompt=prompt, model_id=settings.fal_model, images=images)
        return pipeline.run(raw, route=route)

    return respond(endpoint, route.provider_id, guarded(endpoint, handle), t0)
