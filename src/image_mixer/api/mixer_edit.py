"""Эндпоинт `/api/mixer-edit`: до 5 картинок + промпт, модель выбирает клиент."""

import time

import structlog
from fastapi import APIRouter, Depends, File, Form, UploadFile

from image_mixer.api.common import guarded, read_uploads, respond
from image_mixer.api.deps import get_pipeline
from image_mixer.services.pipeline import MixerPipeline
from image_mixer.services.validation import RawRequest

router = APIRouter()
log = structlog.get_logger()


@router.post("/mixer-edit")
def mixer_edit(
    prompt: str | None = Form(default=None),
    model: str | None = Form(default=None),
    image_0: UploadFile | None = File(default=None),
    image_1: UploadFile | None = File(default=None),
    image_2: UploadFile | None = File(default=None),
    image_3: UploadFile | None = File(default=None),
    image_4: UploadFile | None = File(default=None),
    pipeline: MixerPipeline = Depends(get_pipeline),
) -> dict:
    endpoint = "mixer-edit"
    t0 = time.time()
    route = pipeline.router.resolve(model or "")
    provider_name = route.provider_id if route is not None else "-"

    def handle():
        images = read_uploads(
            [image_0, image_1, image_2, image_3, image_4],
            pipeline.limits.max_image_bytes,
        )
        log.info(
            "mixer_request",
            model=model,
            image_count=len(images),
            prompt_len=len(prompt or ""),
            file_names=[img.file_name for img in images],
        )
        return pipeline.run(RawRequest(prompt=prompt, model_id=model, images=images))

    return respond(endpoint, provider_name, guarded(endpoint, handle), t0)
