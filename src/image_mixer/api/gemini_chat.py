"""Эндпоинт `/api/gemini-chat`: текстовый чат с Gemini (без картинок)."""

import time

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from image_mixer.api.common import guarded, respond
from image_mixer.api.deps import get_app_settings, get_pipeline
from image_mixer.services.pipeline import MixerPipeline
from image_mixer.services.validation import RawRequest
from image_mixer.settings import Settings

router = APIRouter()
log = structlog.get_logger()


class GeminiChatRequest(BaseModel):
    message: str | None = None


@router.post("/gemini-chat")
def gemini_chat(
    body: GeminiChatRequest,
    pipeline: MixerPipeline = Depends(get_pipeline),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    endpoint = "gemini-chat"
    t0 = time.time()
    route = pipeline.router.route_for("gemini")

    def handle():
        log.info(
            "gemini_chat_request",
            model=settings.gemini_model,
            message_len=len(body.message or ""),
        )
        raw = RawRequest(prompt=body.message, model_id=settings.gemini_model)
        return pipeline.run(raw, route=route, min_images=0)

    return respond(endpoint, route.provider_id, guarded(endpoint, handle), t0)
