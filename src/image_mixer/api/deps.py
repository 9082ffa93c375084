"""Зависимости FastAPI: всё берём из `app.state` (собирается один раз в `create_app`)."""

from fastapi import Request

from image_mixer.services.pipeline import MixerPipeline
from image_mixer.settings import Settings


def get_pipeline(request: Request) -> MixerPipeline:
    return request.app.state.pipeline


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
