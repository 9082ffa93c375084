"""`/api` роутер: собирает эндпоинты в один APIRouter."""

from fastapi import APIRouter

from image_mixer.api.gemini_chat import router as gemini_chat_router
from image_mixer.api.image_edit import router as image_edit_router
from image_mixer.api.mixer_edit import router as mixer_edit_router
from image_mixer.api.openrouter_edit import router as openrouter_edit_router

router = APIRouter()
router.include_router(image_edit_router)
router.include_router(mixer_edit_router)
router.include_router(openrouter_edit_router)
router.include_router(gemini_chat_router)
