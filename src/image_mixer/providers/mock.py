"""Mock провайдеры для демо (без внешних ключей)."""

from __future__ import annotations

import time
import uuid
from typing import Sequence

from image_mixer.providers.base import ImageBlob, ProviderClient, ProviderResult


def _now_ts() -> int:
    return int(time.time())


class MockImageEditProvider(ProviderClient):
    """Отвечает как fal.ai: возвращает первую входную картинку как результат."""

    name = "fal"

    def run(self, prompt: str, images: Sequence[ImageBlob], model: str) -> ProviderResult:
        out_images = []
        if images:
            first = images[0]
            out_images.append(
                {
                    "url": first.data_uri(),
                    "content_type": first.content_type,
                    "file_name": f"edited_{first.file_name}",
                    "file_size": first.size,
                }
            )
        result = {
            "images": out_images,
            "description": f"[mock] ok: {prompt[:120]}",
        }
        return ProviderResult(json=result, request_id=f"req_{uuid.uuid4().hex}")


class MockChatProvider(ProviderClient):
    """Отвечает как OpenAI-compatible chat.completion с `finish_reason=stop`."""

    name = "openrouter"

    def run(self, prompt: str, images: Sequence[ImageBlob], model: str) -> ProviderResult:
        out_text = f"[mock] ok: {prompt[:120]}"
        prompt_tokens = max(1, len(prompt) // 4)
        completion_tokens = max(1, len(out_text) // 4)

        message: dict = {"role": "assistant", "content": out_text}
        if images:
            message["images"] = [
                {"type": "image_url", "image_url": {"url": images[0].data_uri()}}
            ]

        result = {
            "id": f"chatcmpl_{uuid.uuid4().hex}",
            "object": "chat.completion",
            "created": _now_ts(),
            "model": model,
            "choices": [
                {
                    "index": 0,
                    "message": message,
                    "finish_reason": "stop",
                }
            ],
            "usage": {
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            },
        }
        return ProviderResult(json=result, request_id=result["id"])


class MockTextProvider(ProviderClient):
    """Отвечает как Gemini `generateContent`."""

    name = "gemini"

    def run(self, prompt: str, images: Sequence[ImageBlob], model: str) -> ProviderResult:
        out_text = f"[mock] ok: {prompt[:120]}"
        result = {
            "candidates": [
                {
                    "content": {"role": "model", "parts": [{"text": out_text}]},
                    "finishReason": "STOP",
                }
            ],
            "usageMetadata": {
                "promptTokenCount": max(1, len(prompt) // 4),
                "candidatesTokenCount": max(1, len(out_text) // 4),
                "totalTokenCount": max(1, len(prompt) // 4) + max(1, len(out_text) // 4),
            },
            "modelVersion": model,
            "responseId": f"resp_{uuid.uuid4().hex}",
        }
        return ProviderResult(json=result, request_id=result["responseId"])
