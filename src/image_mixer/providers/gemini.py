"""Google Gemini провайдер генерации текста (REST `generateContent`)."""

from __future__ import annotations

import base64
from typing import Sequence

import httpx
import structlog

from image_mixer.providers.base import (
    HttpProviderClient,
    ImageBlob,
    ProviderNotConfigured,
    ProviderResult,
)

log = structlog.get_logger()


class GeminiTextProvider(HttpProviderClient):
    name = "gemini"

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_seconds: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(timeout_seconds, transport=transport)
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    def run(self, prompt: str, images: Sequence[ImageBlob], model: str) -> ProviderResult:
        if not self._api_key:
            raise ProviderNotConfigured("GEMINI_API_KEY is not set: no Gemini API key configured")

        parts: list[dict] = [{"text": prompt}]
        for img in images:
            parts.append(
                {
                    "inlineData": {
                        "mimeType": img.content_type,
                        "data": base64.b64encode(img.data).decode("ascii"),
                    }
                }
            )
        log.info("vendor_call", provider=self.name, model=model, prompt_len=len(prompt))
        r = self._request(
            "POST",
            f"{self._base_url}/models/{model}:generateContent",
            json_body={"contents": [{"role": "user", "parts": parts}]},
            headers=[("x-goog-api-key", self._api_key)],
        )
        data = r.json()
        return ProviderResult(json=data, request_id=data.get("responseId"))
