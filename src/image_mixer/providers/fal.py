"""fal.ai провайдер редактирования изображений (sync endpoint `fal.run`)."""

from __future__ import annotations

import uuid
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


class FalImageEditProvider(HttpProviderClient):
    name = "fal"

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://fal.run",
        timeout_seconds: float = 120.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(timeout_seconds, transport=transport)
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    def run(self, prompt: str, images: Sequence[ImageBlob], model: str) -> ProviderResult:
        if not self._api_key:
            raise ProviderNotConfigured("FAL_KEY is not set: no fal.ai API key configured")

        payload = {
            "prompt": prompt,
            "image_urls": [img.data_uri() for img in images],
            "num_images": 1,
            "output_format": "jpeg",
            "sync_mode": False,
        }
        log.info(
            "vendor_call",
            provider=self.name,
            model=model,
            image_count=len(images),
            prompt_preview=prompt[:50],
        )
        r = self._request(
            "POST",
            f"{self._base_url}/{model.strip('/')}",
            json_body=payload,
            headers=[("Authorization", f"Key {self._api_key}")],
        )
        data = r.json()
        request_id = r.headers.get("x-fal-request-id") or uuid.uuid4().hex
        log.info(
            "vendor_response",
            provider=self.name,
            images_count=len(data.get("images") or []),
            has_description=bool(data.get("description")),
            request_id=request_id,
        )
        return ProviderResult(json=data, request_id=request_id)
