"""OpenRouter провайдер (OpenAI-compatible `/chat/completions`, мультимодальный)."""

from __future__ import annotations

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


def _encode_header_value(value: str) -> str | bytes:
    """Кодирует заголовок в ASCII или UTF-8 (байты), если там есть не-ASCII."""
    try:
        value.encode("ascii")
        return value
    except UnicodeEncodeError:
        return value.encode("utf-8")


def build_chat_payload(
    prompt: str,
    images: Sequence[ImageBlob],
    model: str,
    max_tokens: int,
) -> dict:
    """Одно user-сообщение: сначала текст, затем по `image_url` на каждую картинку."""
    content: list[dict] = [{"type": "text", "text": prompt}]
    for img in images:
        content.append({"type": "image_url", "image_url": {"url": img.data_uri()}})
    return {
        "model": model,
        "messages": [{"role": "user", "content": content}],
        "max_tokens": max_tokens,
    }


class OpenRouterChatProvider(HttpProviderClient):
    name = "openrouter"

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://openrouter.ai/api/v1",
        max_tokens: int = 1000,
        http_referer: str | None = None,
        title: str | None = None,
        timeout_seconds: float = 120.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(timeout_seconds, transport=transport)
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._max_tokens = max_tokens
        self._headers: list[tuple[str, str | bytes]] = [
            ("Authorization", f"Bearer {api_key or ''}"),
        ]
        if http_referer:
            self._headers.append(("HTTP-Referer", http_referer))
        if title:
            self._headers.append(("X-Title", _encode_header_value(title)))

    def run(self, prompt: str, images: Sequence[ImageBlob], model: str) -> ProviderResult:
        if not self._api_key:
            raise ProviderNotConfigured(
                "OPENROUTER_API_KEY is not set: no OpenRouter API key configured"
            )

        payload = build_chat_payload(prompt, images, model, self._max_tokens)
        log.info(
            "vendor_call",
            provider=self.name,
            model=model,
            image_count=len(images),
            prompt_len=len(prompt),
        )
        r = self._request(
            "POST",
            f"{self._base_url}/chat/completions",
            json_body=payload,
            headers=self._headers,
        )
        data = r.json()
        choices = data.get("choices")
        choice = choices[0] if isinstance(choices, list) and choices else None
        log.info(
            "vendor_response",
            provider=self.name,
            model=data.get("model"),
            response_id=data.get("id"),
            finish_reason=choice.get("finish_reason") if isinstance(choice, dict) else None,
        )
        return ProviderResult(json=data, request_id=data.get("id"))
