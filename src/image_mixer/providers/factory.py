"""Фабрика провайдеров: один набор клиентов на процесс, передаётся явно."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from image_mixer.providers.base import ProviderClient
from image_mixer.providers.fal import FalImageEditProvider
from image_mixer.providers.gemini import GeminiTextProvider
from image_mixer.providers.mock import MockChatProvider, MockImageEditProvider, MockTextProvider
from image_mixer.providers.openrouter import OpenRouterChatProvider
from image_mixer.settings import Settings


@dataclass
class VendorClients:
    """Клиенты всех провайдеров; ключ словаря `by_name()` совпадает с `ProviderClient.name`."""

    image_edit: ProviderClient
    chat: ProviderClient
    text: ProviderClient

    def by_name(self) -> dict[str, ProviderClient]:
        return {c.name: c for c in (self.image_edit, self.chat, self.text)}

    def close(self) -> None:
        for c in (self.image_edit, self.chat, self.text):
            c.close()


def build_vendor_clients(
    settings: Settings,
    transport: httpx.BaseTransport | None = None,
) -> VendorClients:
    """Собирает клиентов по `VENDOR_MODE` (`live` или `mock`)."""
    mode = settings.vendor_mode.lower()
    if mode == "mock":
        return VendorClients(
            image_edit=MockImageEditProvider(),
            chat=MockChatProvider(),
            text=MockTextProvider(),
        )
    if mode == "live":
        timeout = float(settings.vendor_timeout_seconds)
        return VendorClients(
            image_edit=FalImageEditProvider(
                api_key=settings.fal_key,
                base_url=settings.fal_base_url,
                timeout_seconds=timeout,
                transport=transport,
            ),
            chat=OpenRouterChatProvider(
                api_key=settings.openrouter_api_key,
                base_url=settings.openrouter_base_url,
                max_tokens=settings.openrouter_max_tokens,
                http_referer=settings.site_url,
                title=settings.app_title,
                timeout_seconds=timeout,
                transport=transport,
            ),
            text=GeminiTextProvider(
                api_key=settings.gemini_api_key,
                base_url=settings.gemini_base_url,
                timeout_seconds=timeout,
                transport=transport,
            ),
        )
    raise ValueError(f"Unknown vendor mode: {settings.vendor_mode}")
