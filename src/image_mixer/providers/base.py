"""Интерфейс провайдера (один исходящий вызов: промпт + картинки)."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Sequence

import httpx


@dataclass(frozen=True)
class ImageBlob:
    """Загруженный пользователем файл (живёт в рамках одного запроса)."""

    file_name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    def data_uri(self) -> str:
        """`data:<mime>;base64,<payload>`: так картинки уходят к провайдерам."""
        payload = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.content_type};base64,{payload}"


@dataclass(frozen=True)
class ProviderResult:
    """Сырой успешный ответ провайдера + request id (если провайдер его отдал)."""

    json: dict
    request_id: str | None = None


class VendorError(Exception):
    """Провайдер ответил не-2xx. `body` это разобранный JSON (или текст) ответа."""

    def __init__(
        self,
        vendor: str,
        status_code: int | None,
        body: Any = None,
        message: str | None = None,
    ) -> None:
        self.vendor = vendor
        self.status_code = status_code
        self.body = body
        super().__init__(message or f"{vendor} returned {status_code}")


class ProviderNotConfigured(RuntimeError):
    """Нет ключа провайдера (текст всегда содержит "API key")."""


class ProviderClient:
    """Базовый интерфейс провайдера."""

    name: str

    def run(self, prompt: str, images: Sequence[ImageBlob], model: str) -> ProviderResult:
        raise NotImplementedError

    def close(self) -> None:
        return None


def _parse_body(r: httpx.Response) -> Any:
    try:
        return r.json()
    except ValueError:
        return r.text or None


class HttpProviderClient(ProviderClient):
    """Провайдер поверх одного `httpx.Client` на процесс (без ретраев)."""

    def __init__(
        self,
        timeout_seconds: float,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    def _request(
        self,
        method: str,
        url: str,
        json_body: dict | None = None,
        headers: list[tuple[str, str | bytes]] | None = None,
    ) -> httpx.Response:
        r = self._client.request(method, url, json=json_body, headers=headers)
        if r.status_code >= 400:
            body = _parse_body(r)
            raise VendorError(self.name, r.status_code, body=body)
        return r

    def close(self) -> None:
        self._client.close()
