"""Нормализация успешных ответов провайдеров в `SuccessData`.

Вызывается только после того, как классификатор признал ответ успешным.
"""

from __future__ import annotations

from typing import Any

from image_mixer.providers.base import ProviderResult
from image_mixer.services.envelope import ImageEntry, SuccessData, Usage
from image_mixer.services.validation import RequestInput

DEFAULT_IMAGE_MIME = "image/png"


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _int_or_none(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _first_dict(items: Any) -> dict:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return {}


def resolve_image_url(raw: dict) -> str | None:
    """URL картинки по приоритету: `image_url.url`, `url`, data URI из `b64_json`."""
    image_url = raw.get("image_url")
    if isinstance(image_url, dict) and _str_or_none(image_url.get("url")):
        return image_url["url"]
    if _str_or_none(raw.get("url")):
        return raw["url"]
    b64 = _str_or_none(raw.get("b64_json"))
    if b64:
        return f"data:{DEFAULT_IMAGE_MIME};base64,{b64}"
    return None


def image_entry(raw: Any) -> ImageEntry:
    if not isinstance(raw, dict):
        return ImageEntry(url=None)
    return ImageEntry(
        url=resolve_image_url(raw),
        inline_data=_str_or_none(raw.get("b64_json")),
        revised_prompt=_str_or_none(raw.get("revised_prompt")),
        file_name=_str_or_none(raw.get("file_name")),
        file_size=_int_or_none(raw.get("file_size")),
        content_type=_str_or_none(raw.get("content_type")),
    )


def usage_from(raw: Any, prompt_key: str, completion_key: str, total_key: str) -> Usage | None:
    """`None`, если провайдер usage не прислал (нулями не заполняем)."""
    if not isinstance(raw, dict) or not raw:
        return None
    return Usage(
        prompt_tokens=_int_or_none(raw.get(prompt_key)),
        completion_tokens=_int_or_none(raw.get(completion_key)),
        total_tokens=_int_or_none(raw.get(total_key)),
    )


def _message_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    # Некоторые модели отдают content списком частей.
    if isinstance(content, list):
        return "".join(
            part.get("text") or ""
            for part in content
            if isinstance(part, dict) and part.get("type") in (None, "text")
        )
    return ""


def normalize_image_edit(result: ProviderResult, req: RequestInput, provider_id: str) -> SuccessData:
    """fal.ai: `{images: [{url, file_name, ...}], description}`.

    Контракт fal.ai гарантирует `url` у каждой картинки: записи без URL отбрасываем.
    """
    data = result.json
    images = []
    for raw in data.get("images") or []:
        entry = image_entry(raw)
        if entry.url is not None:
            images.append(entry)
    return SuccessData(
        content=_str_or_none(data.get("description")) or "",
        images=tuple(images),
        provider_id=provider_id,
        model_id=req.model_id,
        response_id=result.request_id or "",
        input_file_names=tuple(img.file_name for img in req.images),
        input_file_sizes=tuple(img.size for img in req.images),
    )


def normalize_chat_completion(
    result: ProviderResult,
    req: RequestInput,
    provider_id: str,
) -> SuccessData:
    """OpenAI-compatible chat.completion (+ нестандартное `message.images`).

    Гарантий по полям картинок нет: запись без URL уходит клиенту с `url=None`.
    """
    data = result.json
    choice = _first_dict(data.get("choices"))
    message = choice.get("message")
    if not isinstance(message, dict):
        message = {}

    raw_images = message.get("images")
    images = tuple(image_entry(raw) for raw in raw_images) if isinstance(raw_images, list) else ()

    return SuccessData(
        content=_message_text(message.get("content")),
        images=images,
        provider_id=provider_id,
        model_id=_str_or_none(data.get("model")) or req.model_id,
        response_id=_str_or_none(data.get("id")) or result.request_id or "",
        finish_reason=_str_or_none(choice.get("finish_reason")),
        usage=usage_from(data.get("usage"), "prompt_tokens", "completion_tokens", "total_tokens"),
        input_file_names=tuple(img.file_name for img in req.images),
        input_file_sizes=tuple(img.size for img in req.images),
    )


def normalize_text_generation(
    result: ProviderResult,
    req: RequestInput,
    provider_id: str,
) -> SuccessData:
    """Gemini `generateContent`: текст из частей первого кандидата, inlineData -> картинки."""
    data = result.json
    candidate = _first_dict(data.get("candidates"))
    parts = (candidate.get("content") or {}).get("parts") or []

    texts: list[str] = []
    images: list[ImageEntry] = []
    for part in parts:
        if not isinstance(part, dict):
            continue
        if isinstance(part.get("text"), str):
            texts.append(part["text"])
        inline = part.get("inlineData")
        if isinstance(inline, dict) and _str_or_none(inline.get("data")):
            mime = _str_or_none(inline.get("mimeType")) or DEFAULT_IMAGE_MIME
            images.append(
                ImageEntry(
                    url=f"data:{mime};base64,{inline['data']}",
                    inline_data=inline["data"],
                    content_type=mime,
                )
            )

    finish = _str_or_none(candidate.get("finishReason"))
    return SuccessData(
        content="".join(texts),
        images=tuple(images),
        provider_id=provider_id,
        model_id=_str_or_none(data.get("modelVersion")) or req.model_id,
        response_id=result.request_id or "",
        finish_reason=finish.lower() if finish else None,
        usage=usage_from(
            data.get("usageMetadata"),
            "promptTokenCount",
            "candidatesTokenCount",
            "totalTokenCount",
        ),
        input_file_names=tuple(img.file_name for img in req.images),
        input_file_sizes=tuple(img.size for img in req.images),
    )
