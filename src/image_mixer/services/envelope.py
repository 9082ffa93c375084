"""Единый конверт ответа: либо `data` (успех), либо `error` (ошибка)."""

from __future__ import annotations

from dataclasses import dataclass, field

from image_mixer.services.errors import ApiError, error_payload


@dataclass(frozen=True)
class ImageEntry:
    """Картинка в ответе. `url=None` допустим: рендерер на клиенте её пропустит."""

    url: str | None
    inline_data: str | None = None
    revised_prompt: str | None = None
    file_name: str | None = None
    file_size: int | None = None
    content_type: str | None = None

    def to_dict(self) -> dict:
        out: dict = {"url": self.url}
        if self.inline_data is not None:
            out["inlineData"] = self.inline_data
        if self.revised_prompt is not None:
            out["revisedPrompt"] = self.revised_prompt
        if self.file_name is not None:
            out["fileName"] = self.file_name
        if self.file_size is not None:
            out["fileSize"] = self.file_size
        if self.content_type is not None:
            out["contentType"] = self.content_type
        return out


@dataclass(frozen=True)
class Usage:
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None

    def to_dict(self) -> dict:
        return {
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "totalTokens": self.total_tokens,
        }


@dataclass(frozen=True)
class SuccessData:
    content: str
    provider_id: str
    model_id: str
    response_id: str
    images: tuple[ImageEntry, ...] = ()
    finish_reason: str | None = None
    usage: Usage | None = None
    input_file_names: tuple[str, ...] = ()
    input_file_sizes: tuple[int, ...] = ()

    @property
    def has_images(self) -> bool:
        return len(self.images) > 0

    def to_dict(self) -> dict:
        out: dict = {
            "content": self.content,
            "images": [img.to_dict() for img in self.images],
            "providerId": self.provider_id,
            "modelId": self.model_id,
            "responseId": self.response_id,
            "inputFileNames": list(self.input_file_names),
            "inputFileSizes": list(self.input_file_sizes),
            "hasImages": self.has_images,
        }
        if self.finish_reason is not None:
            out["finishReason"] = self.finish_reason
        if self.usage is not None:
            out["usage"] = self.usage.to_dict()
        return out


@dataclass(frozen=True)
class UnifiedResponse:
    """Ровно одно из полей `data`/`error` заполнено."""

    data: SuccessData | None = None
    error: ApiError | None = field(default=None)

    def __post_init__(self) -> None:
        if (self.data is None) == (self.error is None):
            raise ValueError("UnifiedResponse needs exactly one of data/error")

    @classmethod
    def ok(cls, data: SuccessData) -> UnifiedResponse:
        return cls(data=data)

    @classmethod
    def failure(cls, error: ApiError) -> UnifiedResponse:
        return cls(error=error)

    @property
    def success(self) -> bool:
        return self.data is not None

    @property
    def http_status(self) -> int:
        return self.error.http_status if self.error is not None else 200

    def to_dict(self) -> dict:
        if self.data is not None:
            return {"success": True, "data": self.data.to_dict()}
        return {"success": False, "error": error_payload(self.error)}
