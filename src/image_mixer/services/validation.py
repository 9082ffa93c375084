"""Проверка входа до любого обращения к провайдеру."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from image_mixer.providers.base import ImageBlob
from image_mixer.services.errors import ApiError, validation_error


@dataclass(frozen=True)
class RawRequest:
    """Вход как пришёл из формы: всё может отсутствовать."""

    prompt: str | None
    model_id: str | None
    images: Sequence[ImageBlob] = ()


@dataclass(frozen=True)
class RequestInput:
    prompt: str
    model_id: str
    images: tuple[ImageBlob, ...]


@dataclass(frozen=True)
class UploadLimits:
    max_images: int = 5
    max_image_bytes: int = 10 * 1024 * 1024
    min_images: int = 1


class InvalidRequest(Exception):
    def __init__(self, error: ApiError) -> None:
        self.error = error
        super().__init__(error.code)


def _mib(n: int) -> str:
    return f"{n / (1024 * 1024):g} MiB"


def image_too_large(file_name: str, size: int, max_bytes: int) -> ApiError:
    return validation_error(
        "IMAGE_TOO_LARGE",
        "Image Too Large",
        f"Each image must be at most {_mib(max_bytes)}",
        f'File "{file_name}" is {size} bytes',
    )


def validate_request(
    raw: RawRequest,
    is_known_model: Callable[[str], bool] | None,
    limits: UploadLimits = UploadLimits(),
) -> RequestInput:
    """Возвращает `RequestInput` или бросает `InvalidRequest`.

    `is_known_model=None` значит, что модель выбрана самим эндпоинтом и
    проверки `NO_MODEL`/`UNKNOWN_MODEL` не нужны.
    """
    images = tuple(raw.images)

    if limits.min_images > 0 and not images:
        raise InvalidRequest(
            validation_error(
                "NO_IMAGES",
                "No Images",
                "No image files provided",
                "Please upload at least one image",
            )
        )

    prompt = (raw.prompt or "").strip()
    if not prompt:
        raise InvalidRequest(
            validation_error(
                "NO_PROMPT",
                "No Prompt",
                "No prompt provided",
                "Please provide a description of what you want to do with the images",
            )
        )

    model_id = (raw.model_id or "").strip()
    if is_known_model is not None:
        if not model_id:
            raise InvalidRequest(
                validation_error(
                    "NO_MODEL",
                    "No Model",
                    "No model specified",
                    "Please select a model to process the images",
                )
            )
        if not is_known_model(model_id):
            raise InvalidRequest(
                validation_error(
                    "UNKNOWN_MODEL",
                    "Unknown Model",
                    "Unknown model specified",
                    f'Model "{model_id}" is not supported',
                )
            )

    if len(images) > limits.max_images:
        raise InvalidRequest(
            validation_error(
                "TOO_MANY_IMAGES",
                "Too Many Images",
                f"At most {limits.max_images} images can be processed at once",
                f"Received {len(images)} images",
            )
        )

    for img in images:
        if not img.content_type.startswith("image/"):
            raise InvalidRequest(
                validation_error(
                    "INVALID_IMAGE_TYPE",
                    "Invalid Image",
                    "Only image files are supported",
                    f'File "{img.file_name}" has type {img.content_type or "unknown"}',
                )
            )
        if img.size > limits.max_image_bytes:
            raise InvalidRequest(image_too_large(img.file_name, img.size, limits.max_image_bytes))

    return RequestInput(prompt=prompt, model_id=model_id, images=images)
