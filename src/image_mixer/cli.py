"""CLI утилита (один прогон конвейера из терминала, без HTTP-сервера)."""

import argparse
import json
import mimetypes
import sys
from pathlib import Path

from image_mixer.api.common import guarded
from image_mixer.infrastructure.logging import configure_logging
from image_mixer.providers.base import ImageBlob
from image_mixer.providers.factory import build_vendor_clients
from image_mixer.services.envelope import UnifiedResponse
from image_mixer.services.pipeline import MixerPipeline
from image_mixer.services.routing import build_router
from image_mixer.services.validation import RawRequest, UploadLimits
from image_mixer.settings import get_settings


def _load_image(path: Path) -> ImageBlob:
    content_type, _ = mimetypes.guess_type(path.name)
    return ImageBlob(
        file_name=path.name,
        content_type=content_type or "application/octet-stream",
        data=path.read_bytes(),
    )


def cmd_mix(args: argparse.Namespace) -> int:
    """Отправляет картинки + промпт выбранной модели и печатает конверт ответа (JSON).

    Любой сбой (фабрика, чтение файлов, нормализация) тоже печатается конвертом.
    """
    settings = get_settings()
    configure_logging(settings)

    def handle() -> UnifiedResponse:
        vendors = build_vendor_clients(settings)
        try:
            pipeline = MixerPipeline(
                build_router(
                    vendors,
                    image_edit_model=settings.fal_model,
                    chat_model=settings.openrouter_model,
                    text_model=settings.gemini_model,
                ),
                UploadLimits(
                    max_images=settings.max_images,
                    max_image_bytes=settings.max_image_bytes,
                ),
            )
            images = [_load_image(Path(p)) for p in args.images]
            return pipeline.run(RawRequest(prompt=args.prompt, model_id=args.model, images=images))
        finally:
            vendors.close()

    envelope = guarded("cli", handle)
    print(json.dumps(envelope.to_dict(), ensure_ascii=False, indent=2))
    return 0 if envelope.success else 1


def main(argv: list[str] | None = None) -> int:
    """Точка входа CLI."""
    parser = argparse.ArgumentParser(prog="image-mixer", description="Image Mixer: CLI")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_mix = sub.add_parser("mix", help="Отредактировать картинки выбранной моделью")
    p_mix.add_argument("--model", required=True, help="Модель, например fal-ai/nano-banana/edit")
    p_mix.add_argument("--prompt", required=True, help="Что сделать с картинками")
    p_mix.add_argument("images", nargs="+", help="Пути к файлам картинок (до 5)")
    p_mix.set_defaults(func=cmd_mix)

    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
