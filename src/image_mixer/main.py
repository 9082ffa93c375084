"""FastAPI приложение (роутеры + логирование + клиенты провайдеров)."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from image_mixer import __version__
from image_mixer.api.routes import router as api_router
from image_mixer.api.well_known import router as well_known_router
from image_mixer.infrastructure.logging import configure_logging
from image_mixer.providers.factory import VendorClients, build_vendor_clients
from image_mixer.services.envelope import UnifiedResponse
from image_mixer.services.errors import validation_error
from image_mixer.services.pipeline import MixerPipeline
from image_mixer.services.routing import build_router
from image_mixer.services.validation import UploadLimits
from image_mixer.settings import Settings, get_settings

log = structlog.get_logger()


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Ошибки разбора формы/JSON отдаём тем же конвертом, а не форматом FastAPI."""
    fields = ", ".join(".".join(str(p) for p in err.get("loc", ())) for err in exc.errors())
    err = validation_error(
        "INVALID_REQUEST",
        "Invalid Request",
        "The request could not be parsed",
        f"Invalid fields: {fields}" if fields else "Malformed request body",
    )
    return JSONResponse(status_code=err.http_status, content=UnifiedResponse.failure(err).to_dict())


def create_app(
    settings: Settings | None = None,
    vendors: VendorClients | None = None,
) -> FastAPI:
    """Собирает FastAPI приложение.

    Клиенты провайдеров создаются один раз на процесс и передаются в
    роутер явно; закрываются при остановке приложения.
    """
    settings = settings or get_settings()
    configure_logging(settings)
    vendors = vendors or build_vendor_clients(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        log.info("shutdown", vendors=sorted(vendors.by_name()))
        vendors.close()

    app = FastAPI(title="Image Mixer", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.pipeline = MixerPipeline(
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
    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    app.include_router(well_known_router)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()
