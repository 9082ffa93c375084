import httpx

from image_mixer.settings import Settings

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32

FAL_MODEL = "fal-ai/nano-banana/edit"
CHAT_MODEL = "google/gemini-2.5-flash-image-preview:free"


class RecordingTransport(httpx.MockTransport):
    """MockTransport, который запоминает все исходящие запросы."""

    def __init__(self, handler) -> None:
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


def live_settings(**overrides) -> Settings:
    values = {
        "VENDOR_MODE": "live",
        "FAL_KEY": "fal-test-key",
        "OPENROUTER_API_KEY": "or-test-key",
        "GEMINI_API_KEY": "gm-test-key",
    }
    values.update(overrides)
    return Settings(**values)


def chat_completion(content, finish_reason="stop", message=None, choice=None, **extra) -> dict:
    ch = {
        "index": 0,
        "message": {"role": "assistant", "content": content, **(message or {})},
        "finish_reason": finish_reason,
        **(choice or {}),
    }
    body = {"id": "gen-1", "model": CHAT_MODEL, "choices": [ch]}
    body.update(extra)
    return body


def fal_result() -> dict:
    return {
        "images": [
            {
                "url": "https://v3.fal.media/files/out.jpeg",
                "content_type": "image/jpeg",
                "file_name": "out.jpeg",
                "file_size": 4242,
                "width": 1024,
                "height": 1024,
            }
        ],
        "description": "Here is the edited image.",
    }
