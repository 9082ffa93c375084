import json

import httpx
import pytest
from helpers import CHAT_MODEL, FAL_MODEL, PNG_BYTES, RecordingTransport, chat_completion

from image_mixer.providers.base import ImageBlob, ProviderNotConfigured, VendorError
from image_mixer.providers.factory import build_vendor_clients
from image_mixer.providers.fal import FalImageEditProvider
from image_mixer.providers.gemini import GeminiTextProvider
from image_mixer.providers.mock import MockChatProvider
from image_mixer.providers.openrouter import OpenRouterChatProvider
from image_mixer.settings import Settings

BLOB = ImageBlob(file_name="a.png", content_type="image/png", data=PNG_BYTES)


def test_image_blob_data_uri() -> None:
    blob = ImageBlob(file_name="x.jpg", content_type="image/jpeg", data=b"abc")
    assert blob.data_uri() == "data:image/jpeg;base64,YWJj"
    assert blob.size == 3


def test_fal_request_shape() -> None:
    transport = RecordingTransport(
        lambda req: httpx.Response(200, json={"images": [], "description": "ok"})
    )
    p = FalImageEditProvider(api_key="k", base_url="https://fal.run/", transport=transport)
    res = p.run("make it blue", [BLOB], FAL_MODEL)

    req = transport.requests[0]
    assert str(req.url) == "https://fal.run/fal-ai/nano-banana/edit"
    assert req.headers["Authorization"] == "Key k"
    sent = json.loads(req.content)
    assert sent == {
        "prompt": "make it blue",
        "image_urls": [BLOB.data_uri()],
        "num_images": 1,
        "output_format": "jpeg",
        "sync_mode": False,
    }
    # без заголовка x-fal-request-id генерируем свой
    assert res.request_id


def test_fal_error_carries_status_and_body() -> None:
    transport = RecordingTransport(
        lambda req: httpx.Response(422, json={"detail": [{"loc": ["body"], "msg": "bad"}]})
    )
    p = FalImageEditProvider(api_key="k", transport=transport)
    with pytest.raises(VendorError) as ei:
        p.run("x", [BLOB], FAL_MODEL)
    assert ei.value.status_code == 422
    assert ei.value.body == {"detail": [{"loc": ["body"], "msg": "bad"}]}


def test_openrouter_headers_and_payload() -> None:
    transport = RecordingTransport(lambda req: httpx.Response(200, json=chat_completion("ok")))
    p = OpenRouterChatProvider(
        api_key="k",
        max_tokens=321,
        http_referer="http://localhost:3000",
        title="Nano Banana App",
        transport=transport,
    )
    res = p.run("describe", [BLOB, BLOB], CHAT_MODEL)
    assert res.request_id == "gen-1"

    req = transport.requests[0]
    assert req.headers["HTTP-Referer"] == "http://localhost:3000"
    assert req.headers["X-Title"] == "Nano Banana App"
    sent = json.loads(req.content)
    assert sent["model"] == CHAT_MODEL
    assert sent["max_tokens"] == 321
    assert [part["type"] for part in sent["messages"][0]["content"]] == ["text", "image_url", "image_url"]


def test_openrouter_non_json_error_body() -> None:
    transport = RecordingTransport(lambda req: httpx.Response(502, text="Bad Gateway"))
    p = OpenRouterChatProvider(api_key="k", transport=transport)
    with pytest.raises(VendorError) as ei:
        p.run("x", [BLOB], CHAT_MODEL)
    assert ei.value.status_code == 502
    assert ei.value.body == "Bad Gateway"


def test_gemini_sends_inline_images() -> None:
    transport = RecordingTransport(lambda req: httpx.Response(200, json={"candidates": []}))
    p = GeminiTextProvider(api_key="k", transport=transport)
    p.run("hi", [BLOB], "gemini-2.0-flash-exp")
    req = transport.requests[0]
    assert req.url.path == "/v1beta/models/gemini-2.0-flash-exp:generateContent"
    parts = json.loads(req.content)["contents"][0]["parts"]
    assert parts[0] == {"text": "hi"}
    assert parts[1]["inlineData"]["mimeType"] == "image/png"


def test_missing_keys_fail_without_network() -> None:
    transport = RecordingTransport(lambda req: httpx.Response(200, json={}))
    for p in (
        FalImageEditProvider(api_key=None, transport=transport),
        OpenRouterChatProvider(api_key=None, transport=transport),
        GeminiTextProvider(api_key="", transport=transport),
    ):
        with pytest.raises(ProviderNotConfigured, match="API key"):
            p.run("x", [BLOB], "m")
    assert transport.requests == []


def test_factory_modes() -> None:
    mock = build_vendor_clients(Settings(VENDOR_MODE="mock"))
    assert isinstance(mock.chat, MockChatProvider)
    assert sorted(mock.by_name()) == ["fal", "gemini", "openrouter"]

    live = build_vendor_clients(Settings(VENDOR_MODE="live"))
    assert isinstance(live.image_edit, FalImageEditProvider)
    live.close()

    with pytest.raises(ValueError, match="Unknown vendor mode"):
        build_vendor_clients(Settings(VENDOR_MODE="bogus"))
