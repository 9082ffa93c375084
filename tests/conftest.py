import pytest
from fastapi.testclient import TestClient
from helpers import RecordingTransport, live_settings

from image_mixer.main import create_app
from image_mixer.providers.factory import build_vendor_clients
from image_mixer.settings import Settings


@pytest.fixture
def make_client():
    """Приложение с настоящими провайдерами поверх `httpx.MockTransport`."""

    def _make(handler, **settings_overrides) -> tuple[TestClient, RecordingTransport]:
        transport = RecordingTransport(handler)
        settings = live_settings(**settings_overrides)
        vendors = build_vendor_clients(settings, transport=transport)
        return TestClient(create_app(settings=settings, vendors=vendors)), transport

    return _make


@pytest.fixture
def mock_client() -> TestClient:
    return TestClient(create_app(settings=Settings(VENDOR_MODE="mock")))
