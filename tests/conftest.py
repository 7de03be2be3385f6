"""
Shared fixtures for Mockup Studio tests.

Provides tiny in-memory PNGs, ready-made logo/product assets, a fake Gemini
client that records every request, and a session wired to that fake.
No test touches the network or the real settings directory.
"""
import io
from types import SimpleNamespace

import pytest
from PIL import Image

from mockup_studio.assets import AssetType, asset_from_bytes
from mockup_studio.credentials import CredentialStore
from mockup_studio.gemini_service import GeminiService
from mockup_studio.session import StudioSession


# ── Image helpers ───────────────────────────────────────────────────────

def make_png(size=(40, 20), color=(200, 30, 30, 255)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", size, color).save(buf, format="PNG")
    return buf.getvalue()


def make_jpeg(size=(16, 16), color=(10, 120, 200)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="JPEG")
    return buf.getvalue()


# ── Fake Gemini responses ───────────────────────────────────────────────

def image_response(data: bytes = b"\x89PNG-fake", mime_type: str = "image/png"):
    part = SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type), text=None)
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))], text=None)


def text_response(text: str = "I cannot do that"):
    part = SimpleNamespace(inline_data=None, text=text)
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))], text=text)


def no_candidates_response():
    return SimpleNamespace(candidates=None, text=None)


class FakeModels:
    """Stands in for ``genai.Client().models``; replays queued responses."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def generate_content(self, model, contents, config=None):
        self.calls.append(SimpleNamespace(model=model, contents=contents, config=config))
        if not self.responses:
            raise AssertionError("unexpected extra Gemini call")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


class FakeClient:
    def __init__(self, responses=()):
        self.models = FakeModels(responses)


# ── Fixtures ────────────────────────────────────────────────────────────

@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def product_asset():
    return asset_from_bytes(make_png((200, 100), (240, 240, 240, 255)), AssetType.PRODUCT, "shirt.png")


@pytest.fixture
def logo_asset():
    return asset_from_bytes(make_png((40, 40), (20, 20, 200, 255)), AssetType.LOGO, "logo.png")


@pytest.fixture
def second_logo_asset():
    return asset_from_bytes(make_png((30, 60), (0, 160, 0, 255)), AssetType.LOGO, "badge.png")


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def service(fake_client):
    return GeminiService(api_key=None, model_id="gemini-2.5-flash-image", client=fake_client)


@pytest.fixture
def credentials(tmp_path):
    """Credential store in a temp dir with no environment key."""
    return CredentialStore(path=tmp_path / "settings.json", env_key=lambda: None)


@pytest.fixture
def session(credentials, fake_client):
    factory_calls = []

    def factory(api_key, model_id):
        factory_calls.append((api_key, model_id))
        return GeminiService(api_key=api_key, model_id=model_id, client=fake_client)

    s = StudioSession(credentials=credentials, model_id="gemini-2.5-flash-image", service_factory=factory)
    s.factory_calls = factory_calls
    return s
