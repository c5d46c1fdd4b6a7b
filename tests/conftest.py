import io
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from scene_placer.codec import RasterImage
from scene_placer.config import Settings
from scene_placer.gemini import GeminiImageClient
from scene_placer.prompts import LIGHTING_ANALYSIS_PROMPT

LIGHTING_TEXT = "The scene is lit by a soft, warm light coming from a large window on the left."
LOCATION_TEXT = "The product location is on the oak dining table, near its center."


def make_raster(width, height, color=(200, 30, 30), fmt="PNG", filename=None):
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format=fmt)
    mime = "image/png" if fmt == "PNG" else "image/jpeg"
    name = filename or f"img-{width}x{height}.{fmt.lower()}"
    return RasterImage.from_bytes(buf.getvalue(), name, mime_type=mime)


def png_bytes(width, height, color=(10, 120, 10)):
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


def text_response(text):
    return SimpleNamespace(text=text, candidates=[], prompt_feedback=None)


def image_response(data, mime_type="image/png"):
    part = SimpleNamespace(text=None, inline_data=SimpleNamespace(mime_type=mime_type, data=data))
    candidate = SimpleNamespace(content=SimpleNamespace(parts=[part]))
    return SimpleNamespace(text=None, candidates=[candidate], prompt_feedback=None)


def no_image_response(block_reason=None):
    part = SimpleNamespace(text="I cannot do that.", inline_data=None)
    candidate = SimpleNamespace(content=SimpleNamespace(parts=[part]))
    feedback = SimpleNamespace(block_reason=block_reason) if block_reason else None
    return SimpleNamespace(text="I cannot do that.", candidates=[candidate], prompt_feedback=feedback)


class FakeGemini:
    """
    Stand-in for google.genai.Client. Routes generate_content calls:
    config given → image synthesis, first text part == lighting prompt →
    lighting analysis, anything else → location description.
    """

    def __init__(self, lighting=LIGHTING_TEXT, location=LOCATION_TEXT, image=None):
        self.lighting = lighting
        self.location = location
        self.image = image if image is not None else image_response(png_bytes(1024, 1024))
        self.calls = []
        self.client = MagicMock()
        self.client.aio.models.generate_content = AsyncMock(side_effect=self._generate)

    async def _generate(self, model, contents, config=None):
        self.calls.append(SimpleNamespace(model=model, contents=contents, config=config))
        if config is not None:
            return _resolve(self.image)
        if contents[0].text == LIGHTING_ANALYSIS_PROMPT:
            return _resolve(self.lighting, text=True)
        return _resolve(self.location, text=True)

    @property
    def wrapper(self):
        return GeminiImageClient(self.client)

    def calls_by_kind(self):
        kinds = []
        for call in self.calls:
            if call.config is not None:
                kinds.append("synthesize")
            elif call.contents[0].text == LIGHTING_ANALYSIS_PROMPT:
                kinds.append("lighting")
            else:
                kinds.append("location")
        return kinds


def _resolve(value, text=False):
    if isinstance(value, BaseException):
        raise value
    return text_response(value) if text else value


@pytest.fixture
def settings():
    return Settings(api_key="test-key")


@pytest.fixture
def small_settings():
    return Settings(api_key="test-key", target_dimension=256)


@pytest.fixture
def fake_gemini():
    return FakeGemini()


@pytest.fixture
def scene_800x600():
    return make_raster(800, 600, color=(30, 60, 200), fmt="JPEG", filename="living-room.jpg")


@pytest.fixture
def product_400x400():
    return make_raster(400, 400, color=(220, 220, 40), filename="lamp.png")
