"""
gemini_service.py — The only module that talks to the Gemini API.

Request shape (all calls):
  contents = [image parts..., trailing text part]
  config   = response_modalities=["IMAGE"], optional temperature

Responses are decoded once, here, into a tagged result:
  Success(images)        at least one inline image came back
  EmptyResult()          the call worked but carried no image
  ProviderError(message) the SDK raised; message is the provider's text

Callers above this module never probe raw SDK response objects.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union

from google import genai
from google.genai import types

from .assets import Asset, AssetType, to_data_url
from .config import DEFAULT_MODEL
from .errors import GenerationError, MissingApiKeyError, NoImageDataError
from .layers import PlacedLayer
from .prompts import (
    CONNECTION_IMAGE_PROMPT,
    CONNECTION_TEXT_PROMPT,
    DEFAULT_TOUCHUP_PROMPT,
    MockupOptions,
    build_asset_prompt,
    build_mockup_prompt,
    build_touchup_prompt,
)

logger = logging.getLogger(__name__)

IMAGE_MODALITY = "IMAGE"


# ── Result types ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class GeneratedImage:
    data: bytes
    mime_type: str = "image/png"

    def to_data_url(self) -> str:
        return to_data_url(self.data, self.mime_type)


@dataclass(frozen=True)
class Success:
    images: Tuple[GeneratedImage, ...]

    @property
    def first(self) -> GeneratedImage:
        return self.images[0]


@dataclass(frozen=True)
class EmptyResult:
    pass


@dataclass(frozen=True)
class ProviderError:
    message: str


GenerationResult = Union[Success, EmptyResult, ProviderError]


@dataclass(frozen=True)
class ConnectionResult:
    success: bool
    message: str


LayerPair = Tuple[Asset, PlacedLayer]


# ── Decoding ──────────────────────────────────────────────────────────────────

def _inline_bytes(raw: Any) -> bytes:
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw)
    return base64.b64decode(raw)


def _first_candidate_parts(response: Any) -> List[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def decode_response(response: Any) -> Union[Success, EmptyResult]:
    """Collect the inline images of the first candidate, in order."""
    images: List[GeneratedImage] = []
    for part in _first_candidate_parts(response):
        inline = getattr(part, "inline_data", None)
        if inline is None or not getattr(inline, "data", None):
            continue
        mime_type = getattr(inline, "mime_type", None) or "image/png"
        if not mime_type.startswith("image/"):
            continue
        images.append(GeneratedImage(data=_inline_bytes(inline.data), mime_type=mime_type))
    if not images:
        return EmptyResult()
    return Success(images=tuple(images))


def expect_image(result: GenerationResult, empty_message: str = "No image data found in response") -> GeneratedImage:
    """Unwrap a single-request result or raise the matching error."""
    if isinstance(result, Success):
        return result.first
    if isinstance(result, ProviderError):
        raise GenerationError(result.message)
    raise NoImageDataError(empty_message)


# ── Service ───────────────────────────────────────────────────────────────────

class GeminiService:
    """Thin wrapper over ``genai.Client`` for the studio's four request kinds."""

    def __init__(
        self,
        api_key: Optional[str],
        model_id: str = DEFAULT_MODEL,
        client: Optional[Any] = None,
    ) -> None:
        if client is None:
            if not api_key:
                raise MissingApiKeyError()
            client = genai.Client(api_key=api_key)
        self.client = client
        self.model_id = model_id

    # ── Low level ─────────────────────────────────────────────────────────────

    def _request(
        self,
        parts: List[types.Part],
        temperature: Optional[float] = None,
        model_id: Optional[str] = None,
    ) -> GenerationResult:
        config = types.GenerateContentConfig(
            response_modalities=[IMAGE_MODALITY],
            temperature=temperature,
        )
        try:
            response = self.client.models.generate_content(
                model=model_id or self.model_id,
                contents=parts,
                config=config,
            )
        except Exception as exc:
            logger.warning("Gemini request failed (%s): %s", model_id or self.model_id, exc)
            return ProviderError(message=str(exc) or type(exc).__name__)
        return decode_response(response)

    @staticmethod
    def _image_part(data: bytes, mime_type: str) -> types.Part:
        return types.Part.from_bytes(data=data, mime_type=mime_type)

    def _mockup_parts(self, product: Asset, layers: Sequence[LayerPair]) -> List[types.Part]:
        parts = [self._image_part(product.payload, product.mime_type)]
        for asset, _placement in layers:
            parts.append(self._image_part(asset.payload, asset.mime_type))
        return parts

    # ── Mockups ───────────────────────────────────────────────────────────────

    def generate_mockups(
        self,
        product: Asset,
        layers: Sequence[LayerPair],
        instruction: str,
        options: Optional[MockupOptions] = None,
    ) -> List[GeneratedImage]:
        """
        Composite the logos onto the product, ``options.count`` times.

        Requests run one after another. A request that yields no image (or
        fails) is dropped and the loop continues. Raises only when nothing
        at all came back: GenerationError carrying the last provider message
        if any request failed, NoImageDataError otherwise.

        Returns:
            Generated images in request order (may be shorter than count).
        """
        options = options or MockupOptions()
        placements = [placement for _asset, placement in layers]
        images: List[GeneratedImage] = []
        errors: List[str] = []

        for index in range(options.count):
            prompt = build_mockup_prompt(instruction, placements, options, index)
            parts = self._mockup_parts(product, layers)
            parts.append(types.Part.from_text(text=prompt))

            result = self._request(parts, temperature=options.temperature)
            if isinstance(result, Success):
                images.append(result.first)
                logger.info("mockup %d/%d generated", index + 1, options.count)
            elif isinstance(result, ProviderError):
                errors.append(result.message)
                logger.warning("mockup %d/%d failed: %s", index + 1, options.count, result.message)
            else:
                logger.warning("mockup %d/%d returned no image", index + 1, options.count)

        if not images:
            if errors:
                raise GenerationError(errors[-1])
            raise NoImageDataError()
        return images

    # ── Single-image requests ─────────────────────────────────────────────────

    def generate_asset(self, prompt: str, asset_type: AssetType) -> GeneratedImage:
        """Generate a logo or a product base from text alone."""
        parts = [types.Part.from_text(text=build_asset_prompt(prompt, asset_type))]
        return expect_image(self._request(parts), empty_message="No image generated")

    def generate_realtime_composite(
        self,
        composite: bytes,
        prompt: str = DEFAULT_TOUCHUP_PROMPT,
        mime_type: str = "image/png",
    ) -> GeneratedImage:
        """Turn a rough composite into a photorealistic image."""
        parts = [
            self._image_part(composite, mime_type),
            types.Part.from_text(text=build_touchup_prompt(prompt)),
        ]
        return expect_image(self._request(parts))

    # ── Diagnostics ───────────────────────────────────────────────────────────

    def test_model_connection(self, model_id: Optional[str] = None) -> ConnectionResult:
        """Cheap round trip against ``model_id``. Never raises."""
        model = model_id or self.model_id
        try:
            if "image" in model or "imagen" in model:
                response = self.client.models.generate_content(
                    model=model,
                    contents=[types.Part.from_text(text=CONNECTION_IMAGE_PROMPT)],
                    config=types.GenerateContentConfig(response_modalities=[IMAGE_MODALITY]),
                )
                if _first_candidate_parts(response):
                    return ConnectionResult(True, "Image generation model connected successfully.")
            else:
                response = self.client.models.generate_content(
                    model=model,
                    contents=CONNECTION_TEXT_PROMPT,
                )
                if getattr(response, "text", None):
                    return ConnectionResult(True, f"Connected to {model} successfully.")
        except Exception as exc:
            logger.error("Connection test failed: %s", exc)
            return ConnectionResult(False, str(exc) or "Connection failed")
        return ConnectionResult(False, "No content returned.")
