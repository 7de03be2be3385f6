"""
session.py — One design session: assets, canvas, options, gallery.

StudioSession owns every piece of mutable state (nothing lives in module
globals) and is the error boundary for all generation entry points. Each
entry point returns an Outcome instead of raising:

  OK         the request produced what was asked for
  NEEDS_KEY  no key, or the provider rejected it → ask the user for one
  FAILED     anything else; ``message`` is shown to the user verbatim
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from .assets import (
    Asset,
    AssetRegistry,
    AssetType,
    asset_from_bytes,
    asset_from_file,
    data_url_mime_type,
    decode_data_url,
    extension_for,
)
from .config import default_model
from .credentials import CredentialStore
from .errors import ErrorKind, GenerationError, MissingApiKeyError, classify_error
from .gemini_service import GeminiService, GeneratedImage
from .history import HistoryStore
from .interaction import CanvasBounds, InteractionController
from .layers import PlacedLayer, Snapshot, filter_orphans
from .preview import image_size, render_preview
from .prompts import DEFAULT_TOUCHUP_PROMPT, MockupOptions

logger = logging.getLogger(__name__)

ServiceFactory = Callable[[str, str], GeminiService]   # (api_key, model_id)


class OutcomeKind(str, Enum):
    OK = "ok"
    NEEDS_KEY = "needs_key"
    FAILED = "failed"


@dataclass(frozen=True)
class GeneratedMockup:
    id: str
    image_url: str            # data URL
    prompt: str
    created_at: datetime
    layers: Snapshot
    product_id: Optional[str]

    @property
    def payload(self) -> bytes:
        return decode_data_url(self.image_url)

    @property
    def mime_type(self) -> str:
        return data_url_mime_type(self.image_url)


@dataclass(frozen=True)
class Outcome:
    kind: OutcomeKind
    message: str = ""
    mockups: Tuple[GeneratedMockup, ...] = field(default_factory=tuple)
    asset: Optional[Asset] = None

    @property
    def ok(self) -> bool:
        return self.kind == OutcomeKind.OK

    @classmethod
    def needs_key(cls, message: str = "A Gemini API key is required.") -> "Outcome":
        return cls(OutcomeKind.NEEDS_KEY, message)

    @classmethod
    def failed(cls, message: str) -> "Outcome":
        return cls(OutcomeKind.FAILED, message)


def _default_service_factory(api_key: str, model_id: str) -> GeminiService:
    return GeminiService(api_key=api_key, model_id=model_id)


def _new_mockup_id() -> str:
    return uuid.uuid4().hex[:7]


class StudioSession:
    """Top-level state owner passed to whatever front end drives the studio."""

    def __init__(
        self,
        credentials: Optional[CredentialStore] = None,
        model_id: Optional[str] = None,
        service_factory: Optional[ServiceFactory] = None,
        controller: Optional[InteractionController] = None,
    ) -> None:
        self.assets = AssetRegistry()
        self.controller = controller or InteractionController()
        self.credentials = credentials or CredentialStore()
        self.model_id = model_id or default_model()
        self.options = MockupOptions()
        self.instruction = ""
        self.selected_product_id: Optional[str] = None
        self.gallery: List[GeneratedMockup] = []
        self._image_sizes: Dict[str, Tuple[int, int]] = {}
        self._service_factory = service_factory or _default_service_factory
        if controller is None:
            self.controller.set_bounds_provider(self.canvas_bounds)

    @property
    def history(self) -> HistoryStore:
        return self.controller.history

    # ── Assets ────────────────────────────────────────────────────────────────

    def upload(self, path: Path, asset_type: AssetType) -> Asset:
        return self.assets.add(asset_from_file(path, asset_type))

    def add_asset(self, asset: Asset) -> Asset:
        return self.assets.add(asset)

    def remove_asset(self, asset_id: str) -> bool:
        removed = self.assets.remove(asset_id)
        if removed is None:
            return False
        self._image_sizes.pop(asset_id, None)
        if self.selected_product_id == asset_id:
            self.selected_product_id = None
        return True

    def select_product(self, asset_id: str) -> Asset:
        asset = self.assets.get(asset_id)
        if asset is None or asset.type != AssetType.PRODUCT:
            raise ValueError(f"No product asset with id {asset_id!r}")
        self.selected_product_id = asset_id
        return asset

    @property
    def selected_product(self) -> Optional[Asset]:
        return self.assets.get(self.selected_product_id)

    # ── Canvas ────────────────────────────────────────────────────────────────

    def add_logo(self, asset_id: str) -> PlacedLayer:
        asset = self.assets.get(asset_id)
        if asset is None or asset.type != AssetType.LOGO:
            raise ValueError(f"No logo asset with id {asset_id!r}")
        return self.controller.add_layer(asset_id)

    def canvas_bounds(self) -> Optional[CanvasBounds]:
        """Canvas box in product-image pixels; None until a product is selected."""
        product = self.selected_product
        if product is None:
            return None
        width, height = self._product_size(product)
        return CanvasBounds(width=width, height=height)

    def _product_size(self, product: Asset) -> Tuple[int, int]:
        # decoded once per product; pointer moves ask for bounds on every event
        if product.id not in self._image_sizes:
            self._image_sizes[product.id] = image_size(product)
        return self._image_sizes[product.id]

    def placed_layers(self) -> Snapshot:
        """Current canvas layers whose asset still exists."""
        return filter_orphans(self.controller.layers, self.assets.ids())

    def layer_pairs(self) -> List[Tuple[Asset, PlacedLayer]]:
        pairs = []
        for layer in self.placed_layers():
            asset = self.assets.get(layer.asset_id)
            if asset is not None:
                pairs.append((asset, layer))
        return pairs

    def set_options(self, **changes) -> MockupOptions:
        """Validated update of the mockup options (pydantic raises on bad values)."""
        self.options = MockupOptions(**{**self.options.model_dump(), **changes})
        return self.options

    def preview(self) -> bytes:
        product = self.selected_product
        if product is None:
            raise ValueError("Select a product first")
        return render_preview(product, self.layer_pairs())

    # ── Provider boundary ─────────────────────────────────────────────────────

    def _service(self) -> Optional[GeminiService]:
        key = self.credentials.effective_key
        if not key:
            return None
        return self._service_factory(key, self.model_id)

    def handle_api_error(self, exc: BaseException) -> Outcome:
        """Convert anything raised during a generation call into an Outcome."""
        if isinstance(exc, MissingApiKeyError):
            return Outcome.needs_key(str(exc))

        message = str(exc) or type(exc).__name__
        kind = classify_error(exc)
        if kind == ErrorKind.KEY_REJECTED:
            logger.warning("Invalid API Key or Permissions")
            return Outcome.needs_key(message)
        if kind == ErrorKind.MODEL_NOT_FOUND:
            logger.warning("Model not found - likely a key issue or model name typo (%s)", self.model_id)
        return Outcome.failed(message)

    # ── Generation entry points ───────────────────────────────────────────────

    def generate_mockups(self) -> Outcome:
        product = self.selected_product
        if product is None:
            self.selected_product_id = None
            return Outcome.failed("Selected product not found. Please select a product.")

        pairs = self.layer_pairs()
        if not pairs:
            return Outcome.failed("No valid logos found on canvas. Please add a logo.")

        service = self._service()
        if service is None:
            return Outcome.needs_key()

        prompt = self.instruction
        used_layers = tuple(layer for _asset, layer in pairs)
        try:
            images = service.generate_mockups(product, pairs, prompt, self.options)
        except Exception as exc:
            logger.error("Mockup generation failed: %s", exc)
            return self.handle_api_error(exc)

        mockups = tuple(self._record(img, prompt, used_layers, product.id) for img in images)
        self.gallery = list(mockups) + self.gallery
        return Outcome(OutcomeKind.OK, f"{len(mockups)} mockup(s) generated", mockups=mockups)

    def generate_asset(self, prompt: str, asset_type: AssetType) -> Outcome:
        if not prompt.strip():
            return Outcome.failed("Describe the asset to generate.")
        service = self._service()
        if service is None:
            return Outcome.needs_key()

        asset_type = AssetType(asset_type)
        try:
            image = service.generate_asset(prompt, asset_type)
        except Exception as exc:
            logger.error("Asset generation failed: %s", exc)
            return self.handle_api_error(exc)

        asset = self.assets.add(
            asset_from_bytes(image.data, asset_type, f"AI Generated {asset_type.value}", image.mime_type)
        )
        return Outcome(OutcomeKind.OK, f"Generated {asset_type.value} {asset.id}", asset=asset)

    def touch_up(self, prompt: str = DEFAULT_TOUCHUP_PROMPT) -> Outcome:
        """Render the rough canvas locally, then ask Gemini to make it photorealistic."""
        product = self.selected_product
        if product is None:
            return Outcome.failed("Selected product not found. Please select a product.")

        service = self._service()
        if service is None:
            return Outcome.needs_key()

        pairs = self.layer_pairs()
        try:
            composite = render_preview(product, pairs)
            image = service.generate_realtime_composite(composite, prompt or DEFAULT_TOUCHUP_PROMPT)
        except Exception as exc:
            logger.error("AR Composite generation failed: %s", exc)
            return self.handle_api_error(exc)

        mockup = self._record(image, prompt, tuple(l for _a, l in pairs), product.id)
        self.gallery.insert(0, mockup)
        return Outcome(OutcomeKind.OK, "Touch-up generated", mockups=(mockup,))

    def test_connection(self) -> Outcome:
        service = self._service()
        if service is None:
            return Outcome.needs_key()
        result = service.test_model_connection(self.model_id)
        if result.success:
            return Outcome(OutcomeKind.OK, result.message)
        return self.handle_api_error(GenerationError(result.message))

    # ── Gallery ───────────────────────────────────────────────────────────────

    def _record(
        self,
        image: GeneratedImage,
        prompt: str,
        layers: Snapshot,
        product_id: Optional[str],
    ) -> GeneratedMockup:
        return GeneratedMockup(
            id=_new_mockup_id(),
            image_url=image.to_data_url(),
            prompt=prompt,
            created_at=datetime.now(),
            layers=layers,
            product_id=product_id,
        )

    def find_mockup(self, mockup_id: str) -> Optional[GeneratedMockup]:
        return next((m for m in self.gallery if m.id == mockup_id), None)

    def save_mockup(self, mockup: GeneratedMockup, out_dir: Path) -> Path:
        out_dir = Path(out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / f"mockup-{mockup.id}{extension_for(mockup.mime_type)}"
        path.write_bytes(mockup.payload)
        logger.info("Saved mockup → %s", path)
        return path
