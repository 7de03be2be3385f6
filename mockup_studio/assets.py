"""
assets.py — Uploaded and generated images (logos and products).

Assets carry their payload as a data URL ("data:image/png;base64,....") with
the original MIME type preserved, exactly what is sent to Gemini as an inline
image part. Assets are immutable; the registry only adds and removes.
"""

from __future__ import annotations

import base64
import io
import logging
import mimetypes
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}


class AssetType(str, Enum):
    LOGO = "logo"
    PRODUCT = "product"


# ── Data URL helpers ──────────────────────────────────────────────────────────

def to_data_url(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def base64_payload(data_url: str) -> str:
    """Strip the "data:<mime>;base64," prefix and return the base64 body."""
    return data_url.split(",", 1)[1] if "," in data_url else data_url


def decode_data_url(data_url: str) -> bytes:
    return base64.b64decode(base64_payload(data_url))


def data_url_mime_type(data_url: str, default: str = "image/png") -> str:
    if not data_url.startswith("data:") or ";" not in data_url:
        return default
    return data_url[len("data:"):data_url.index(";")] or default


MIME_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def extension_for(mime_type: str) -> str:
    """File suffix for an image MIME type; unknown types fall back to .png."""
    return MIME_EXTENSIONS.get(mime_type.lower(), ".png")


def sniff_mime_type(data: bytes, filename: str = "") -> str:
    """
    Detect the MIME type of an image payload.

    Pillow's detected format wins; the filename extension is the fallback.
    Raises ValueError if neither identifies an image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            mime = Image.MIME.get(img.format or "")
            if mime:
                return mime
    except UnidentifiedImageError:
        pass

    guessed, _ = mimetypes.guess_type(filename)
    if guessed and guessed.startswith("image/"):
        return guessed
    raise ValueError(f"Not a supported image: {filename or '<bytes>'}")


# ── Model ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Asset:
    id: str
    type: AssetType
    name: str
    data: str          # data URL
    mime_type: str

    @property
    def payload(self) -> bytes:
        return decode_data_url(self.data)

    @property
    def base64_data(self) -> str:
        return base64_payload(self.data)


def new_asset_id() -> str:
    return uuid.uuid4().hex[:7]


def asset_from_bytes(
    data: bytes,
    asset_type: AssetType,
    name: str,
    mime_type: Optional[str] = None,
) -> Asset:
    mime = mime_type or sniff_mime_type(data, name)
    return Asset(
        id=new_asset_id(),
        type=AssetType(asset_type),
        name=name,
        data=to_data_url(data, mime),
        mime_type=mime,
    )


def asset_from_file(path: Path, asset_type: AssetType) -> Asset:
    path = Path(path)
    return asset_from_bytes(path.read_bytes(), asset_type, name=path.name)


# ── Registry ──────────────────────────────────────────────────────────────────

class AssetRegistry:
    """In-memory, insertion-ordered collection of assets for one session."""

    def __init__(self) -> None:
        self._assets: Dict[str, Asset] = {}

    def add(self, asset: Asset) -> Asset:
        if asset.id in self._assets:
            raise ValueError(f"Duplicate asset id: {asset.id}")
        self._assets[asset.id] = asset
        logger.info("asset added: %s (%s, %s)", asset.id, asset.type.value, asset.name)
        return asset

    def remove(self, asset_id: str) -> Optional[Asset]:
        removed = self._assets.pop(asset_id, None)
        if removed is not None:
            logger.info("asset removed: %s", asset_id)
        return removed

    def get(self, asset_id: Optional[str]) -> Optional[Asset]:
        if asset_id is None:
            return None
        return self._assets.get(asset_id)

    def by_type(self, asset_type: AssetType) -> List[Asset]:
        return [a for a in self._assets.values() if a.type == AssetType(asset_type)]

    def ids(self) -> List[str]:
        return list(self._assets)

    def __contains__(self, asset_id: object) -> bool:
        return asset_id in self._assets

    def __iter__(self):
        return iter(list(self._assets.values()))

    def __len__(self) -> int:
        return len(self._assets)
