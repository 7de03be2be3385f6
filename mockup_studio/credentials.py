"""
credentials.py — Which Gemini key to use, and where the manual one lives.

Precedence:
  1. manual key entered by the user (persisted in settings.json)
  2. ambient key from the environment / .env (GEMINI_API_KEY, then API_KEY)

If neither exists the caller must ask the user for a key before any
generation request is made. The manual key is the only thing the studio
ever writes to disk.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel, Field, ValidationError

from .config import env_api_key, settings_path
from .errors import InvalidApiKeyError

logger = logging.getLogger(__name__)

MIN_KEY_LENGTH = 10


class StudioSettings(BaseModel):
    gemini_api_key: Optional[str] = Field(default=None, description="Manually entered Gemini API key")


def validate_manual_key(key: str) -> str:
    cleaned = (key or "").strip()
    if len(cleaned) < MIN_KEY_LENGTH:
        raise InvalidApiKeyError("Please enter a valid API Key")
    return cleaned


class CredentialStore:
    """Resolves the effective API key and persists the manual one."""

    def __init__(
        self,
        path: Optional[Path] = None,
        env_key: Callable[[], Optional[str]] = env_api_key,
    ) -> None:
        self.path = Path(path) if path is not None else settings_path()
        self._env_key = env_key

    # ── Persistence ───────────────────────────────────────────────────────────

    def _load(self) -> StudioSettings:
        if not self.path.exists():
            return StudioSettings()
        try:
            return StudioSettings.model_validate_json(self.path.read_text(encoding="utf-8"))
        except ValidationError as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, exc)
            return StudioSettings()

    def _write(self, settings: StudioSettings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(settings.model_dump_json(indent=2), encoding="utf-8")

    # ── Keys ──────────────────────────────────────────────────────────────────

    @property
    def stored_key(self) -> Optional[str]:
        return self._load().gemini_api_key or None

    @property
    def environment_key(self) -> Optional[str]:
        return self._env_key()

    @property
    def effective_key(self) -> Optional[str]:
        return self.stored_key or self.environment_key

    @property
    def has_key(self) -> bool:
        return bool(self.effective_key)

    @property
    def source(self) -> Optional[str]:
        if self.stored_key:
            return "manual"
        if self.environment_key:
            return "environment"
        return None

    def save(self, key: str) -> str:
        cleaned = validate_manual_key(key)
        settings = self._load()
        settings.gemini_api_key = cleaned
        self._write(settings)
        logger.info("Manual API key saved to %s", self.path)
        return cleaned

    def forget(self) -> None:
        if not self.path.exists():
            return
        settings = self._load()
        settings.gemini_api_key = None
        self._write(settings)
        logger.info("Manual API key removed")


def mask_key(key: Optional[str]) -> str:
    if not key:
        return "(none)"
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}…{key[-4:]}"
