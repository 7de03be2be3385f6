"""
config.py — Environment-driven settings for Mockup Studio.

All values are read lazily from the process environment so that a
``load_dotenv()`` call at the entry point (or a test's monkeypatch) is
picked up without re-importing this module.

Recognised variables (put them in .env):
  GEMINI_API_KEY        default provider key (API_KEY is accepted as fallback)
  MOCKUP_STUDIO_MODEL   model id used for every generation call
  MOCKUP_STUDIO_HOME    directory holding settings.json (the stored manual key)
  MOCKUP_STUDIO_OUTPUT  directory where saved mockups are written
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Tuple

# ── Models ────────────────────────────────────────────────────────────────────

DEFAULT_MODEL = "gemini-2.5-flash-image"

MODEL_PRESETS: List[Tuple[str, str]] = [
    ("Gemini Flash 2.5 (Pro/Image)", "gemini-2.5-flash-image"),
    ("Gemini 1.5 Pro",               "gemini-1.5-pro"),
    ("Gemini 2.0 Flash (Exp)",       "gemini-2.0-flash-exp"),
]

# ── Storage ───────────────────────────────────────────────────────────────────

SETTINGS_FILENAME = "settings.json"

ENV_KEY_NAMES = ("GEMINI_API_KEY", "API_KEY")


def env_api_key() -> Optional[str]:
    """Ambient provider key from the environment, or None."""
    for name in ENV_KEY_NAMES:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return None


def default_model() -> str:
    return os.environ.get("MOCKUP_STUDIO_MODEL", "").strip() or DEFAULT_MODEL


def studio_home() -> Path:
    raw = os.environ.get("MOCKUP_STUDIO_HOME", "").strip()
    return Path(raw).expanduser() if raw else Path.home() / ".mockup_studio"


def settings_path() -> Path:
    return studio_home() / SETTINGS_FILENAME


def output_root() -> Path:
    raw = os.environ.get("MOCKUP_STUDIO_OUTPUT", "").strip()
    return Path(raw).expanduser() if raw else Path("outputs")
