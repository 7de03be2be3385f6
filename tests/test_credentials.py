"""Tests for API key resolution, persistence and environment config."""
import json

import pytest

from mockup_studio import config
from mockup_studio.credentials import CredentialStore, mask_key
from mockup_studio.errors import InvalidApiKeyError


@pytest.fixture
def store_with_env(tmp_path):
    return CredentialStore(path=tmp_path / "settings.json", env_key=lambda: "env-key-1234567")


class TestCredentialStore:

    def test_no_key_anywhere(self, credentials):
        assert credentials.effective_key is None
        assert not credentials.has_key
        assert credentials.source is None

    def test_environment_key_used(self, store_with_env):
        assert store_with_env.effective_key == "env-key-1234567"
        assert store_with_env.source == "environment"

    def test_manual_key_wins(self, store_with_env):
        store_with_env.save("  manual-key-abcdef  ")
        assert store_with_env.effective_key == "manual-key-abcdef"
        assert store_with_env.source == "manual"

    def test_save_persists_to_file(self, credentials):
        credentials.save("manual-key-abcdef")
        data = json.loads(credentials.path.read_text(encoding="utf-8"))
        assert data["gemini_api_key"] == "manual-key-abcdef"
        reopened = CredentialStore(path=credentials.path, env_key=lambda: None)
        assert reopened.effective_key == "manual-key-abcdef"

    def test_short_key_rejected(self, credentials):
        with pytest.raises(InvalidApiKeyError):
            credentials.save("short")
        assert not credentials.path.exists()

    def test_forget_falls_back_to_environment(self, store_with_env):
        store_with_env.save("manual-key-abcdef")
        store_with_env.forget()
        assert store_with_env.effective_key == "env-key-1234567"

    def test_forget_without_file(self, credentials):
        credentials.forget()
        assert not credentials.path.exists()

    def test_corrupt_file_is_ignored(self, credentials):
        credentials.path.write_text("{not json", encoding="utf-8")
        assert credentials.effective_key is None
        credentials.save("manual-key-abcdef")
        assert credentials.effective_key == "manual-key-abcdef"


def test_mask_key():
    assert mask_key(None) == "(none)"
    assert mask_key("abc") == "***"
    assert mask_key("AIzaSyExample1234") == "AIza…1234"


class TestConfig:

    def test_env_key_order(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "")
        monkeypatch.setenv("API_KEY", "fallback")
        assert config.env_api_key() == "fallback"
        monkeypatch.setenv("GEMINI_API_KEY", "primary")
        assert config.env_api_key() == "primary"

    def test_default_model_override(self, monkeypatch):
        monkeypatch.delenv("MOCKUP_STUDIO_MODEL", raising=False)
        assert config.default_model() == config.DEFAULT_MODEL
        monkeypatch.setenv("MOCKUP_STUDIO_MODEL", "gemini-2.0-flash-exp")
        assert config.default_model() == "gemini-2.0-flash-exp"

    def test_settings_path_under_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MOCKUP_STUDIO_HOME", str(tmp_path))
        assert config.settings_path() == tmp_path / "settings.json"
