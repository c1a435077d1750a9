"""Unit tests for core/config.py -- Settings validation.

Settings() is constructed directly (not through the get_settings() singleton)
so each test sees only the environment it sets via monkeypatch.
"""

import pytest

from core.config import Settings


def test_production_requires_secret_key(monkeypatch):
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(ValueError):
        Settings(_env_file=None)


def test_debug_generates_secret_key(monkeypatch):
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.delenv("SECRET_KEY", raising=False)
    settings = Settings(_env_file=None)
    assert len(settings.secret_key) >= 32


def test_short_secret_key_rejected(monkeypatch):
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("SECRET_KEY", "too-short")
    with pytest.raises(ValueError):
        Settings(_env_file=None)


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("SECRET_KEY", "k" * 32)
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("IMAGES_DIR", str(tmp_path))
    monkeypatch.setenv("SESSION_EXPIRE_SECONDS", "60")
    settings = Settings(_env_file=None)
    assert settings.port == 8080
    assert settings.images_dir == tmp_path
    assert settings.upload_dir == tmp_path / "uploads"
    assert settings.session_expire_seconds == 60
