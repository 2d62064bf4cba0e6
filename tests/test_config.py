from dataclasses import fields
from pathlib import Path

import pytest

from doctext.config import DEFAULT_TOKEN_CEILING, Settings, get_settings, load_settings

_VARS = (
    "DOCTEXT_TOKEN_CEILING",
    "DOCTEXT_TOKEN_ENCODING",
    "DOCTEXT_RASTER_SCALE",
    "DOCTEXT_OCR_LANG",
    "DOCTEXT_TEMP_DIR",
    "DOCTEXT_MAX_UPLOAD_BYTES",
    "DOCTEXT_CHAT_ENDPOINT",
    "DOCTEXT_DISPATCH_TIMEOUT",
    "DOCTEXT_API_TOKEN",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_match_the_documented_values() -> None:
    settings = load_settings()

    assert settings == Settings()
    assert settings.token_ceiling == 4000
    assert settings.raster_scale == 2.0
    assert settings.max_upload_bytes == 5 * 1024 * 1024
    assert settings.temp_dir is None
    assert settings.api_token is None


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DOCTEXT_TOKEN_CEILING", "1200")
    monkeypatch.setenv("DOCTEXT_TOKEN_ENCODING", "o200k_base")
    monkeypatch.setenv("DOCTEXT_RASTER_SCALE", "3")
    monkeypatch.setenv("DOCTEXT_TEMP_DIR", str(tmp_path))
    monkeypatch.setenv("DOCTEXT_CHAT_ENDPOINT", "https://chat.example/api/chat")
    monkeypatch.setenv("DOCTEXT_DISPATCH_TIMEOUT", "12.5")
    monkeypatch.setenv("DOCTEXT_API_TOKEN", "token")

    settings = load_settings()

    assert settings.token_ceiling == 1200
    assert settings.token_encoding == "o200k_base"
    assert settings.raster_scale == 3.0
    assert settings.temp_dir == tmp_path
    assert settings.chat_endpoint == "https://chat.example/api/chat"
    assert settings.dispatch_timeout == 12.5
    assert settings.api_token == "token"


@pytest.mark.parametrize("value", ["lots", "0", "-5"])
def test_invalid_ceiling_falls_back_to_default(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("DOCTEXT_TOKEN_CEILING", value)

    assert load_settings().token_ceiling == DEFAULT_TOKEN_CEILING


def test_invalid_float_logs_and_uses_default(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture) -> None:
    monkeypatch.setenv("DOCTEXT_DISPATCH_TIMEOUT", "soon")

    with caplog.at_level("WARNING", logger="doctext.config"):
        settings = load_settings()

    assert settings.dispatch_timeout is None
    assert "DOCTEXT_DISPATCH_TIMEOUT" in caplog.text


def test_get_settings_is_cached() -> None:
    assert get_settings() is get_settings()


def test_settings_expose_only_service_options() -> None:
    assert {item.name for item in fields(Settings)} == {
        "token_ceiling",
        "token_encoding",
        "raster_scale",
        "ocr_language",
        "temp_dir",
        "max_upload_bytes",
        "chat_endpoint",
        "dispatch_timeout",
        "api_token",
    }
