"""Environment driven runtime settings."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

LOGGER = logging.getLogger(__name__)

DEFAULT_TOKEN_CEILING = 4000
DEFAULT_TOKEN_ENCODING = "cl100k_base"
DEFAULT_RASTER_SCALE = 2.0
DEFAULT_OCR_LANGUAGE = "eng"
DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024
DEFAULT_CHAT_ENDPOINT = "http://localhost:3000/api/chat"


def _int_from_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        LOGGER.warning("Invalid integer for %s: %s; using default %s", name, value, default)
        return default


def _float_from_env(name: str, default: Optional[float]) -> Optional[float]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        LOGGER.warning("Invalid float for %s: %s; using default %s", name, value, default)
        return default


def _str_from_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value or default


@dataclass(frozen=True, slots=True)
class Settings:
    """Resolved configuration for a running service."""

    token_ceiling: int = DEFAULT_TOKEN_CEILING
    token_encoding: str = DEFAULT_TOKEN_ENCODING
    raster_scale: float = DEFAULT_RASTER_SCALE
    ocr_language: str = DEFAULT_OCR_LANGUAGE
    temp_dir: Optional[Path] = None
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    chat_endpoint: str = DEFAULT_CHAT_ENDPOINT
    dispatch_timeout: Optional[float] = None
    api_token: Optional[str] = None


def load_settings() -> Settings:
    """Build :class:`Settings` from the current process environment."""

    ceiling = _int_from_env("DOCTEXT_TOKEN_CEILING", DEFAULT_TOKEN_CEILING)
    if ceiling <= 0:
        LOGGER.warning("DOCTEXT_TOKEN_CEILING must be positive; using default %s", DEFAULT_TOKEN_CEILING)
        ceiling = DEFAULT_TOKEN_CEILING

    scale = _float_from_env("DOCTEXT_RASTER_SCALE", DEFAULT_RASTER_SCALE) or DEFAULT_RASTER_SCALE
    if scale <= 0:
        LOGGER.warning("DOCTEXT_RASTER_SCALE must be positive; using default %s", DEFAULT_RASTER_SCALE)
        scale = DEFAULT_RASTER_SCALE

    temp_dir = _str_from_env("DOCTEXT_TEMP_DIR", None)

    return Settings(
        token_ceiling=ceiling,
        token_encoding=_str_from_env("DOCTEXT_TOKEN_ENCODING", DEFAULT_TOKEN_ENCODING) or DEFAULT_TOKEN_ENCODING,
        raster_scale=scale,
        ocr_language=_str_from_env("DOCTEXT_OCR_LANG", DEFAULT_OCR_LANGUAGE) or DEFAULT_OCR_LANGUAGE,
        temp_dir=Path(temp_dir) if temp_dir else None,
        max_upload_bytes=_int_from_env("DOCTEXT_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
        chat_endpoint=_str_from_env("DOCTEXT_CHAT_ENDPOINT", DEFAULT_CHAT_ENDPOINT) or DEFAULT_CHAT_ENDPOINT,
        dispatch_timeout=_float_from_env("DOCTEXT_DISPATCH_TIMEOUT", None),
        api_token=_str_from_env("DOCTEXT_API_TOKEN", None),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""

    return load_settings()
