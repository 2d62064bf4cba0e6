"""Naming and encoding helpers for uploads echoed back to the client."""
from __future__ import annotations

import base64
import re
import time
from pathlib import PurePosixPath, PureWindowsPath
from typing import Final, Optional

UPLOADS_PREFIX: Final[str] = "/uploads"
_FILENAME_SAFE_CHARS_RE: Final[re.Pattern[str]] = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(filename: Optional[str]) -> str:
    """Return a filesystem-safe filename preserving the extension when possible."""
    if not filename:
        return "upload"
    # Browsers on Windows may send the full client path.
    sanitized = PurePosixPath(PureWindowsPath(filename).name).name
    sanitized = _FILENAME_SAFE_CHARS_RE.sub("_", sanitized)
    return sanitized.strip("._") or "upload"


def storage_pathname(filename: Optional[str], *, timestamp_ms: Optional[int] = None) -> str:
    """Synthesize ``/uploads/<timestamp>-<filename>`` for an upload."""
    stamp = timestamp_ms if timestamp_ms is not None else time.time_ns() // 1_000_000
    return f"{UPLOADS_PREFIX}/{stamp}-{sanitize_filename(filename)}"


def to_data_url(content: bytes, media_type: str) -> str:
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{media_type};base64,{encoded}"
