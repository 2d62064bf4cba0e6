"""Map declared media types onto the document kinds the pipeline supports."""
from __future__ import annotations

import mimetypes
from typing import Final

from doctext.errors import UnsupportedFormatError

from .models import DocumentKind

_MIME_MAP: Final[dict[str, DocumentKind]] = {
    "application/pdf": DocumentKind.PDF,
    "image/jpeg": DocumentKind.IMAGE,
    "image/jpg": DocumentKind.IMAGE,
    "image/png": DocumentKind.IMAGE,
}


def _normalize(media_type: str | None) -> str:
    # Drop parameters such as "; charset=binary".
    return (media_type or "").split(";", 1)[0].strip().lower()


def detect_kind(media_type: str | None) -> DocumentKind:
    """Return the :class:`DocumentKind` for *media_type*.

    Any ``image/*`` type is treated as a single raster image; the OCR engine
    decides whether it can actually decode it.
    """

    normalized = _normalize(media_type)
    kind = _MIME_MAP.get(normalized)
    if kind is not None:
        return kind
    if normalized.startswith("image/"):
        return DocumentKind.IMAGE
    raise UnsupportedFormatError(f"Unsupported media type: {media_type or '<missing>'}")


def suffix_for(media_type: str | None) -> str:
    """File suffix used when persisting raw uploads for OCR."""

    normalized = _normalize(media_type)
    if normalized in {"image/jpeg", "image/jpg"}:
        return ".jpg"
    return mimetypes.guess_extension(normalized) or ".png"
