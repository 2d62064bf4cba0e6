"""OCR engine contract and the Tesseract-backed implementation."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

import pytesseract
from PIL import Image

from doctext.config import DEFAULT_OCR_LANGUAGE
from doctext.errors import ExtractionError

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class OCREngine(Protocol):
    """Anything that can turn an image file into text."""

    def recognize(self, image_path: Path) -> str:
        """Return the text recognised in the image stored at *image_path*."""
        ...


class TesseractOCREngine:
    """Run Tesseract through :mod:`pytesseract` on a single image."""

    def __init__(self, language: str = DEFAULT_OCR_LANGUAGE, config: str = "") -> None:
        self.language = language
        self.config = config

    def recognize(self, image_path: Path) -> str:
        try:
            with Image.open(image_path) as image:
                text = pytesseract.image_to_string(image, lang=self.language, config=self.config)
        except (pytesseract.TesseractError, OSError) as error:
            # TesseractNotFoundError and PIL's UnidentifiedImageError are OSErrors.
            raise ExtractionError(f"OCR failed for {image_path.name}", cause=error) from error
        return text or ""

    def version(self) -> str:
        """Report the Tesseract binary version, raising when it is missing."""

        return str(pytesseract.get_tesseract_version())
