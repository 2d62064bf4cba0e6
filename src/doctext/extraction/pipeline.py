"""High level extraction entry point: document bytes in, OCR text out."""
from __future__ import annotations

import logging
import time
from contextlib import closing
from pathlib import Path
from typing import Iterator, Optional, Protocol

from doctext.config import Settings, get_settings
from doctext.errors import ExtractionError
from doctext.telemetry import emit_extraction_event

from .format_detection import detect_kind, suffix_for
from .models import Document, DocumentKind, PageImage
from .ocr import OCREngine, TesseractOCREngine
from .rasterizer import PdfRasterizer
from .tempfiles import scoped_temp_file

LOGGER = logging.getLogger(__name__)


class Rasterizer(Protocol):
    def rasterize(self, data: bytes) -> Iterator[PageImage]:
        ...


def _millis() -> int:
    return time.time_ns() // 1_000_000


class ExtractionPipeline:
    """Orchestrates rasterization and OCR across every page of a document.

    Pages are processed strictly in order, one at a time. Each raster image
    lives in a scoped temporary file that is removed before the next page is
    rendered, whether OCR on it succeeded or not. A failure on any page aborts
    the whole extraction.
    """

    def __init__(
        self,
        *,
        ocr_engine: Optional[OCREngine] = None,
        rasterizer: Optional[Rasterizer] = None,
        temp_dir: Optional[Path] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self.ocr_engine: OCREngine = ocr_engine or TesseractOCREngine(language=settings.ocr_language)
        self.rasterizer: Rasterizer = rasterizer or PdfRasterizer(scale=settings.raster_scale)
        self.temp_dir = temp_dir if temp_dir is not None else settings.temp_dir

    def extract(self, document: Document) -> str:
        """Return the text recognised in *document*.

        Raises :class:`~doctext.errors.UnsupportedFormatError` for media types
        other than images and PDFs, and :class:`~doctext.errors.ExtractionError`
        when any page cannot be rendered or recognised.
        """

        kind = detect_kind(document.media_type)
        started = time.perf_counter()
        emit_extraction_event("extract.start", kind=kind.value, size_bytes=document.size)

        if kind is DocumentKind.PDF:
            text, pages = self._extract_pdf(document.content)
        else:
            text, pages = self._extract_image(document.content, document.media_type), 1

        emit_extraction_event(
            "extract.complete",
            kind=kind.value,
            size_bytes=document.size,
            pages=pages,
            chars=len(text),
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )
        return text

    def _extract_pdf(self, data: bytes) -> tuple[str, int]:
        parts: list[str] = []
        batch_stamp = _millis()
        with closing(self.rasterizer.rasterize(data)) as pages:
            for page in pages:
                prefix = f"page_{page.page_number}-{batch_stamp}-"
                with scoped_temp_file(page.data, prefix=prefix, suffix=".png", directory=self.temp_dir) as path:
                    text = self._recognize(path, page_number=page.page_number)
                parts.append(text + "\n")
                LOGGER.debug("Recognised %s characters on page %s", len(text), page.page_number)
        return "".join(parts), len(parts)

    def _extract_image(self, data: bytes, media_type: str) -> str:
        prefix = f"upload-{_millis()}-"
        with scoped_temp_file(data, prefix=prefix, suffix=suffix_for(media_type), directory=self.temp_dir) as path:
            return self._recognize(path, page_number=None)

    def _recognize(self, path: Path, *, page_number: int | None) -> str:
        try:
            return self.ocr_engine.recognize(path)
        except ExtractionError:
            raise
        except Exception as error:
            where = f"page {page_number}" if page_number is not None else "image"
            LOGGER.exception("OCR engine failed on %s", where)
            raise ExtractionError(f"OCR failed on {where}", cause=error) from error
