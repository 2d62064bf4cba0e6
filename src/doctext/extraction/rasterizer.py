"""Render PDF pages to PNG buffers with PyMuPDF."""
from __future__ import annotations

import logging
from typing import Iterator

import fitz  # PyMuPDF

from doctext.config import DEFAULT_RASTER_SCALE
from doctext.errors import ExtractionError

from .models import PageImage

LOGGER = logging.getLogger(__name__)


class PdfRasterizer:
    """Turn each page of a PDF into a fixed-scale raster image."""

    def __init__(self, scale: float = DEFAULT_RASTER_SCALE) -> None:
        if scale <= 0:
            raise ValueError("scale must be positive")
        self.scale = scale

    def rasterize(self, data: bytes) -> Iterator[PageImage]:
        """Yield one :class:`PageImage` per page, in page order.

        Pages are rendered lazily so only one raster buffer is alive at a
        time. Wrap the iterator in :func:`contextlib.closing` when the caller
        may stop early, so the underlying document is closed promptly.
        """

        document = self._open(data)
        matrix = fitz.Matrix(self.scale, self.scale)
        try:
            page_count = document.page_count
            LOGGER.debug("Rasterizing %s PDF pages at scale %.1f", page_count, self.scale)
            for index in range(page_count):
                page_number = index + 1
                try:
                    page = document.load_page(index)
                    pixmap = page.get_pixmap(matrix=matrix, alpha=False)
                    png = pixmap.tobytes("png")
                except Exception as error:
                    raise ExtractionError(f"Failed to render PDF page {page_number}", cause=error) from error
                yield PageImage(page_number=page_number, data=png, width=pixmap.width, height=pixmap.height)
        finally:
            document.close()

    @staticmethod
    def _open(data: bytes) -> "fitz.Document":
        try:
            document = fitz.open(stream=data, filetype="pdf")
        except Exception as error:
            raise ExtractionError("Could not open PDF document", cause=error) from error
        if document.needs_pass:
            document.close()
            raise ExtractionError("PDF document is encrypted")
        return document
