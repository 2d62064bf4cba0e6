"""Document-to-text extraction: PDF rasterization, OCR and text assembly."""
from __future__ import annotations

from .models import Document, DocumentKind, PageImage
from .ocr import OCREngine, TesseractOCREngine
from .pipeline import ExtractionPipeline
from .rasterizer import PdfRasterizer

__all__ = [
    "Document",
    "DocumentKind",
    "ExtractionPipeline",
    "OCREngine",
    "PageImage",
    "PdfRasterizer",
    "TesseractOCREngine",
]
