"""Data models used by the extraction pipeline."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class DocumentKind(str, Enum):
    """Families of uploads the pipeline knows how to read."""

    IMAGE = "image"
    PDF = "pdf"


@dataclass(frozen=True, slots=True)
class Document:
    """An uploaded binary blob together with its declared media type."""

    content: bytes
    media_type: str
    file_name: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True, slots=True)
class PageImage:
    """PNG rendering of a single PDF page."""

    page_number: int
    data: bytes
    width: int
    height: int
