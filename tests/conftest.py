"""Shared test doubles for the OCR, rasterization and HTTP collaborators."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import pytest

from doctext.config import Settings, get_settings
from doctext.errors import ExtractionError
from doctext.extraction.models import PageImage
from doctext.services.chat import get_chat_service
from doctext.services.upload import get_upload_service


@dataclass
class FakeRasterizer:
    """Yield ``page_count`` tiny PNG-ish buffers tagged with their page number."""

    page_count: int = 3
    rendered: List[int] = field(default_factory=list)
    closed: bool = False

    def rasterize(self, data: bytes) -> Iterator[PageImage]:
        del data
        try:
            for number in range(1, self.page_count + 1):
                self.rendered.append(number)
                yield PageImage(page_number=number, data=f"page-{number}".encode(), width=2, height=2)
        finally:
            self.closed = True


@dataclass
class FakeOCREngine:
    """Return ``page-<n>-text`` for the image written for page ``n``.

    ``fail_on`` makes recognition raise for that page number; ``seen`` records
    the temporary paths handed over, so tests can check they were removed.
    """

    fail_on: Optional[int] = None
    error: Exception = field(default_factory=lambda: ExtractionError("boom"))
    seen: List[Path] = field(default_factory=list)
    existed: Dict[Path, bool] = field(default_factory=dict)

    def recognize(self, image_path: Path) -> str:
        self.seen.append(image_path)
        self.existed[image_path] = image_path.exists()
        payload = image_path.read_bytes().decode(errors="ignore")
        if payload.startswith("page-"):
            number = int(payload.split("-", 1)[1])
            if self.fail_on == number:
                raise self.error
            return f"page-{number}-text"
        if self.fail_on is not None:
            raise self.error
        return f"image-text:{payload}"


def char_counter(text: str) -> int:
    """One token per character; easy to reason about in tests."""

    return len(text)


def word_counter(text: str) -> int:
    return len(text.split())


@pytest.fixture
def fake_rasterizer() -> FakeRasterizer:
    return FakeRasterizer()


@pytest.fixture
def fake_ocr() -> FakeOCREngine:
    return FakeOCREngine()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    return Settings(temp_dir=scratch, chat_endpoint="http://chat.test/api/chat")


@pytest.fixture(autouse=True)
def _reset_cached_singletons() -> Iterator[None]:
    get_settings.cache_clear()
    get_upload_service.cache_clear()
    get_chat_service.cache_clear()
    yield
    get_settings.cache_clear()
    get_upload_service.cache_clear()
    get_chat_service.cache_clear()
