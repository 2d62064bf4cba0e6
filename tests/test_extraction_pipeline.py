"""Tests for the extraction pipeline using fake rasterizer and OCR engines."""
from __future__ import annotations

from pathlib import Path

import pytest

from conftest import FakeOCREngine, FakeRasterizer
from doctext.config import Settings
from doctext.errors import ExtractionError, UnsupportedFormatError
from doctext.extraction import Document, ExtractionPipeline


def _pipeline(settings: Settings, ocr: FakeOCREngine, rasterizer: FakeRasterizer) -> ExtractionPipeline:
    return ExtractionPipeline(ocr_engine=ocr, rasterizer=rasterizer, settings=settings)


def _pdf() -> Document:
    return Document(content=b"%PDF-1.4 fake", media_type="application/pdf", file_name="scan.pdf")


def test_pdf_pages_are_recognised_in_order(
    settings: Settings, fake_ocr: FakeOCREngine, fake_rasterizer: FakeRasterizer
) -> None:
    text = _pipeline(settings, fake_ocr, fake_rasterizer).extract(_pdf())

    assert text == "page-1-text\npage-2-text\npage-3-text\n"
    assert fake_rasterizer.rendered == [1, 2, 3]


def test_temporary_page_images_are_removed_after_success(
    settings: Settings, fake_ocr: FakeOCREngine, fake_rasterizer: FakeRasterizer
) -> None:
    _pipeline(settings, fake_ocr, fake_rasterizer).extract(_pdf())

    assert len(fake_ocr.seen) == 3
    assert all(fake_ocr.existed.values()), "OCR should see the image on disk"
    assert all(path.parent == settings.temp_dir for path in fake_ocr.seen)
    assert not any(path.exists() for path in fake_ocr.seen)
    assert list(settings.temp_dir.iterdir()) == []


def test_temporary_names_carry_the_page_index(
    settings: Settings, fake_ocr: FakeOCREngine, fake_rasterizer: FakeRasterizer
) -> None:
    _pipeline(settings, fake_ocr, fake_rasterizer).extract(_pdf())

    names = [path.name for path in fake_ocr.seen]
    assert [name.split("-", 1)[0] for name in names] == ["page_1", "page_2", "page_3"]
    assert all(name.endswith(".png") for name in names)
    assert len(set(names)) == 3


def test_ocr_failure_aborts_extraction_and_cleans_up(
    settings: Settings, fake_rasterizer: FakeRasterizer
) -> None:
    ocr = FakeOCREngine(fail_on=2)

    with pytest.raises(ExtractionError):
        _pipeline(settings, ocr, fake_rasterizer).extract(_pdf())

    assert fake_rasterizer.rendered == [1, 2]
    assert fake_rasterizer.closed is True
    assert list(settings.temp_dir.iterdir()) == []


def test_unexpected_engine_errors_are_wrapped(settings: Settings, fake_rasterizer: FakeRasterizer) -> None:
    ocr = FakeOCREngine(fail_on=2, error=RuntimeError("engine crashed"))

    with pytest.raises(ExtractionError) as excinfo:
        _pipeline(settings, ocr, fake_rasterizer).extract(_pdf())

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert "page 2" in str(excinfo.value)
    assert list(settings.temp_dir.iterdir()) == []


def test_rasterization_failure_surfaces_as_extraction_error(settings: Settings, fake_ocr: FakeOCREngine) -> None:
    class BrokenRasterizer:
        def rasterize(self, data: bytes):
            raise ExtractionError("Could not open PDF document")
            yield  # pragma: no cover - makes this a generator

    pipeline = ExtractionPipeline(ocr_engine=fake_ocr, rasterizer=BrokenRasterizer(), settings=settings)

    with pytest.raises(ExtractionError):
        pipeline.extract(_pdf())
    assert fake_ocr.seen == []


def test_empty_pdf_yields_empty_text(settings: Settings, fake_ocr: FakeOCREngine) -> None:
    text = _pipeline(settings, fake_ocr, FakeRasterizer(page_count=0)).extract(_pdf())

    assert text == ""


@pytest.mark.parametrize(
    ("media_type", "suffix"),
    [("image/png", ".png"), ("image/jpeg", ".jpg")],
)
def test_single_image_is_recognised_once_without_trailing_newline(
    settings: Settings,
    fake_ocr: FakeOCREngine,
    fake_rasterizer: FakeRasterizer,
    media_type: str,
    suffix: str,
) -> None:
    document = Document(content=b"raw-image", media_type=media_type, file_name="photo")

    text = _pipeline(settings, fake_ocr, fake_rasterizer).extract(document)

    assert text == "image-text:raw-image"
    assert fake_rasterizer.rendered == []
    assert len(fake_ocr.seen) == 1
    assert fake_ocr.seen[0].name.startswith("upload-")
    assert fake_ocr.seen[0].suffix == suffix
    assert list(settings.temp_dir.iterdir()) == []


def test_single_image_failure_still_removes_the_temp_file(settings: Settings, fake_rasterizer: FakeRasterizer) -> None:
    ocr = FakeOCREngine(fail_on=1)
    document = Document(content=b"raw-image", media_type="image/png")

    with pytest.raises(ExtractionError):
        _pipeline(settings, ocr, fake_rasterizer).extract(document)

    assert list(settings.temp_dir.iterdir()) == []


@pytest.mark.parametrize("media_type", ["text/plain", "application/zip", "", None])
def test_unsupported_media_types_are_rejected(
    settings: Settings, fake_ocr: FakeOCREngine, fake_rasterizer: FakeRasterizer, media_type
) -> None:
    document = Document(content=b"data", media_type=media_type)

    with pytest.raises(UnsupportedFormatError):
        _pipeline(settings, fake_ocr, fake_rasterizer).extract(document)
    assert fake_ocr.seen == []


def test_temp_dir_override_wins_over_settings(
    tmp_path: Path, settings: Settings, fake_ocr: FakeOCREngine, fake_rasterizer: FakeRasterizer
) -> None:
    override = tmp_path / "override"
    override.mkdir()
    pipeline = ExtractionPipeline(
        ocr_engine=fake_ocr, rasterizer=fake_rasterizer, settings=settings, temp_dir=override
    )

    pipeline.extract(_pdf())

    assert all(path.parent == override for path in fake_ocr.seen)
