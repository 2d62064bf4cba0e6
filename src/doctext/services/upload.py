from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from starlette.concurrency import run_in_threadpool

from doctext.config import Settings, get_settings
from doctext.errors import ValidationError
from doctext.extraction import Document, ExtractionPipeline
from doctext.logging_config import AUDIT_LOGGER_NAME
from doctext.storage import storage_pathname, to_data_url
from doctext.telemetry import emit_exception

LOGGER = logging.getLogger(__name__)
AUDIT_LOGGER = logging.getLogger(AUDIT_LOGGER_NAME)

ACCEPTED_MEDIA_TYPES = ("image/jpeg", "image/png", "application/pdf")


@dataclass(slots=True)
class UploadResult:
    """Structured result returned from :meth:`UploadService.process`."""

    url: str
    pathname: str
    content_type: str
    text: str


class UploadService:
    """Validate an upload, run it through OCR and describe it for the client."""

    def __init__(
        self,
        *,
        pipeline: ExtractionPipeline | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.pipeline = pipeline or ExtractionPipeline(settings=self.settings)

    def validate(self, content: bytes, media_type: Optional[str]) -> None:
        """Raise :class:`ValidationError` listing every rule *content* breaks."""

        messages: List[str] = []
        if len(content) > self.settings.max_upload_bytes:
            limit_mb = self.settings.max_upload_bytes / (1024 * 1024)
            messages.append(f"File size should be less than {limit_mb:g}MB")
        if (media_type or "") not in ACCEPTED_MEDIA_TYPES:
            messages.append("File type should be JPEG, PNG, or PDF")
        if messages:
            raise ValidationError(messages)

    async def process(self, file_name: Optional[str], content: bytes, media_type: Optional[str]) -> UploadResult:
        req_id = uuid.uuid4().hex
        self.validate(content, media_type)
        media_type = str(media_type)

        document = Document(content=content, media_type=media_type, file_name=file_name)
        started = time.perf_counter()
        try:
            # OCR blocks; keep it off the event loop.
            text = await run_in_threadpool(self.pipeline.extract, document)
        except Exception as error:
            emit_exception(module=f"{__name__}.pipeline", error=error, req_id=req_id)
            raise

        duration = time.perf_counter() - started
        pathname = storage_pathname(file_name)
        LOGGER.info("Extracted %s characters from %s in %.3fs", len(text), file_name, duration)
        AUDIT_LOGGER.info(
            {
                "event": "upload",
                "req_id": req_id,
                "file_name": file_name,
                "pathname": pathname,
                "content_type": media_type,
                "size_bytes": len(content),
                "chars": len(text),
            }
        )

        return UploadResult(
            url=to_data_url(content, media_type),
            pathname=pathname,
            content_type=media_type,
            text=text,
        )


@lru_cache(maxsize=1)
def get_upload_service() -> UploadService:
    """FastAPI dependency returning the shared :class:`UploadService` instance."""

    return UploadService()
