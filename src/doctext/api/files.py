"""API router accepting document uploads and returning their OCR text."""
from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel, Field

from doctext.auth import require_session
from doctext.errors import ValidationError
from doctext.services.upload import UploadResult, UploadService, get_upload_service
from doctext.telemetry import emit_exception

router = APIRouter(prefix="/api/files", tags=["files"], dependencies=[Depends(require_session)])


class UploadResponse(BaseModel):
    """Response body returned from the upload endpoint."""

    url: str = Field(..., description="Data URL carrying the original bytes.")
    pathname: str
    contentType: str
    text: str


def _serialise(result: UploadResult) -> UploadResponse:
    return UploadResponse(
        url=result.url,
        pathname=result.pathname,
        contentType=result.content_type,
        text=result.text,
    )


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: UploadFile | None = File(None),
    upload_service: UploadService = Depends(get_upload_service),
) -> UploadResponse:
    """Run OCR over an uploaded image or PDF."""

    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")

    try:
        content = await file.read()
        result = await upload_service.process(file.filename, content, file.content_type)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        emit_exception(module=__name__, error=exc)
        raise HTTPException(status_code=500, detail="Failed to process request") from exc
    return _serialise(result)
