"""API router for token-bounded batching and batched chat dispatch."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from doctext.auth import require_session
from doctext.batching import Attachment
from doctext.services.chat import ChatService, get_chat_service
from doctext.telemetry import emit_exception

router = APIRouter(prefix="/api/chat", tags=["chat"], dependencies=[Depends(require_session)])


class AttachmentModel(BaseModel):
    url: str = Field(..., min_length=1)
    name: Optional[str] = None
    contentType: Optional[str] = None


class ChatMessage(BaseModel):
    role: str = "user"
    content: str


class BatchRequest(BaseModel):
    """Text (and optional attachments) to split into bounded batches."""

    text: str = ""
    attachments: list[AttachmentModel] = Field(default_factory=list)


class BatchResponse(BaseModel):
    batches: list[ChatMessage]
    tokenCounts: list[int]


class BatchedChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(..., min_length=1)


class BatchedChatResponse(BaseModel):
    response: str


@router.post("/batches", response_model=BatchResponse)
def preview_batches(
    request: BatchRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> BatchResponse:
    """Show how a text would be split before it is sent."""

    attachments = [
        Attachment(url=item.url, name=item.name, content_type=item.contentType) for item in request.attachments
    ]
    try:
        preview = chat_service.preview(request.text, attachments)
    except Exception as exc:
        emit_exception(module=__name__, error=exc)
        raise HTTPException(status_code=500, detail="Failed to process request") from exc
    return BatchResponse(
        batches=[ChatMessage(role=batch.role, content=batch.content) for batch in preview.batches],
        tokenCounts=preview.token_counts,
    )


@router.post("/batched", response_model=BatchedChatResponse)
def send_batched(
    request: BatchedChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> BatchedChatResponse:
    """Forward messages to the chat endpoint in token-bounded batches."""

    try:
        combined = chat_service.send([message.model_dump() for message in request.messages])
    except Exception as exc:
        emit_exception(module=__name__, error=exc)
        raise HTTPException(status_code=500, detail="Failed to process request") from exc
    return BatchedChatResponse(response=combined)
