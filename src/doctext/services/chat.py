from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, List, Mapping, Sequence

from doctext.batching import Attachment, Batch, TokenCounter, batch_input, get_token_counter
from doctext.config import Settings, get_settings
from doctext.dispatch import Dispatcher
from doctext.telemetry import traced_duration

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class BatchPreview:
    """Batches for a text plus the token count of each text batch."""

    batches: List[Batch]
    token_counts: List[int]


class ChatService:
    """Prepare long text for the chat endpoint and forward it in batches."""

    def __init__(
        self,
        *,
        dispatcher: Dispatcher | None = None,
        counter: TokenCounter | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.counter = counter or get_token_counter(self.settings.token_encoding)
        self.dispatcher = dispatcher or Dispatcher(
            settings=self.settings,
            counter=self.counter,
        )

    def preview(self, text: str, attachments: Sequence[Attachment] = ()) -> BatchPreview:
        batches = batch_input(
            text,
            attachments,
            ceiling=self.settings.token_ceiling,
            counter=self.counter,
        )
        text_batches = batches[:-1] if attachments else batches
        counts = [self.counter(batch.content) for batch in text_batches]
        return BatchPreview(batches=batches, token_counts=counts)

    def send(self, messages: Iterable[Mapping[str, str]]) -> str:
        messages = list(messages)
        with traced_duration("chat.batched", logger=LOGGER, messages=len(messages)):
            return self.dispatcher.send_batched_messages(messages)


@lru_cache(maxsize=1)
def get_chat_service() -> ChatService:
    """FastAPI dependency returning the shared :class:`ChatService` instance."""

    return ChatService()
