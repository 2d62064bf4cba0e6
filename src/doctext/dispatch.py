"""Send batches to the downstream chat endpoint one after another."""
from __future__ import annotations

import logging
import time
from typing import Iterable, Mapping, Optional, Sequence

import requests

from doctext.batching import Batch, TokenCounter, batch_messages, get_token_counter
from doctext.config import Settings, get_settings
from doctext.errors import DispatchError
from doctext.telemetry import emit_dispatch_event

LOGGER = logging.getLogger(__name__)


class Dispatcher:
    """POST each batch as its own chat request and stitch the replies together."""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        ceiling: Optional[int] = None,
        counter: Optional[TokenCounter] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self.endpoint = endpoint or settings.chat_endpoint
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else settings.dispatch_timeout
        self.ceiling = ceiling or settings.token_ceiling
        self.counter = counter or get_token_counter(settings.token_encoding)

    def dispatch(self, batches: Sequence[Batch]) -> str:
        """Send *batches* in order and return the concatenated replies.

        Every reply is followed by a newline. The first failing batch raises
        :class:`~doctext.errors.DispatchError` and nothing already received is
        returned.
        """

        replies: list[str] = []
        total = len(batches)
        for index, batch in enumerate(batches):
            started = time.perf_counter()
            payload = {"messages": [batch.as_message()]}
            try:
                response = self.session.post(self.endpoint, json=payload, timeout=self.timeout)
            except requests.RequestException as error:
                emit_dispatch_event(
                    "dispatch.batch",
                    endpoint=self.endpoint,
                    batch_index=index,
                    batch_count=total,
                    error=error,
                )
                raise DispatchError("Failed to send message", cause=error) from error

            duration_ms = (time.perf_counter() - started) * 1000.0
            if not response.ok:
                error = DispatchError(f"Failed to send message: HTTP {response.status_code}")
                emit_dispatch_event(
                    "dispatch.batch",
                    endpoint=self.endpoint,
                    batch_index=index,
                    batch_count=total,
                    status_code=response.status_code,
                    duration_ms=duration_ms,
                    error=error,
                )
                raise error

            emit_dispatch_event(
                "dispatch.batch",
                endpoint=self.endpoint,
                batch_index=index,
                batch_count=total,
                status_code=response.status_code,
                duration_ms=duration_ms,
            )
            replies.append(_reply_text(response) + "\n")

        return "".join(replies)

    def send_batched_messages(self, messages: Iterable[Mapping[str, str]]) -> str:
        """Re-batch the contents of chat *messages* and dispatch the result."""

        contents = [str(message.get("content", "")) for message in messages]
        batches = batch_messages(contents, ceiling=self.ceiling, counter=self.counter)
        LOGGER.info("Dispatching %s batches to %s", len(batches), self.endpoint)
        return self.dispatch(batches)


def _reply_text(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and "response" in body:
        reply = body["response"]
        if reply is None:
            return ""
        return reply if isinstance(reply, str) else str(reply)
    return response.text
