"""Token-aware batching of long text for a context-limited chat endpoint."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Iterable, List, Optional, Sequence

import tiktoken

from doctext.config import DEFAULT_TOKEN_CEILING, DEFAULT_TOKEN_ENCODING, get_settings

LOGGER = logging.getLogger(__name__)

TokenCounter = Callable[[str], int]


@dataclass(frozen=True, slots=True)
class Attachment:
    """Reference to content that accompanies a chat request."""

    url: str
    name: Optional[str] = None
    content_type: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Batch:
    """One message sent to the chat endpoint as an independent request."""

    content: str
    role: str = "user"

    def as_message(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class TiktokenCounter:
    """Count tokens with a named tiktoken encoding.

    The encoding is loaded on first use. Special-token markers such as
    ``<|endoftext|>`` appearing in user text are counted as ordinary text.
    """

    def __init__(self, encoding_name: str = DEFAULT_TOKEN_ENCODING) -> None:
        self.encoding_name = encoding_name
        self._encoding: Optional[tiktoken.Encoding] = None

    @property
    def encoding(self) -> tiktoken.Encoding:
        if self._encoding is None:
            self._encoding = tiktoken.get_encoding(self.encoding_name)
        return self._encoding

    def __call__(self, text: str) -> int:
        if not text:
            return 0
        return len(self.encoding.encode(text, disallowed_special=()))


@lru_cache(maxsize=None)
def get_token_counter(encoding_name: str = DEFAULT_TOKEN_ENCODING) -> TiktokenCounter:
    """Shared counter per encoding so the BPE tables load once per process."""

    return TiktokenCounter(encoding_name)


def count_tokens(text: str, encoding_name: str = DEFAULT_TOKEN_ENCODING) -> int:
    """Return the number of tokens *text* occupies under *encoding_name*."""

    return get_token_counter(encoding_name)(text)


def batch_input(
    text: str,
    attachments: Sequence[Attachment] = (),
    *,
    ceiling: int = DEFAULT_TOKEN_CEILING,
    counter: Optional[TokenCounter] = None,
) -> List[Batch]:
    """Split *text* into word-aligned batches that each fit within *ceiling* tokens.

    Words are appended to the current batch while ``current + " " + word``
    stays within the ceiling; otherwise the current batch is closed and the
    word opens the next one. A single word that is longer than the ceiling is
    never split: it ends up alone in a batch that exceeds the ceiling.

    When *attachments* is non-empty, one extra batch holding their URLs (one
    per line) is appended after all text batches. Without a *counter* the
    configured ``DOCTEXT_TOKEN_ENCODING`` is used.
    """

    if ceiling <= 0:
        raise ValueError("ceiling must be a positive integer")
    counter = counter or get_token_counter(get_settings().token_encoding)

    batches: List[Batch] = []
    current = ""
    for word in text.split():
        if counter(current + " " + word) > ceiling:
            closed = current.strip()
            if closed:
                batches.append(Batch(content=closed))
            current = word
        else:
            current += " " + word

    tail = current.strip()
    if tail:
        batches.append(Batch(content=tail))

    text_batches = len(batches)
    if attachments:
        batches.append(Batch(content="\n".join(attachment.url for attachment in attachments)))

    LOGGER.debug(
        "Split %s characters into %s text batches (ceiling=%s, attachments=%s)",
        len(text),
        text_batches,
        ceiling,
        len(attachments),
    )
    return batches


def batch_messages(
    contents: Iterable[str],
    *,
    ceiling: int = DEFAULT_TOKEN_CEILING,
    counter: Optional[TokenCounter] = None,
) -> List[Batch]:
    """Join chat message contents with single spaces and batch the result."""

    return batch_input(" ".join(contents), (), ceiling=ceiling, counter=counter)
