"""Exception hierarchy shared by the extraction, batching and dispatch layers."""
from __future__ import annotations

from typing import Iterable


class DocTextError(RuntimeError):
    """Base class for failures raised by the service."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.__cause__ = cause


class ValidationError(DocTextError):
    """Raised when an upload breaks one or more acceptance rules."""

    def __init__(self, messages: Iterable[str]) -> None:
        self.messages = list(messages)
        super().__init__(", ".join(self.messages))


class ExtractionError(DocTextError):
    """Raised when rasterization or recognition fails for any page."""


class UnsupportedFormatError(ExtractionError):
    """Raised when a document is neither an image nor a PDF."""


class DispatchError(DocTextError):
    """Raised when the downstream endpoint rejects a batch or cannot be reached."""
