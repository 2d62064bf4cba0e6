"""OCR extraction and token-bounded batching service."""

__version__ = "0.1.0"
