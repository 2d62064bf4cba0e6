"""FastAPI application wiring routers, logging and health probes."""

import logging
from typing import Any, Callable, TypeVar

from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse

from doctext.api.chat import router as chat_router
from doctext.api.files import router as files_router
from doctext.batching import get_token_counter
from doctext.config import get_settings
from doctext.extraction import TesseractOCREngine
from doctext.logging_config import configure_logging
from doctext.telemetry import emit_app_startup_event

configure_logging()

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="DocText API")
app.include_router(files_router)
app.include_router(chat_router)


@app.on_event("startup")
async def _emit_startup() -> None:
    emit_app_startup_event()


T = TypeVar("T")


def _resolve_dependency(factory: Callable[[], T]) -> T:
    """Resolve a dependency while respecting FastAPI overrides."""

    override: Any | None = app.dependency_overrides.get(factory)
    resolved: Any = override if override is not None else factory
    return resolved() if callable(resolved) else resolved


def get_ocr_engine() -> TesseractOCREngine:
    return TesseractOCREngine(language=get_settings().ocr_language)


@app.get("/", response_class=PlainTextResponse)
def read_root() -> str:
    """Healthcheck endpoint for the service."""
    return "ok"


@app.get("/healthz", response_class=PlainTextResponse)
def healthcheck() -> str:
    """Liveness probe used by container orchestrators."""
    return "ok"


@app.get("/readyz", response_class=PlainTextResponse)
def readiness_probe() -> str:
    """Readiness probe that ensures the OCR binary and tokenizer are usable."""

    errors: list[str] = []

    try:
        engine = _resolve_dependency(get_ocr_engine)
        engine.version()
    except Exception as exc:
        errors.append(f"ocr_engine_unavailable: {exc}")

    try:
        counter = get_token_counter(get_settings().token_encoding)
        counter("__readyz__")
    except Exception as exc:
        errors.append(f"tokenizer_unavailable: {exc}")

    if errors:
        LOGGER.warning("Readiness probe failed: %s", "; ".join(errors))
        raise HTTPException(status_code=503, detail="; ".join(errors))

    return "ok"
