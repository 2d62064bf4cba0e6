"""Structured lifecycle events for extraction, batching and dispatch."""

from __future__ import annotations

import logging
import os
import platform
import socket
import subprocess
import sys
import time
import traceback
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

LOGGER = logging.getLogger("doctext.telemetry")

_ENV_KEYS_TO_LOG: tuple[str, ...] = (
    "DOCTEXT_TOKEN_CEILING",
    "DOCTEXT_TOKEN_ENCODING",
    "DOCTEXT_RASTER_SCALE",
    "DOCTEXT_OCR_LANG",
    "DOCTEXT_TEMP_DIR",
    "DOCTEXT_MAX_UPLOAD_BYTES",
    "DOCTEXT_CHAT_ENDPOINT",
    "DOCTEXT_DISPATCH_TIMEOUT",
    "LOG_LEVEL",
)


def _format_exception(error: BaseException) -> str:
    return "".join(traceback.format_exception(error.__class__, error, error.__traceback__))


def log_event(
    logger: Optional[logging.Logger],
    step: str,
    *,
    level: str = "info",
    req_id: str | None = None,
    duration_ms: float | None = None,
    exc: BaseException | str | None = None,
    details: dict[str, Any] | None = None,
    **payload: Any,
) -> None:
    """Emit one structured event; the JSON formatter flattens the dict."""

    logger = logger or LOGGER
    event: dict[str, Any] = {"step": step, "module": logger.name}
    if req_id:
        event["req_id"] = req_id
    if duration_ms is not None:
        event["duration_ms"] = round(duration_ms, 3)
    if details is not None:
        event["details"] = details
    event.update(payload)

    exc_info = None
    if exc is not None:
        if isinstance(exc, BaseException):
            event["exc"] = _format_exception(exc)
            exc_info = (exc.__class__, exc, exc.__traceback__)
        else:
            event["exc"] = str(exc)

    log_method = getattr(logger, level.lower(), logger.info)
    log_method(event, exc_info=exc_info)


def _run_command(command: list[str], *, timeout: float = 5.0) -> tuple[int, str, str]:
    try:
        completed = subprocess.run(
            command,
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except Exception as error:  # pragma: no cover - depends on runtime
        return 1, "", str(error)
    return completed.returncode, completed.stdout.strip(), completed.stderr.strip()


def _resolve_git_commit() -> Optional[str]:
    returncode, stdout, _ = _run_command(["git", "rev-parse", "HEAD"])
    if returncode != 0:
        return None
    return stdout or None


def emit_app_startup_event() -> None:
    env_values = {key: os.getenv(key) for key in _ENV_KEYS_TO_LOG if os.getenv(key) is not None}
    details = {
        "env": env_values,
        "python": sys.version.split()[0],
        "platform": platform.platform(),
    }
    log_event(
        LOGGER,
        "app.startup",
        details=details,
        commit=_resolve_git_commit(),
        pid=os.getpid(),
        hostname=socket.gethostname(),
        cwd=str(Path.cwd()),
    )


def emit_extraction_event(
    step: str,
    *,
    kind: str,
    size_bytes: int | None = None,
    pages: int | None = None,
    chars: int | None = None,
    duration_ms: float | None = None,
    req_id: str | None = None,
) -> None:
    details = {
        "kind": kind,
        "size_bytes": size_bytes,
        "pages": pages,
        "chars": chars,
    }
    log_event(
        LOGGER,
        step,
        req_id=req_id,
        duration_ms=duration_ms,
        details={key: value for key, value in details.items() if value is not None},
    )


def emit_dispatch_event(
    step: str,
    *,
    endpoint: str,
    batch_index: int | None = None,
    batch_count: int | None = None,
    status_code: int | None = None,
    duration_ms: float | None = None,
    error: BaseException | None = None,
) -> None:
    details = {
        "endpoint": endpoint,
        "batch_index": batch_index,
        "batch_count": batch_count,
        "status_code": status_code,
    }
    log_event(
        LOGGER,
        step,
        level="error" if error is not None else "info",
        duration_ms=duration_ms,
        details=details,
        exc=error,
    )


def emit_exception(
    *,
    module: str,
    error: BaseException,
    req_id: str | None = None,
) -> None:
    log_event(
        LOGGER,
        "exception",
        level="error",
        req_id=req_id,
        details={"module": module, "type": error.__class__.__name__},
        exc=error,
    )


@contextmanager
def traced_duration(step: str, *, logger: Optional[logging.Logger] = None, **fields: Any) -> Iterator[None]:
    start = time.perf_counter()
    log_event(logger or LOGGER, f"{step}.start", details=fields)
    try:
        yield
    except Exception as error:
        log_event(logger or LOGGER, f"{step}.error", level="error", details=fields, exc=error)
        raise
    finally:
        log_event(
            logger or LOGGER,
            f"{step}.complete",
            duration_ms=(time.perf_counter() - start) * 1000.0,
            details=fields,
        )


__all__ = [
    "emit_app_startup_event",
    "emit_dispatch_event",
    "emit_exception",
    "emit_extraction_event",
    "log_event",
    "traced_duration",
]
