"""Optional bearer-token guard for the HTTP routes."""
from __future__ import annotations

import hmac
from typing import Optional

from fastapi import Depends, HTTPException, Request

from doctext.config import Settings, get_settings


def require_session(request: Request, settings: Settings = Depends(get_settings)) -> None:
    """Reject requests without the configured ``Authorization: Bearer`` token.

    When no token is configured the service runs open.
    """

    expected = settings.api_token
    if not expected:
        return

    header: Optional[str] = request.headers.get("authorization")
    scheme, _, token = (header or "").partition(" ")
    if scheme.lower() != "bearer" or not hmac.compare_digest(token.strip(), expected):
        raise HTTPException(status_code=401, detail="Unauthorized")
